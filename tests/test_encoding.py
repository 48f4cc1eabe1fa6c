"""Tests for charset parsing and UTF-8 normalization."""

from __future__ import annotations

import pytest

from encoding import DEFAULT_CHARSET, is_utf8, normalize_to_utf8, parse_charset
from errors import DecodingError


@pytest.mark.parametrize(
    ("content_type", "expected"),
    [
        ("text/xml; charset=ISO-8859-1", "iso-8859-1"),
        ("text/xml;charset=windows-1252", "windows-1252"),
        ('application/xml; charset="UTF-8"', "utf-8"),
        ("text/xml; CHARSET=utf8; boundary=x", "utf8"),
        ("text/xml", DEFAULT_CHARSET),
        ("", DEFAULT_CHARSET),
        (None, DEFAULT_CHARSET),
        ("text/xml; charset=", DEFAULT_CHARSET),
    ],
)
def test_parse_charset(content_type, expected):
    assert parse_charset(content_type) == expected


def test_latin1_bytes_transcoded():
    body = b"<agent><nom>Ren\xe9e B\xe9langer</nom></agent>"
    text = normalize_to_utf8(body, "iso-8859-1")
    assert text == "<agent><nom>Renée Bélanger</nom></agent>"
    assert text.encode("utf-8").count("é".encode("utf-8")) == 2


def test_byte_e9_is_e_acute():
    assert normalize_to_utf8(b"\xe9", "ISO-8859-1") == "é"


def test_windows_1252_specific_characters():
    # 0x80 is the euro sign and 0x92 a right single quote in cp1252
    assert normalize_to_utf8(b"\x80 l\x92agent", "windows-1252") == "€ l’agent"


@pytest.mark.parametrize("charset", ["utf-8", "UTF-8", "utf8", "Utf8"])
def test_utf8_passthrough(charset):
    payload = "<prix devise=\"CAD\">450 000 $ — Montréal</prix>".encode("utf-8")
    assert normalize_to_utf8(payload, charset).encode("utf-8") == payload


def test_missing_charset_treated_as_utf8():
    payload = "Québec".encode("utf-8")
    assert normalize_to_utf8(payload, parse_charset(None)).encode("utf-8") == payload


def test_malformed_utf8_replaced():
    assert normalize_to_utf8(b"ok\xffok", "utf-8") == "ok�ok"


@pytest.mark.parametrize(
    "charset",
    [
        "x-klingon",
        "base64",
        "hex",
        "not a charset",
        "unicode_escape",
        "raw_unicode_escape",
        "punycode",
        "idna",
        "undefined",
    ],
)
def test_unknown_charset_raises(charset):
    with pytest.raises(DecodingError) as excinfo:
        normalize_to_utf8(b"<xml/>", charset)
    assert excinfo.value.status_code == 500
    assert charset.lower() in str(excinfo.value)


def test_is_utf8():
    assert is_utf8("UTF-8")
    assert is_utf8(" utf8 ")
    assert not is_utf8("utf-16")
    assert not is_utf8("iso-8859-1")


def test_escape_sequences_are_not_expanded():
    body = b"<path>C:\\new\\u00e9</path>"
    with pytest.raises(DecodingError):
        normalize_to_utf8(body, "unicode_escape")
    assert normalize_to_utf8(body, "iso-8859-1") == "<path>C:\\new\\u00e9</path>"
