"""Charset detection and UTF-8 normalization of upstream payloads.

The listings API answers in whatever legacy charset its Content-Type
declares (typically ISO-8859-1). Clients always receive UTF-8.
"""

from __future__ import annotations

import codecs
import re

from errors import DecodingError

DEFAULT_CHARSET = "utf-8"
UTF8_LABELS = frozenset({"utf-8", "utf8"})

# Codecs Python resolves but no HTTP charset label names. Keyed by
# CodecInfo.name, so aliases (unicode_escape, raw_unicode_escape) match.
NON_CHARSET_CODECS = frozenset(
    {"unicode-escape", "raw-unicode-escape", "punycode", "idna", "undefined"}
)

_CHARSET_RE = re.compile(r"charset=([^;]+)", re.IGNORECASE)


def parse_charset(content_type: str | None) -> str:
    """Return the lower-cased ``charset=`` label of a Content-Type header.

    Falls back to utf-8 when the header is missing or has no usable label.
    """
    if not content_type:
        return DEFAULT_CHARSET
    match = _CHARSET_RE.search(content_type)
    if not match:
        return DEFAULT_CHARSET
    label = match.group(1).strip().strip("\"'").strip().lower()
    return label or DEFAULT_CHARSET


def is_utf8(charset: str) -> bool:
    """True for the labels decoded as UTF-8 without a codec lookup."""
    return charset.strip().lower() in UTF8_LABELS


def normalize_to_utf8(body: bytes, charset: str = DEFAULT_CHARSET) -> str:
    """Decode ``body`` from ``charset`` into text ready to be sent as UTF-8.

    Malformed sequences become U+FFFD. Unknown labels raise DecodingError,
    as do codecs that are not charsets (``base64``, ``unicode_escape``).
    """
    label = (charset or DEFAULT_CHARSET).strip().lower()
    if is_utf8(label):
        return body.decode("utf-8", errors="replace")
    try:
        codec = codecs.lookup(label)
    except LookupError as exc:
        raise DecodingError(label) from exc
    if codec.name in NON_CHARSET_CODECS:
        raise DecodingError(label)
    try:
        return body.decode(codec.name, errors="replace")
    except (LookupError, ValueError) as exc:
        raise DecodingError(label) from exc
