"""Log output: structlog events and stdlib records share one JSON stream."""

from __future__ import annotations

import json
import logging

import structlog

from shared.log import get_logger, setup_logging


def _json_lines(out: str) -> list[dict]:
    return [json.loads(line) for line in out.splitlines() if line.startswith("{")]


def test_structlog_event_shape(capsys):
    setup_logging("INFO", "json", service="remax-proxy")

    get_logger("remax-proxy").info("proxy_request_forwarded", page="2")

    (line,) = _json_lines(capsys.readouterr().out)
    assert line["msg"] == "proxy_request_forwarded"
    assert line["level"] == "info"
    assert line["service"] == "remax-proxy"
    assert line["context"]["page"] == "2"
    assert "timestamp" in line


def test_stdlib_records_use_same_format(capsys):
    setup_logging("INFO", "json", service="remax-proxy")

    logging.getLogger("uvicorn.error").warning("Address already in use")

    (line,) = _json_lines(capsys.readouterr().out)
    assert line["msg"] == "Address already in use"
    assert line["level"] == "warning"
    assert line["service"] == "remax-proxy"
    assert line["context"]["logger"] == "uvicorn.error"


def test_level_filters_both_sources(capsys):
    setup_logging("WARNING", "json", service="remax-proxy")

    get_logger("remax-proxy").info("hidden")
    logging.getLogger("slowapi").info("hidden too")
    get_logger("remax-proxy").error("shown")

    lines = _json_lines(capsys.readouterr().out)
    assert [line["msg"] for line in lines] == ["shown"]


def test_httpx_request_lines_suppressed(capsys):
    setup_logging("DEBUG", "json", service="remax-proxy")

    logging.getLogger("httpx").info("HTTP Request: GET https://example.test")

    assert _json_lines(capsys.readouterr().out) == []


def test_exception_rendered_in_context(capsys):
    setup_logging("INFO", "json", service="remax-proxy")

    try:
        raise RuntimeError("upstream exploded")
    except RuntimeError:
        structlog.get_logger(service="remax-proxy").exception("proxy_request_crashed")

    (line,) = _json_lines(capsys.readouterr().out)
    assert line["level"] == "error"
    assert "upstream exploded" in line["context"]["exception"]


def test_setup_twice_keeps_one_handler(capsys):
    setup_logging("INFO", "json", service="remax-proxy")
    setup_logging("INFO", "json", service="remax-proxy")

    logging.getLogger("uvicorn.error").warning("once")

    assert len(_json_lines(capsys.readouterr().out)) == 1
