"""Diagnostic tool for the remax-proxy service.

Checks the configuration, that the RE/MAX listings API is reachable, and
that its declared charset can be normalized to UTF-8.

Usage:
    docker compose run --rm remax-proxy python diagnose.py
    docker compose run --rm remax-proxy python diagnose.py --step config
    docker compose run --rm remax-proxy python diagnose.py --step upstream
    docker compose run --rm remax-proxy python diagnose.py --step encoding
    docker compose run --rm remax-proxy python diagnose.py --step all
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
import traceback

from shared.log import setup_logging

setup_logging("WARNING", "console")


_TAGS = {
    "pass": "\033[92m PASS \033[0m",
    "fail": "\033[91m FAIL \033[0m",
    "warn": "\033[93m WARN \033[0m",
    "info": "\033[94m INFO \033[0m",
}
_RULE = "=" * 60
_INDENT = " " * 9


def header(title: str) -> None:
    print(f"\n{_RULE}\n  {title}\n{_RULE}")


def _emit(tag: str, label: str, detail: str = "") -> None:
    print(f"  [{_TAGS[tag]}] {label}")
    for line in detail.strip().splitlines():
        print(f"{_INDENT}{line}")


def result(label: str, ok: bool, detail: str = "") -> None:
    _emit("pass" if ok else "fail", label, detail)


def info(label: str, detail: str = "") -> None:
    _emit("info", label, detail)


def warn(label: str, detail: str = "") -> None:
    _emit("warn", label, detail)


# -- Step: Config ──────────────────────────────────────────────

def check_config() -> dict:
    header("Configuration")
    try:
        from config import ProxySettings
        s = ProxySettings()
        result("Config loaded", True)

        checks = {
            "HOST": s.host,
            "PORT": str(s.port),
            "API_KEY": s.api_key[:4] + "..." if s.api_key else "(empty)",
            "UPSTREAM_URL": s.upstream_url,
            "UPSTREAM_TIMEOUT_SECONDS": str(s.upstream_timeout_seconds),
            "RATE_LIMIT": s.rate_limit,
            "CORS_ALLOW_ORIGINS": s.cors_allow_origins or "(none)",
            "LOG_LEVEL": s.log_level,
        }
        for key, val in checks.items():
            print(f"{_INDENT}{key} = {val}")

        if not s.api_key:
            warn("API_KEY is empty, the service will refuse to start")

        return {"settings": s}

    except Exception:
        result("Config loaded", False, traceback.format_exc())
        return {}


# -- Step: Upstream ────────────────────────────────────────────

async def check_upstream(settings) -> dict:
    header("RE/MAX listings API")
    from forwarding import ForwardRequest, UpstreamClient, build_upstream_url

    request = ForwardRequest()
    info("Request URL", build_upstream_url(request, settings.upstream_url))

    upstream = UpstreamClient(settings.upstream_url, settings.upstream_timeout_seconds)
    try:
        started = time.monotonic()
        resp = await upstream.fetch(request)
        elapsed_ms = round((time.monotonic() - started) * 1000)
        result(
            "Upstream reachable",
            True,
            f"Status: {resp.status_code} {resp.reason_phrase}\n"
            f"Content-Type: {resp.content_type or '(none)'}\n"
            f"Size: {len(resp.body)} bytes in {elapsed_ms} ms",
        )
        return {"response": resp}
    except Exception as e:
        result("Upstream reachable", False, f"{type(e).__name__}: {e}")
        return {}
    finally:
        await upstream.close()


# -- Step: Encoding ────────────────────────────────────────────

def check_encoding(response) -> None:
    header("Charset normalization")
    from encoding import is_utf8, normalize_to_utf8

    charset = response.charset
    info("Declared charset", charset)
    if not is_utf8(charset):
        info("Transcoding", f"{charset} -> utf-8")

    try:
        text = normalize_to_utf8(response.body, charset)
        replaced = text.count("�")
        result("Decoded", True, f"{len(text)} characters")
        if replaced:
            warn("Malformed bytes", f"{replaced} replacement characters in output")
        preview = text[:200].replace("\n", " ")
        info("Preview", preview)
    except Exception as e:
        result("Decoded", False, f"{type(e).__name__}: {e}")


# -- Main ──────────────────────────────────────────────────────

async def main() -> None:
    parser = argparse.ArgumentParser(description="RE/MAX proxy diagnostic tool")
    parser.add_argument(
        "--step",
        choices=["config", "upstream", "encoding", "all"],
        default="all",
        help="Which check to run (default: all)",
    )
    args = parser.parse_args()

    header("REMAX-PROXY DIAGNOSTIC TOOL")

    ctx = check_config()
    settings = ctx.get("settings")
    if not settings:
        print("\n  Cannot proceed without valid config. Fix .env first.")
        sys.exit(1)

    if args.step in ("all", "upstream", "encoding"):
        upstream_ctx = await check_upstream(settings)
        response = upstream_ctx.get("response")
        if args.step in ("all", "encoding"):
            if response is not None:
                check_encoding(response)
            else:
                warn("Skipping charset check: no upstream payload")

    header("DONE")
    print()


if __name__ == "__main__":
    asyncio.run(main())
