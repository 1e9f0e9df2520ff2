"""
Command line entry point.

Usage:
  userstore [--host 127.0.0.1] [--port 8000] [--db data.json] [--flush 60]

--flush takes -1 (manual), 0 (after every change), N seconds, or a policy name
such as ``manual``, ``write-through`` or ``interval(30)``. SIGHUP flushes on
demand; SIGINT/SIGTERM stop the server after a final flush.
"""
from __future__ import annotations

import argparse
import dataclasses

import uvicorn

from userstore.app import create_app
from userstore.core.config import Settings, get_settings
from userstore.core.observability import setup_logging
from userstore.domain.flush_policy import FlushPolicy


def build_parser(defaults: Settings) -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="userstore", description="Serve the user store over HTTP")
    ap.add_argument("--host", default=defaults.host, help="bind address")
    ap.add_argument("--port", type=int, default=defaults.port, help="bind port")
    ap.add_argument("--db", default=defaults.data_file, help="path to the JSON data file")
    ap.add_argument(
        "--flush",
        default=defaults.flush,
        help="-1 = manual, 0 = flush after every change, N = flush every N seconds",
    )
    ap.add_argument(
        "--no-signal-flush",
        action="store_true",
        default=not defaults.flush_on_signal,
        help="do not flush on SIGHUP",
    )
    ap.add_argument("--log-level", default=defaults.log_level)
    ap.add_argument("--log-format", choices=("text", "json"), default=defaults.log_format)
    return ap


def settings_from_args(argv: list[str] | None = None) -> Settings:
    defaults = get_settings()
    ap = build_parser(defaults)
    args = ap.parse_args(argv)
    try:
        FlushPolicy.parse(args.flush)
    except ValueError as exc:
        ap.error(str(exc))
    return dataclasses.replace(
        defaults,
        host=args.host,
        port=args.port,
        data_file=args.db,
        flush=str(args.flush),
        flush_on_signal=not args.no_signal_flush,
        log_level=args.log_level.upper(),
        log_format=args.log_format,
    )


def main(argv: list[str] | None = None) -> None:
    settings = settings_from_args(argv)
    setup_logging(settings.log_level, settings.log_format)
    app = create_app(settings, configure_logging=False)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
