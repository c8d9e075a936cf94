"""Command-line entry point for verifying and registering certificates."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .logging_pipeline import configure_structured_logging, detach_structured_logging
from .schemas import ServiceResponse
from .service import CertificateService, build_service
from .settings import get_settings


def _read_certificate(path: str) -> bytes | None:
    """Read the certificate bytes, or ``None`` when the file cannot be read."""
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        print(f"Cannot read {path}: {exc}", file=sys.stderr)
        return None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="certchain",
        description="Verify and register certificates on the blockchain registry.",
    )
    subcommands = parser.add_subparsers(dest="command", required=True)

    verify = subcommands.add_parser("verify", help="Check whether a file is registered.")
    verify.add_argument("file", help="Path to the certificate file.")

    register = subcommands.add_parser("register", help="Register a file's hash.")
    register.add_argument("file", help="Path to the certificate file.")
    register.add_argument(
        "--metadata",
        "-m",
        help="Free-text metadata stored with the record. Defaults to a timestamp.",
    )

    subcommands.add_parser("health", help="Show local configuration state.")
    return parser


async def _dispatch(service: CertificateService, args: argparse.Namespace) -> ServiceResponse:
    if args.command == "verify":
        return await service.verify(_read_certificate(args.file))
    if args.command == "register":
        return await service.register(_read_certificate(args.file), args.metadata)
    return service.health()


def main(argv: list[str] | None = None) -> int:
    """Run a certchain command and print its JSON response."""
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:  # pragma: no cover - controlled via tests
        exit_code = int(exc.code) if isinstance(exc.code, int) else 1
        return 0 if exit_code == 0 else 1

    settings = get_settings()
    logger = logging.getLogger("certchain")
    listener = configure_structured_logging(logger, level=settings.log_level)
    try:
        service = build_service(settings)
        response = asyncio.run(_dispatch(service, args))
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1
    finally:
        detach_structured_logging(logger, listener)

    print(json.dumps(response.to_dict(), separators=(",", ":")))
    return 0 if response.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
