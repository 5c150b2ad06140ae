"""Load a municipal container CSV into the recycling point tables.

Usage::

    python -m scripts.import_points --csv contenedores_madrid.csv [--dry-run]

Credentials come from ``BACKEND_URL`` / ``BACKEND_ANON_KEY`` (environment or
``.env``). The run returns a summary dictionary so tests can assert on it.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

import httpx
from dotenv import load_dotenv

from app.clients.backend import BackendClient
from app.core.config import Settings, get_settings
from app.core.exceptions import DomainError
from app.ingest.containers_csv import import_containers, read_container_rows
from app.logging import setup_logging
from app.repositories.backend import (
    BackendCatalogRepository,
    BackendPointImportRepository,
)

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an integer: {value}") from exc
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import recycling containers from CSV")
    parser.add_argument("--csv", type=Path, required=True, help="Path to the CSV file")
    parser.add_argument("--delimiter", default=";", help="Field separator (default: ';')")
    parser.add_argument(
        "--batch-size",
        type=_positive_int,
        default=None,
        help="Rows per insert batch (default: IMPORT_BATCH_SIZE or 100)",
    )
    parser.add_argument(
        "--encoding", default="utf-8-sig", help="File encoding (default: utf-8-sig)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and validate without writing",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Also log to this file")
    return parser


async def run_import(
    csv_path: Path,
    *,
    settings: Settings,
    delimiter: str = ";",
    encoding: str = "utf-8-sig",
    batch_size: int | None = None,
    dry_run: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, int | dict[str, int]]:
    if not csv_path.is_file():
        msg = f"CSV file not found: {csv_path}"
        raise FileNotFoundError(msg)

    rows = read_container_rows(csv_path, delimiter=delimiter, encoding=encoding)
    async with BackendClient.from_settings(settings, transport=transport) as client:
        return await import_containers(
            rows,
            catalog=BackendCatalogRepository(client),
            writer=BackendPointImportRepository(client),
            batch_size=batch_size or settings.import_batch_size,
            dry_run=dry_run,
            lat_integer_digits=settings.import_lat_integer_digits,
            lng_integer_digits=settings.import_lng_integer_digits,
        )


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    args = _build_parser().parse_args(argv)
    setup_logging(args.log_file, log_format="console")

    settings = get_settings()
    if not settings.backend_configured:
        logger.error("BACKEND_URL and BACKEND_ANON_KEY must be set")
        return 2
    if not args.csv.is_file():
        logger.error("CSV file not found: %s", args.csv)
        return 2

    logger.info("Importing %s (dry_run=%s)", args.csv, args.dry_run)
    try:
        summary = asyncio.run(
            run_import(
                args.csv,
                settings=settings,
                delimiter=args.delimiter,
                encoding=args.encoding,
                batch_size=args.batch_size,
                dry_run=args.dry_run,
            )
        )
    except (DomainError, OSError, UnicodeDecodeError) as exc:
        logger.error("Import failed: %s", exc)
        return 1

    logger.info("Summary: %s", summary)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
