"""Ingest entrypoint - Standalone script for running one ingestion cycle.

Usage:
    python -m dcp_ingest.ingest_entrypoint                       # All stations
    python -m dcp_ingest.ingest_entrypoint --station 431450101   # One station
    python -m dcp_ingest.ingest_entrypoint --config other.json
    python -m dcp_ingest.ingest_entrypoint --clean               # Remove stored data

Exit codes: 0 on success, 1 when the remote fetch fails, 2 on a config error.
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from dcp_ingest.core.config import load_ingest_config, settings
from dcp_ingest.core.errors import ConfigError, TransportError
from dcp_ingest.core.logging import get_logger
from dcp_ingest.services.ingest_service import IngestService

logger = get_logger("ingest_entrypoint")

EXIT_OK = 0
EXIT_TRANSPORT = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fetch new DCP readings and store them per station.")
    parser.add_argument("--config", default=settings.CONFIG_PATH, help="Path to config.json")
    parser.add_argument(
        "--station",
        action="append",
        dest="stations",
        help="Restrict the cycle to this station code (repeatable)",
    )
    parser.add_argument("--clean", action="store_true", help="Delete stored data for the selected stations and exit")
    return parser


def clean(service: IngestService, stations: Optional[List[str]]) -> int:
    codes = stations or service.config.station_codes
    removed = sum(1 for code in codes if service.purge_station(code))
    print(f"Removed data for {removed} stations in {service.config.data_dir}")
    return removed


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for one ingestion cycle."""
    args = build_parser().parse_args(argv)

    try:
        service = IngestService(load_ingest_config(args.config))
        if args.clean:
            clean(service, args.stations)
            return EXIT_OK
        report = asyncio.run(service.run_cycle(args.stations))
    except ConfigError as exc:
        logger.error(f"Configuration error: {exc}")
        print(f"Configuration error. {exc}", file=sys.stderr)
        return EXIT_CONFIG
    except TransportError as exc:
        logger.error(f"Cycle aborted: {exc}")
        print(f"Got error while retrieving DCPs. {exc}", file=sys.stderr)
        return EXIT_TRANSPORT

    logger.info(f"Cycle completed: saved={report.saved_count} stations={len(report.stations)}")
    print(f"Done. Saved {report.saved_count} readings in {service.config.data_dir}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
