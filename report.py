"""Build the token holder report and write it to a JSON file.

Usage:
    python report.py
    python report.py --threshold 50000 --output whales.json

Credentials and endpoints come from the environment or ``.env``
(SIM_API_KEY, INFURA_URL and/or ALCHEMY_URL).
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

from core.container import create_container
from core.environment.config import Settings
from core.exceptions import BaseCustomException
from core.logging.providers import configure_logging
from holders.schemas import HolderReportResponse
from holders.usecases import BuildHolderReportUseCase


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Parameters
    ----------
    argv : list[str] | None
        Arguments without the program name, defaults to ``sys.argv[1:]``

    Returns
    -------
    argparse.Namespace
        Parsed threshold, record limit, output path and verbosity
    """
    parser = argparse.ArgumentParser(description="Token holders above a threshold, with address types")
    parser.add_argument("--threshold", help="Minimum balance in whole tokens (default: THRESHOLD setting)")
    parser.add_argument("--max-records", type=int, help="Stop after this many qualifying holders")
    parser.add_argument("--output", help="Report path (default: OUTPUT_PATH setting)")
    parser.add_argument("--verbose", action="store_true", help="Log every classification")
    return parser.parse_args(argv)


def write_report(report: HolderReportResponse, path: Path) -> None:
    """
    Write the whole report as one JSON document.

    Parameters
    ----------
    report : HolderReportResponse
        Completed report
    path : Path
        Destination file, parent directories are created as needed
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.model_dump_json(indent=2), encoding="utf-8")


def log_table(report: HolderReportResponse, logger: logging.Logger) -> None:
    """
    Log one line per holder: address, balance and classification.

    Parameters
    ----------
    report : HolderReportResponse
        Completed report
    logger : logging.Logger
        Logger instance
    """
    for entry in report.holders:
        logger.info(f"{entry.address}  {entry.balance:>32}  {entry.type}")


async def main(argv: list[str] | None = None) -> int:
    """
    Build the report and write it to disk.

    Parameters
    ----------
    argv : list[str] | None
        Command-line arguments

    Returns
    -------
    int
        Process exit code: 0 on success, 1 when the run failed and no
        report was written
    """
    args = parse_args(argv)
    logger = configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    container = create_container()

    try:
        async with container() as request_container:
            settings = await request_container.get(Settings, component="environment")
            use_case = await request_container.get(BuildHolderReportUseCase, component="holders")
            report = await use_case(threshold=args.threshold, max_records=args.max_records)
    except BaseCustomException as e:
        logger.error(f"Report failed: {e.message}")
        return 1
    finally:
        await container.close()

    output = Path(args.output or settings.output_path)
    write_report(report, output)
    log_table(report, logger)
    logger.info(f"Done. {report.total_holders} holders written to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
