"""
run_csvcurl.py - Main Application Entry Point
=============================================
Reads a CSV file and a JSON template, then POSTs one rendered JSON body per
CSV row to a fixed URL, logging every status and response.

What it does:
-------------
1. Loads optional settings from the environment (.env file)
2. Reads the CSV file (all at once, or lazily when CSV_CURL_STREAM=true)
3. Reads the JSON template
4. For each row, fills the template and POSTs it to the URL
5. Exits 1 if any row failed, 0 otherwise

Usage:
------
    csv-curl people.csv template.json https://example.com/api/people
    python -m csvcurl.run_csvcurl people.csv template.json https://example.com/api/people

Exit Codes:
-----------
    0 : every row returned 2xx, or the CSV had no data rows
    1 : bad arguments, unreadable/malformed input file, or at least one failed row
"""

import sys
import logging
import argparse
import itertools
from typing import Iterable, List, Sequence

from .config import Settings, load_settings
from .dispatch import dispatch
from .errors import CsvCurlError, ParseError, ReadError, UsageError
from .http_client import HttpClient
from .loader import Record, RecordSource, load_template
from .template import find_placeholders


# =============================================================================
# LOGGING SETUP
# =============================================================================

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%H:%M:%S'
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


# =============================================================================
# COMMAND LINE ARGUMENT PARSING
# =============================================================================

class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises UsageError instead of exiting with code 2."""

    def error(self, message):
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    # Three positionals and nothing else, not even -h
    parser = _ArgumentParser(prog='csv-curl', add_help=False)
    parser.add_argument('csv_file')
    parser.add_argument('template_file')
    parser.add_argument('url')
    return parser


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Raises:
        UsageError: If an argument is missing, empty, or an unknown one is given
    """
    args = build_parser().parse_args(argv)

    empty = [name for name, value in vars(args).items() if not value.strip()]
    if empty:
        raise UsageError(f"empty argument(s): {', '.join(empty)}")

    return args


# =============================================================================
# INPUT HELPERS
# =============================================================================

def _read_records(csv_file: str, settings: Settings) -> Iterable[Record] | None:
    """
    Open the CSV according to the configured strategy.

    Returns None when the file has no data rows. In streaming mode only the
    first chunk has been parsed when this returns.
    """
    if not settings.stream:
        records = RecordSource(csv_file).load()
        logger.debug(f"Loaded {len(records)} rows from {csv_file}")
        return records or None

    rows = iter(RecordSource(csv_file, settings.chunk_size))
    first = next(rows, None)
    if first is None:
        return None
    return itertools.chain([first], rows)


def _warn_unknown_placeholders(template, first_record: Record):
    unknown = sorted(find_placeholders(template) - set(first_record))
    if unknown:
        logger.warning(
            f"Template placeholders with no matching CSV column (left as-is): "
            f"{', '.join(unknown)}"
        )


# =============================================================================
# MAIN EXECUTION FUNCTION
# =============================================================================

def run(csv_file: str, template_file: str, url: str, settings: Settings) -> int:
    """
    Execute one batch run and return the process exit code.

    File problems are reported before any request is sent, except in
    streaming mode where a malformed row further down the file can only be
    found once the rows before it have been sent.
    """
    try:
        records = _read_records(csv_file, settings)
    except CsvCurlError as e:
        logger.error(f"Error reading CSV file: {e}")
        return EXIT_FAILURE

    try:
        template = load_template(template_file)
    except CsvCurlError as e:
        logger.error(f"Error reading template file: {e}")
        return EXIT_FAILURE

    if records is None:
        logger.info("No data rows found in CSV.")
        return EXIT_OK

    if isinstance(records, list):
        _warn_unknown_placeholders(template, records[0])
        logger.info(f"Sending {len(records)} request(s) to {url}")
    else:
        first = next(records)
        _warn_unknown_placeholders(template, first)
        records = itertools.chain([first], records)
        logger.info(f"Sending request(s) to {url} (streaming rows)")

    with HttpClient(settings) as client:
        try:
            summary = dispatch(records, template, url, client)
        except (ReadError, ParseError) as e:
            logger.error(f"Error reading CSV file: {e}")
            logger.error("Run stopped; rows before the error have already been sent")
            return EXIT_FAILURE

    return EXIT_FAILURE if summary.has_failure else EXIT_OK


def main(argv: List[str] | None = None) -> int:
    """
    Console entry point.

    Args:
        argv: Arguments without the program name (default: sys.argv[1:])

    Returns:
        Process exit code
    """
    try:
        args = parse_arguments(argv)
    except UsageError as e:
        parser = build_parser()
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    try:
        settings = load_settings()
    except UsageError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_FAILURE

    logging.getLogger().setLevel(settings.log_level)
    logger.debug(f"Settings: {settings}")

    return run(args.csv_file, args.template_file, args.url, settings)


# =============================================================================
# SCRIPT ENTRY POINT
# =============================================================================

if __name__ == '__main__':
    sys.exit(main())
