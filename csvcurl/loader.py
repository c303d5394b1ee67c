"""
loader.py - Input File Loader
==============================
This module turns the two input files into Python objects:

- The CSV file becomes a sequence of records. Each record is a dict that maps
  a column name (taken from the header row) to that row's value. Column
  names and values are trimmed of surrounding whitespace and every value is
  kept as a string, so identifiers like "007" are not turned into numbers.
- The template file becomes whatever JSON value it contains.

CSV Loading Strategies:
-----------------------
RecordSource supports two strategies behind one interface:

- Whole file (chunk_size=None): pandas parses the entire file in one go.
- Streaming (chunk_size=N): pandas parses N rows at a time and records are
  handed out as each chunk is parsed.

Iterating a RecordSource always starts again from the top of the file, so the
same source can be walked more than once.
"""

import json
import logging
import warnings
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List

import pandas as pd
from pandas.errors import EmptyDataError, ParserError, ParserWarning

from .errors import ParseError, ReadError


logger = logging.getLogger(__name__)

Record = Dict[str, str]

CSV_ENCODING = "utf-8-sig"


# =============================================================================
# CSV READING
# =============================================================================

# Extra column appended to the header names. A row that puts anything in it
# has more fields than the header.
_OVERFLOW = "\x00overflow"

_READ_OPTIONS = dict(
    dtype=str,                # keep every value as text
    keep_default_na=False,    # "NA", "null" and "" stay as strings
    skip_blank_lines=True,
    skipinitialspace=True,
    index_col=False,          # never promote the first column to an index
    encoding=CSV_ENCODING,
)


@contextmanager
def _csv_errors(path: Path) -> Iterator[None]:
    """Translate pandas failures into ReadError / ParseError."""
    with warnings.catch_warnings():
        warnings.simplefilter("error", ParserWarning)
        try:
            yield
        except EmptyDataError:
            raise
        except (OSError, UnicodeDecodeError) as e:
            raise ReadError(f"Cannot read {path}: {e}") from e
        except (ParserError, ParserWarning, ValueError) as e:
            raise ParseError(f"Malformed CSV in {path}: {e}") from e


def _read_header(path: Path) -> List[str]:
    """
    Return the trimmed column names from the first non-blank row.

    Raises:
        ParseError: If two columns share a name
        EmptyDataError: If the file has no rows at all
    """
    with _csv_errors(path):
        top = pd.read_csv(path, header=None, nrows=1, **_READ_OPTIONS)

    header = [str(name).strip() for name in top.iloc[0].tolist()]
    duplicates = sorted({name for name in header if header.count(name) > 1})
    if duplicates:
        raise ParseError(
            f"Malformed CSV in {path}: duplicate column name(s) {', '.join(duplicates)}"
        )
    return header


def _open_frames(path: Path, chunk_size: int | None) -> Iterator[pd.DataFrame]:
    """Yield the CSV contents as one DataFrame, or one DataFrame per chunk."""
    try:
        header = _read_header(path)
    except EmptyDataError:
        logger.debug(f"{path} is empty, no records")
        return

    options = dict(_READ_OPTIONS, header=0, names=header + [_OVERFLOW])

    with _csv_errors(path):
        if chunk_size is None:
            frame = pd.read_csv(path, **options)
        else:
            reader = pd.read_csv(path, chunksize=chunk_size, **options)

    if chunk_size is None:
        yield frame
        return

    with reader:
        while True:
            with _csv_errors(path):
                frame = next(reader, None)
            if frame is None:
                break
            yield frame


def _first_position(mask: pd.Series) -> int | None:
    positions = mask.to_numpy().nonzero()[0]
    return int(positions[0]) if len(positions) else None


def _frame_to_records(frame: pd.DataFrame, path: Path, first_row: int) -> List[Record]:
    """
    Convert one DataFrame into trimmed string records.

    Args:
        frame: Parsed chunk of the CSV, including the overflow column
        path: Source file, for error messages
        first_row: 1-based data row number of the chunk's first row
    """
    if frame.empty:
        return []

    overflow = frame.pop(_OVERFLOW)
    position = _first_position(overflow.notna())
    if position is not None:
        raise ParseError(
            f"Malformed CSV in {path}: data row {first_row + position} has more "
            f"fields than the header ({len(frame.columns)} columns)"
        )

    # Short rows are padded by pandas with NaN; with keep_default_na=False
    # that is the only way a missing value can show up.
    position = _first_position(frame.isna().any(axis=1))
    if position is not None:
        raise ParseError(
            f"Malformed CSV in {path}: data row {first_row + position} has fewer "
            f"fields than the header ({len(frame.columns)} columns)"
        )

    frame = frame.apply(lambda col: col.str.strip())
    return frame.to_dict("records")


class RecordSource:
    """
    A restartable, lazily-read sequence of CSV records.

    Usage:
        source = RecordSource("people.csv")             # whole file per pass
        source = RecordSource("people.csv", 1000)       # 1000 rows per chunk

        for record in source:
            print(record["name"])

        records = source.load()                         # everything as a list
    """

    def __init__(self, filepath: str | Path, chunk_size: int | None = None):
        self.path = Path(filepath)
        self.chunk_size = chunk_size

    def __iter__(self) -> Iterator[Record]:
        row_number = 1
        for frame in _open_frames(self.path, self.chunk_size):
            records = _frame_to_records(frame, self.path, row_number)
            row_number += len(records)
            yield from records

    def load(self) -> List[Record]:
        """Read every record into memory."""
        return list(self)

    def __repr__(self) -> str:
        return f"RecordSource({str(self.path)!r}, chunk_size={self.chunk_size})"


def load_records(filepath: str | Path) -> List[Record]:
    """
    Load every data row of a CSV file.

    Returns:
        List of records in file order, e.g.
        [{'id': '1', 'name': 'Ada'}, {'id': '2', 'name': 'Grace'}]
        A header-only or empty file returns [].

    Raises:
        ReadError: If the file can't be opened or isn't valid UTF-8
        ParseError: If the CSV structure is malformed
    """
    return RecordSource(filepath).load()


def iter_records(filepath: str | Path, chunk_size: int = 500) -> Iterator[Record]:
    """Yield records one by one, parsing ``chunk_size`` rows at a time."""
    return iter(RecordSource(filepath, chunk_size))


# =============================================================================
# TEMPLATE READING
# =============================================================================

def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def load_template(filepath: str | Path) -> Any:
    """
    Load the JSON request template.

    Any JSON value is accepted at the top level (object, array, string, ...).
    The non-standard constants NaN, Infinity and -Infinity are rejected.

    Raises:
        ReadError: If the file can't be opened or isn't valid UTF-8
        ParseError: If the content isn't valid JSON
    """
    path = Path(filepath)
    try:
        with open(path, encoding="utf-8") as f:
            raw = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ReadError(f"Cannot read {path}: {e}") from e

    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except ValueError as e:
        raise ParseError(f"Invalid JSON in {path}: {e}") from e
