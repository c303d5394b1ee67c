"""
dispatch.py - Row-by-Row Request Loop
=====================================
For every record, in file order:

1. Render the template with the record's values
2. Serialize the result to compact JSON
3. Log the row number, the target and the body
4. POST it and log the status and response text

A row fails when the server answers with a non-2xx status or when the
request never completes. Failed rows are logged and the loop moves on to the
next record; nothing is retried. Only one request is in flight at a time.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Protocol, Tuple

from .errors import RequestError
from .template import render


logger = logging.getLogger(__name__)


class JsonPoster(Protocol):
    def post_json(self, url: str, body: str) -> Tuple[int, str]: ...


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class RowResult:
    """Outcome of one row's request."""

    index: int                  # 1-based row number
    body: str                   # serialized request body
    status: int = 0             # 0 when no response was received
    response_text: str = ""
    error: str | None = None    # transport error message, if any

    @property
    def ok(self) -> bool:
        return self.error is None and 200 <= self.status < 300


@dataclass
class RunSummary:
    """Aggregate over all rows of one run."""

    results: List[RowResult] = field(default_factory=list)
    elapsed_sec: float = 0.0

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def failed_rows(self) -> List[int]:
        return [r.index for r in self.results if not r.ok]

    @property
    def failed(self) -> int:
        return len(self.failed_rows)

    @property
    def succeeded(self) -> int:
        return self.total - self.failed

    @property
    def has_failure(self) -> bool:
        return any(not r.ok for r in self.results)


# =============================================================================
# CORE LOOP
# =============================================================================

def serialize(document: Any) -> str:
    """Compact, strict JSON text with non-ASCII characters kept as-is."""
    return json.dumps(document, ensure_ascii=False, allow_nan=False, separators=(",", ":"))


def send_row(
    client: JsonPoster,
    index: int,
    record: Mapping[str, Any],
    template: Any,
    url: str,
) -> RowResult:
    """
    Render, send and log a single row.

    Never raises for HTTP or transport problems; they are recorded on the
    returned RowResult instead.
    """
    body = serialize(render(template, record))

    logger.info(f"--- Row {index} ---")
    logger.info(f"POST {url}")
    logger.info(f"Body: {body}")

    result = RowResult(index=index, body=body)

    try:
        result.status, result.response_text = client.post_json(url, body)
    except RequestError as e:
        result.error = str(e)
        logger.error(f"Request failed: {e}")
        return result

    if result.ok:
        logger.info(f"Status: {result.status}")
    else:
        logger.warning(f"Status: {result.status}")
    logger.info(f"Response: {result.response_text}")

    return result


def dispatch(
    records: Iterable[Mapping[str, Any]],
    template: Any,
    url: str,
    client: JsonPoster,
) -> RunSummary:
    """
    Send one request per record, strictly in order.

    Args:
        records: Records in file order (a list or a lazy iterator)
        template: Parsed JSON template, never modified
        url: Target URL for every request
        client: Anything with ``post_json(url, body) -> (status, text)``

    Returns:
        RunSummary with one RowResult per record
    """
    summary = RunSummary()
    start_time = time.time()

    for i, record in enumerate(records, start=1):
        summary.results.append(send_row(client, i, record, template, url))

    summary.elapsed_sec = time.time() - start_time

    logger.info("-" * 50)
    logger.info(f"Processing complete in {summary.elapsed_sec:.1f} seconds")
    logger.info(f"Total Rows: {summary.total}")
    logger.info(f"Succeeded (2xx): {summary.succeeded}")
    logger.info(f"Failed: {summary.failed}")
    if summary.failed_rows:
        logger.info(f"Failed rows: {', '.join(str(n) for n in summary.failed_rows)}")
    logger.info("-" * 50)

    return summary
