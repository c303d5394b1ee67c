"""
errors.py - Error Taxonomy
==========================
Every failure the tool reports derives from CsvCurlError so the command line
shell can catch them in one place.

Fatal (stop before or during the run):
    - UsageError : wrong command line arguments or invalid configuration
    - ReadError  : a CSV or template file could not be opened or decoded
    - ParseError : a CSV or template file is malformed

Recoverable (per row, the loop continues):
    - RequestError : the HTTP exchange itself failed (connection, DNS, timeout)
"""


class CsvCurlError(Exception):
    """Base class for all csv-curl errors."""


class UsageError(CsvCurlError):
    """Bad arguments or bad configuration values."""


class ReadError(CsvCurlError):
    """A file could not be opened or decoded."""


class ParseError(CsvCurlError):
    """A file was read but its structure is malformed."""


class RequestError(CsvCurlError):
    """Transport-level failure while sending a request."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url
