"""
config.py - Configuration Management
=====================================
This module loads optional runtime settings from environment variables.
A .env file in the current working directory is read first; variables that
are already set in the real environment take precedence over it.

The command line itself never changes: it is always exactly
``csv-curl <file.csv> <template.json> <url>``. Everything tunable lives here.

Environment Variables Used:
---------------------------
- CSV_CURL_TIMEOUT_SEC : (Optional) Per-request timeout in seconds (default: no timeout)
- CSV_CURL_LOG_LEVEL   : (Optional) DEBUG, INFO, WARNING or ERROR (default: INFO)
- CSV_CURL_STREAM      : (Optional) "true" to read CSV rows lazily instead of all at once
- CSV_CURL_CHUNK_SIZE  : (Optional) Rows parsed per chunk when streaming (default: 500)

Example .env file:
------------------
CSV_CURL_TIMEOUT_SEC=30
CSV_CURL_STREAM=true
CSV_CURL_CHUNK_SIZE=1000
"""

from dataclasses import dataclass
import os
from pathlib import Path
from dotenv import load_dotenv

from .errors import UsageError


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


# =============================================================================
# SETTINGS DATACLASS
# =============================================================================

@dataclass
class Settings:
    """Container for all application configuration values."""

    # None means wait for the server as long as it takes
    timeout_sec: float | None = None

    log_level: str = "INFO"

    # Streaming mode parses the CSV in chunks while requests are being sent
    stream: bool = False
    chunk_size: int = 500


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _clean(v: str | None) -> str | None:
    """
    Clean and normalize an environment variable value.

    Examples:
        _clean('  30  ')     -> '30'
        _clean('"true"')     -> 'true'
        _clean('')           -> None
        _clean(None)         -> None
    """
    if v is None:
        return None

    v = v.strip()

    if (v.startswith('"') and v.endswith('"')) or (v.startswith("'") and v.endswith("'")):
        v = v[1:-1]

    return v if v else None


def _parse_bool(name: str, raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise UsageError(f"{name} must be true or false, got {raw!r}")


def _parse_timeout(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        timeout = float(raw)
    except ValueError as e:
        raise UsageError(f"CSV_CURL_TIMEOUT_SEC must be a number, got {raw!r}") from e
    if timeout <= 0:
        raise UsageError(f"CSV_CURL_TIMEOUT_SEC must be positive, got {raw!r}")
    return timeout


def _parse_chunk_size(raw: str | None) -> int:
    if raw is None:
        return Settings.chunk_size
    try:
        size = int(raw)
    except ValueError as e:
        raise UsageError(f"CSV_CURL_CHUNK_SIZE must be an integer, got {raw!r}") from e
    if size < 1:
        raise UsageError(f"CSV_CURL_CHUNK_SIZE must be at least 1, got {raw!r}")
    return size


# =============================================================================
# MAIN CONFIGURATION LOADER
# =============================================================================

def load_settings(env_file: Path | None = None) -> Settings:
    """
    Load application configuration from environment variables.

    Args:
        env_file: Optional path to a .env file (default: ./.env)

    Returns:
        Settings: A dataclass containing all configuration values

    Raises:
        UsageError: If a variable is set to a value that cannot be used
    """
    # override=False keeps real environment variables ahead of the .env file
    load_dotenv(dotenv_path=env_file or Path.cwd() / ".env", override=False)

    level = (_clean(os.getenv("CSV_CURL_LOG_LEVEL")) or "INFO").upper()
    if level not in LOG_LEVELS:
        raise UsageError(
            f"CSV_CURL_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {level!r}"
        )

    return Settings(
        timeout_sec=_parse_timeout(_clean(os.getenv("CSV_CURL_TIMEOUT_SEC"))),
        log_level=level,
        stream=_parse_bool("CSV_CURL_STREAM", _clean(os.getenv("CSV_CURL_STREAM")), False),
        chunk_size=_parse_chunk_size(_clean(os.getenv("CSV_CURL_CHUNK_SIZE"))),
    )
