"""sqlmason configuration - constants read from the environment.

CRITICAL: This file should contain ONLY configuration constants.
NO business logic, NO imports from the rest of the package.
"""

import os
from pathlib import Path

# =============================================================================
# ENVIRONMENT VARIABLES
# =============================================================================

ENV_DB_PATH = "SQLMASON_DB_PATH"
ENV_DB_TIMEOUT = "SQLMASON_DB_TIMEOUT"
ENV_ESCAPE_QUOTES = "SQLMASON_ESCAPE_QUOTES"
ENV_LOG_LEVEL = "SQLMASON_LOG_LEVEL"
ENV_LOG_JSON = "SQLMASON_LOG_JSON"
ENV_LOG_FILE = "SQLMASON_LOG_FILE"


def _get_float(env_var: str, default: float, min_value: float) -> float:
    """Get a positive number from environment or use default."""
    try:
        value = float(os.environ.get(env_var, default))
    except (ValueError, TypeError):
        return default
    return value if value >= min_value else default


def _get_flag(env_var: str, default: bool = False) -> bool:
    value = os.environ.get(env_var)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# =============================================================================
# DATABASE
# =============================================================================

# Database opened by the CLI when --db is not given
DEFAULT_DB_PATH = Path(os.environ.get(ENV_DB_PATH, "./mason.db"))

# Seconds sqlite3 waits on a locked database
DB_TIMEOUT = _get_float(ENV_DB_TIMEOUT, 60.0, 0.0)

# sqlite_master names reserved for SQLite internals, skipped during sync
INTERNAL_TABLE_PREFIX = "sqlite_"

# =============================================================================
# SQL GENERATION
# =============================================================================

# Double embedded single quotes in TEXT values. Off by default so generated
# statements stay identical to the unescaped concatenation output.
ESCAPE_QUOTES = _get_flag(ENV_ESCAPE_QUOTES)

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = os.environ.get(ENV_LOG_LEVEL, "INFO").upper()
LOG_JSON = _get_flag(ENV_LOG_JSON)
LOG_FILE = os.environ.get(ENV_LOG_FILE)

# Directory for error.log written by the CLI error handler
ERROR_LOG_DIR = Path("./.mason")
ERROR_LOG_FILE = ERROR_LOG_DIR / "error.log"
