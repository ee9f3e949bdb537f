"""Centralized error handler for mason commands."""

import json
import traceback
from collections.abc import Callable
from datetime import datetime
from functools import wraps
from typing import Any

import click

from sqlmason.config import ERROR_LOG_DIR, ERROR_LOG_FILE
from sqlmason.exceptions import SchemaCacheError
from sqlmason.utils.logging import logger


def _command_db_path() -> str | None:
    """Database path given to the running mason command, if any."""
    ctx = click.get_current_context(silent=True)
    if ctx is None:
        return None
    obj = ctx.find_root().obj
    if not isinstance(obj, dict) or obj.get("db_path") is None:
        return None
    return str(obj["db_path"])


def handle_exceptions(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator that logs a failing command and re-raises it as a ClickException.

    The log record and error.log entry carry the command's database path and,
    for schema cache errors, their details dict (offending table, field, keys).
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except click.ClickException:
            raise
        except Exception as e:
            db_path = _command_db_path()
            details = e.details if isinstance(e, SchemaCacheError) else {}
            error = f"{type(e).__name__}: {e}"

            logger.bind(db=db_path, details=details).opt(exception=True).error(
                "mason {cmd} failed on {db}: {err}",
                cmd=func.__name__,
                db=db_path or "<no database>",
                err=error,
            )

            ERROR_LOG_DIR.mkdir(parents=True, exist_ok=True)
            with open(ERROR_LOG_FILE, "a", encoding="utf-8") as f:
                f.write("\n" + "=" * 80 + "\n")
                f.write(f"[{datetime.now().isoformat()}] mason {func.__name__}\n")
                f.write(f"database: {db_path or '-'}\n")
                if details:
                    f.write(f"details: {json.dumps(details, default=str)}\n")
                f.write("=" * 80 + "\n")
                f.write(f"{error}\n\n")
                f.write(traceback.format_exc())
                f.write("=" * 80 + "\n\n")

            raise click.ClickException(
                f"{error}\n\nFull traceback logged to: {ERROR_LOG_FILE}"
            ) from e

    return wrapper
