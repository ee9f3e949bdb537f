"""Column type registry.

Maps every declared column type name the cache accepts to the kind of value
it holds. The kind decides how values are rendered in generated SQL: only
TEXT kind values are single-quoted.
"""

import re
from enum import Enum
from types import MappingProxyType


class TypeKind(Enum):
    """Semantic kind of a declared column type."""

    NUMERIC = "numeric"
    TEXT = "text"
    BOOLEAN = "boolean"


# ============================================================================
# DECLARED TYPE TABLE
# Read-only view: DATA_TYPES["X"] = ... raises TypeError
# ============================================================================

DATA_TYPES = MappingProxyType({
    # Integers
    "INT": TypeKind.NUMERIC,
    "INTEGER": TypeKind.NUMERIC,
    "TINYINT": TypeKind.NUMERIC,
    "SMALLINT": TypeKind.NUMERIC,
    "MEDIUMINT": TypeKind.NUMERIC,
    "BIGINT": TypeKind.NUMERIC,
    "UNISIGNED BIG INT": TypeKind.NUMERIC,  # kept for definitions written against the old table
    "UNSIGNED BIG INT": TypeKind.NUMERIC,
    "INT2": TypeKind.NUMERIC,
    "INT8": TypeKind.NUMERIC,

    # Text
    "CHARACTER": TypeKind.TEXT,
    "VARCHAR": TypeKind.TEXT,
    "VARYING CHARACTER": TypeKind.TEXT,
    "NCHAR": TypeKind.TEXT,
    "NATIVE CHARACTER": TypeKind.TEXT,
    "NVARCHAR": TypeKind.TEXT,
    "TEXT": TypeKind.TEXT,
    "CLOB": TypeKind.TEXT,
    "BLOB": TypeKind.TEXT,

    # Reals
    "REAL": TypeKind.NUMERIC,
    "DOUBLE": TypeKind.NUMERIC,
    "DOUBLE PRECISION": TypeKind.NUMERIC,
    "FLOAT": TypeKind.NUMERIC,

    # Numeric affinity
    "NUMERIC": TypeKind.NUMERIC,
    "DECIMAL": TypeKind.NUMERIC,
    "BOOLEAN": TypeKind.BOOLEAN,
    "DATE": TypeKind.TEXT,
    "DATETIME": TypeKind.TEXT,
})

_SIZE_SUFFIX = re.compile(r"\s*\([^)]*\)\s*$")


def resolve_type(type_name: str) -> TypeKind | None:
    """Return the kind for a declared type name, or None if it is not registered."""
    if not isinstance(type_name, str):
        return None
    return DATA_TYPES.get(type_name)


def normalize_type_name(declared: str | None) -> str:
    """Normalize a declaration read from a live database.

    'varchar(255)' -> 'VARCHAR', 'double  precision' -> 'DOUBLE PRECISION'.
    Returns an empty string for an empty declaration.
    """
    if not declared:
        return ""
    name = _SIZE_SUFFIX.sub("", declared)
    return " ".join(name.upper().split())


def is_text_type(type_name: str) -> bool:
    """Check whether values of this declared type are emitted quoted."""
    return resolve_type(type_name) is TypeKind.TEXT


def affinity_type_name(declared: str) -> str:
    """Map a normalized declaration to a registered name with the same affinity.

    Registered names are returned unchanged. Anything else follows SQLite's
    column affinity rules (INT, then CHAR/CLOB/TEXT, then BLOB, then
    REAL/FLOA/DOUB, otherwise NUMERIC), except that DATE/TIME names become
    DATETIME so their values stay quoted like DATE and DATETIME columns.
    'TIMESTAMP' -> 'DATETIME', 'INTEGER UNSIGNED' -> 'INTEGER', 'JSON' -> 'NUMERIC'.
    """
    if declared in DATA_TYPES:
        return declared
    if "INT" in declared:
        return "INTEGER"
    if "CHAR" in declared or "CLOB" in declared or "TEXT" in declared:
        return "TEXT"
    if "BLOB" in declared:
        return "BLOB"
    if "REAL" in declared or "FLOA" in declared or "DOUB" in declared:
        return "REAL"
    if "DATE" in declared or "TIME" in declared:
        return "DATETIME"
    return "NUMERIC"
