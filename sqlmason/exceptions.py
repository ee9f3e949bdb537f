"""Exceptions raised by the schema cache.

Soft rejections (duplicate table, duplicate field, unknown table) are
reported as a False return value and never raise. The classes below cover
the failure modes that abort the operation instead.
"""


class SchemaCacheError(Exception):
    """Base class for fatal schema cache errors.

    Attributes:
        message: Human-readable error description
        details: Dict with the offending table, field or keys for debugging
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ValidationError(SchemaCacheError):
    """Raised when a field definition carries an invalid attribute."""


class InvalidTypeError(ValidationError):
    """Raised when a declared column type is not in the type registry."""

    def __init__(self, type_name: str, table: str | None = None, field: str | None = None):
        super().__init__(
            f"Invalid column type '{type_name}'"
            + (f" for field '{table}.{field}'" if table and field else ""),
            {"type": type_name, "table": table, "field": field},
        )
        self.type_name = type_name


class FieldMismatchError(SchemaCacheError):
    """Raised when a record's keys do not match its table's field names."""

    def __init__(self, table: str, missing: set[str], extra: set[str]):
        parts = []
        if missing:
            parts.append(f"missing {sorted(missing)}")
        if extra:
            parts.append(f"unexpected {sorted(extra)}")
        super().__init__(
            f"Record Definition Error: Field mismatch in table '{table}' ({', '.join(parts)})",
            {"table": table, "missing": sorted(missing), "extra": sorted(extra)},
        )
        self.table = table
        self.missing = missing
        self.extra = extra
