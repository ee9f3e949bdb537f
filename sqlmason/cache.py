"""Schema cache - in-memory mirror of a database's tables, fields and records."""

import json
from collections.abc import Iterable, Mapping
from typing import Any

from .column_types import resolve_type
from .exceptions import FieldMismatchError, InvalidTypeError, ValidationError
from .generator import generate_bulk_insert, generate_create_table
from .schema import (
    DEFAULT_FIELD_FLAGS,
    ConflictResponse,
    FieldDefinition,
    Record,
    TableDefinition,
)
from .utils.logging import logger

# Field spec keys accepted by add_field. The first name of each entry is the
# canonical key; the rest are aliases.
FIELD_SPEC_KEYS: dict[str, tuple[str, ...]] = {
    "type": ("type",),
    "primary": ("primary", "primary_key"),
    "notNull": ("notNull", "not_null"),
    "unique": ("unique",),
    "conflictResponse": ("conflictResponse", "conflict_response"),
    "defaultVal": ("defaultVal", "default_value", "default"),
}


def _spec_value(spec: Mapping[str, Any], key: str) -> Any:
    for alias in FIELD_SPEC_KEYS[key]:
        value = spec.get(alias)
        if value is not None:
            return value
    return None


def _conflict_response(value: Any) -> ConflictResponse:
    if value is None:
        return DEFAULT_FIELD_FLAGS.conflict_response
    if isinstance(value, ConflictResponse):
        return value
    try:
        return ConflictResponse(str(value).upper())
    except ValueError as e:
        raise ValidationError(
            f"Invalid conflict response '{value}'",
            {"conflictResponse": value, "allowed": [c.value for c in ConflictResponse]},
        ) from e


class SchemaCache:
    """Owns every cached TableDefinition.

    Tables and fields are append-only: there is no removal operation, and
    field insertion order drives column order in all generated SQL.

    `edited` is set whenever the cache is mutated. Nothing inside the cache
    reads it; callers use it to decide whether a commit is due.
    """

    def __init__(self, escape_quotes: bool = False):
        self.tables: dict[str, TableDefinition] = {}
        self.edited = False
        self.escape_quotes = escape_quotes

    def __contains__(self, table_name: str) -> bool:
        return table_name in self.tables

    def __len__(self) -> int:
        return len(self.tables)

    def get_table(self, table_name: str) -> TableDefinition | None:
        return self.tables.get(table_name)

    def table_names(self) -> list[str]:
        """Table names in creation order."""
        return list(self.tables)

    def clear(self) -> None:
        """Drop every cached table."""
        self.tables = {}
        self.edited = True

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_table(self, table_name: str) -> bool:
        """Add an empty table. Returns False if the name is already taken."""
        if table_name in self.tables:
            logger.debug("create_table: table {table} already exists", table=table_name)
            return False

        self.tables[table_name] = TableDefinition(name=table_name)
        self.edited = True
        return True

    def add_field(self, table_name: str, spec: Mapping[str, Any]) -> bool:
        """Append a field to a table.

        Returns False when the table is unknown, the spec has no name, or the
        field already exists. Attributes missing from the spec take their
        DEFAULT_FIELD_FLAGS value.

        Raises:
            InvalidTypeError: spec names a type missing from the type registry
            ValidationError: spec names an unknown conflict response
        """
        table = self.tables.get(table_name)
        if table is None:
            logger.debug("add_field: unknown table {table}", table=table_name)
            return False

        field_name = spec.get("name")
        if field_name is None or field_name == "":
            logger.debug("add_field: field spec for {table} has no name", table=table_name)
            return False

        if field_name in table.fields:
            logger.debug("add_field: field {table}.{field} already exists",
                         table=table_name, field=field_name)
            return False

        type_name = _spec_value(spec, "type")
        if type_name is None:
            type_name = DEFAULT_FIELD_FLAGS.type
        elif resolve_type(type_name) is None:
            raise InvalidTypeError(type_name, table_name, field_name)

        primary = _spec_value(spec, "primary")
        not_null = _spec_value(spec, "notNull")
        unique = _spec_value(spec, "unique")
        default_value = _spec_value(spec, "defaultVal")

        table.fields[field_name] = FieldDefinition(
            name=field_name,
            type=type_name,
            primary_key=DEFAULT_FIELD_FLAGS.primary if primary is None else bool(primary),
            not_null=DEFAULT_FIELD_FLAGS.not_null if not_null is None else bool(not_null),
            unique=DEFAULT_FIELD_FLAGS.unique if unique is None else bool(unique),
            conflict_response=_conflict_response(_spec_value(spec, "conflictResponse")),
            default_value=(
                DEFAULT_FIELD_FLAGS.default_value if default_value is None else str(default_value)
            ),
        )
        self.edited = True
        return True

    def add_record(self, table_name: str, record: Mapping[str, Any]) -> bool:
        """Append a record to a table.

        Returns False when the table is unknown.

        Raises:
            FieldMismatchError: record keys differ from the table's field names
        """
        table = self.tables.get(table_name)
        if table is None:
            logger.debug("add_record: unknown table {table}", table=table_name)
            return False

        expected = set(table.fields)
        actual = set(record)
        if actual != expected:
            raise FieldMismatchError(table_name, missing=expected - actual, extra=actual - expected)

        table.records.append(dict(record))
        self.edited = True
        return True

    # ------------------------------------------------------------------
    # Snapshots and generation
    # ------------------------------------------------------------------

    def export_table_snapshot(self, table_name: str) -> dict[str, Any] | None:
        """Serializable copy of one table, or None if it is unknown."""
        table = self.tables.get(table_name)
        if table is None:
            return None
        return table.to_dict()

    def export_table_json(self, table_name: str) -> str:
        """JSON text of export_table_snapshot, empty for an unknown table."""
        snapshot = self.export_table_snapshot(table_name)
        if snapshot is None:
            return ""
        return json.dumps(snapshot)

    def get_table_field_sql(self, table_name: str) -> str:
        """CREATE TABLE statement for a cached table."""
        return generate_create_table(self.tables.get(table_name))

    def get_table_record_sql(self, table_name: str, records: Iterable[Record] | None = None) -> str:
        """INSERT OR REPLACE statement for a cached table's records."""
        return generate_bulk_insert(
            self.tables.get(table_name), records, escape_quotes=self.escape_quotes
        )
