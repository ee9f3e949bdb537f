"""Schema cache data model - field, table and record definitions."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# A prospective row: field name -> scalar (int, float, str, bool; None and bytes only
# when read back from a live database).
Record = dict[str, Any]


class ConflictResponse(Enum):
    """SQLite ON CONFLICT resolution algorithms."""

    ROLLBACK = "ROLLBACK"
    ABORT = "ABORT"
    FAIL = "FAIL"
    IGNORE = "IGNORE"
    REPLACE = "REPLACE"


@dataclass(frozen=True)
class FieldFlags:
    """Attribute values a new field takes when its spec leaves them out."""

    type: str = "BIGINT"
    primary: bool = False
    not_null: bool = False
    unique: bool = False
    conflict_response: ConflictResponse = ConflictResponse.ABORT
    default_value: str = ""


DEFAULT_FIELD_FLAGS = FieldFlags()


@dataclass(frozen=True)
class FieldDefinition:
    """One column of a cached table. Immutable once added."""

    name: str
    type: str = DEFAULT_FIELD_FLAGS.type
    primary_key: bool = DEFAULT_FIELD_FLAGS.primary
    not_null: bool = DEFAULT_FIELD_FLAGS.not_null
    unique: bool = DEFAULT_FIELD_FLAGS.unique
    conflict_response: ConflictResponse = DEFAULT_FIELD_FLAGS.conflict_response
    default_value: str = DEFAULT_FIELD_FLAGS.default_value

    def to_sql(self) -> str:
        """Generate the column clause used inside CREATE TABLE.

        Flag order is fixed: PRIMARY KEY, NOT NULL, UNIQUE, DEFAULT.
        UNIQUE columns never get a DEFAULT clause.
        """
        parts = [f"[{self.name}]", self.type]
        if self.primary_key:
            parts.append("PRIMARY KEY ON CONFLICT ABORT")
        if self.not_null:
            parts.append("NOT NULL")
        if self.unique:
            parts.append("UNIQUE")
        if self.default_value != "" and not self.unique:
            parts.append(f"DEFAULT {self.default_value}")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "primary": self.primary_key,
            "notNull": self.not_null,
            "unique": self.unique,
            "conflictResponse": self.conflict_response.value,
            "defaultVal": self.default_value,
        }


@dataclass
class TableDefinition:
    """A cached table: ordered field definitions plus pending records."""

    name: str
    fields: dict[str, FieldDefinition] = field(default_factory=dict)
    records: list[Record] = field(default_factory=list)

    def field_names(self) -> list[str]:
        """Get list of field names in the order they were added."""
        return list(self.fields)

    def to_dict(self) -> dict[str, Any]:
        """Serializable copy of the table, field order preserved."""
        return {
            "name": self.name,
            "fields": [f.to_dict() for f in self.fields.values()],
            "keys": self.field_names(),
            "records": [dict(r) for r in self.records],
        }
