"""SQL text generation from cached table definitions.

Every function here is pure: output depends only on the definition passed
in, and nothing is mutated. Generating twice from the same cache state
yields byte-identical text.

Text values are concatenated into the statement without escaping unless
escape_quotes is requested. A value containing a single quote therefore
produces broken SQL by default.
"""

from collections.abc import Iterable
from typing import Any

from .column_types import is_text_type
from .schema import FieldDefinition, Record, TableDefinition
from .utils.logging import logger


def generate_create_table(table: TableDefinition | None) -> str:
    """Generate the CREATE TABLE IF NOT EXISTS statement for a table.

    Returns an empty string for an unknown (None) table or a table that has
    no fields yet.
    """
    if table is None or not table.fields:
        return ""

    col_defs = [f"    {f.to_sql()}" for f in table.fields.values()]
    sql = f"CREATE TABLE IF NOT EXISTS [{table.name}] (\n" + ",\n".join(col_defs) + "\n);"

    logger.debug("Generated CREATE TABLE for {table} ({count} fields)",
                 table=table.name, count=len(col_defs))
    return sql


def format_value(field: FieldDefinition, value: Any, escape_quotes: bool = False) -> str:
    """Render one value for a VALUES tuple.

    TEXT kind values are single-quoted. Everything else is written as its
    literal text. Booleans render as true/false, None as NULL and bytes as an
    unquoted X'..' blob literal whatever the column kind.
    """
    if value is None:
        return "NULL"
    if isinstance(value, (bytes, bytearray)):
        return f"X'{bytes(value).hex().upper()}'"

    literal = _literal(value)
    if is_text_type(field.type):
        if escape_quotes:
            literal = literal.replace("'", "''")
        return f"'{literal}'"
    return literal


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def generate_bulk_insert(
    table: TableDefinition | None,
    records: Iterable[Record] | None = None,
    escape_quotes: bool = False,
) -> str:
    """Generate one INSERT OR REPLACE statement covering every record.

    Uses the table's stored records unless an override sequence is given.
    Returns an empty string when the table is unknown or there is nothing
    to insert, so callers never see a VALUES clause with no tuples.
    """
    if table is None:
        return ""

    rows = list(table.records if records is None else records)
    if not rows or not table.fields:
        return ""

    fields = list(table.fields.values())
    column_list = ", ".join(f.name for f in fields)

    tuples = []
    for row in rows:
        values = ",".join(format_value(f, row.get(f.name), escape_quotes) for f in fields)
        tuples.append(f"({values})")

    logger.debug("Generated INSERT OR REPLACE for {table} ({count} records)",
                 table=table.name, count=len(tuples))
    return f"INSERT OR REPLACE INTO {table.name} ({column_list}) VALUES\n" + ",\n".join(tuples) + ";"
