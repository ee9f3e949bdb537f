"""Sync/commit orchestration between a SchemaCache and a live database.

Commits push generated SQL out through the collaborator's execute().
synchronize_from_database() is a full cold rebuild: the cache is wiped
first and then refilled from sqlite_master, PRAGMA metadata and table
contents. If any step fails the exception propagates and the cache is left
wiped; callers must not assume a partial table set survived.

Round trips are issued one at a time. The cache has no lock, so callers
sharing one cache across threads must serialize commits and syncs.
"""

import re

from .cache import SchemaCache
from .column_types import affinity_type_name, normalize_type_name
from .config import INTERNAL_TABLE_PREFIX
from .database import DatabaseCollaborator
from .schema import DEFAULT_FIELD_FLAGS
from .utils.logging import logger

_USER_TABLES_SQL = (
    "SELECT name, sql FROM sqlite_master "
    "WHERE type='table' AND name NOT LIKE ? ESCAPE '\\' "
    "ORDER BY rowid"
)

_TABLE_CONSTRAINTS = ("CONSTRAINT", "PRIMARY", "UNIQUE", "CHECK", "FOREIGN")

_COLUMN_DEFINITION = re.compile(
    r'(?:\[([^\]]+)\]|"((?:[^"]|"")+)"|`([^`]+)`|(\S+))(.*)', re.DOTALL
)
_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")
_UNIQUE_KEYWORD = re.compile(r"\bUNIQUE\b", re.IGNORECASE)


def _split_definitions(body: str) -> list[str]:
    """Split a CREATE TABLE body on top-level commas."""
    parts = []
    depth = 0
    closing = None
    start = 0
    for i, ch in enumerate(body):
        if closing:
            if ch == closing:
                closing = None
        elif ch in "'\"`":
            closing = ch
        elif ch == "[":
            closing = "]"
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(body[start:i])
            start = i + 1
    parts.append(body[start:])
    return [p.strip() for p in parts if p.strip()]


def column_level_unique(create_sql: str) -> set[str]:
    """Columns whose own definition in a CREATE TABLE statement says UNIQUE.

    SQLite builds no separate index for a column that is both PRIMARY KEY and
    UNIQUE, so PRAGMA index_list cannot report it; the declaration can.
    """
    if "(" not in create_sql:
        return set()
    body = create_sql[create_sql.index("(") + 1:create_sql.rindex(")")]

    unique = set()
    for definition in _split_definitions(body):
        match = _COLUMN_DEFINITION.match(definition)
        bracketed, quoted, backticked, bare, rest = match.groups()
        if bare is not None and bare.upper() in _TABLE_CONSTRAINTS:
            continue
        name = bracketed or backticked or bare or quoted.replace('""', '"')
        if _UNIQUE_KEYWORD.search(_STRING_LITERAL.sub("''", rest)):
            unique.add(name)
    return unique


class SchemaSync:
    """Pushes cached schema and records to a database, or pulls them back."""

    def __init__(self, cache: SchemaCache, db: DatabaseCollaborator):
        self.cache = cache
        self.db = db

    # ------------------------------------------------------------------
    # Commit (cache -> database)
    # ------------------------------------------------------------------

    def commit_table_schema(self, table_name: str) -> bool:
        """Execute the CREATE TABLE IF NOT EXISTS statement for one table.

        Returns False without touching the database when nothing could be
        generated (unknown table, or no fields yet).
        """
        sql = self.cache.get_table_field_sql(table_name)
        if not sql:
            logger.debug("commit_table_schema: nothing to create for {table}", table=table_name)
            return False

        self.db.execute(sql)
        logger.info("Committed schema for table {table}", table=table_name)
        return True

    def commit_table_records(self, table_name: str) -> bool:
        """Execute the INSERT OR REPLACE statement for one table's records.

        An empty record set is a no-op: execute() is not called and False is
        returned.
        """
        sql = self.cache.get_table_record_sql(table_name)
        if not sql:
            logger.debug("commit_table_records: no records for {table}", table=table_name)
            return False

        self.db.execute(sql)
        logger.info("Committed {count} records to {table}",
                    count=len(self.cache.tables[table_name].records), table=table_name)
        return True

    def commit_all(self) -> list[str]:
        """Commit schema then records for every cached table, in creation order.

        Returns the names of the tables whose schema was committed.
        """
        committed = []
        for table_name in self.cache.table_names():
            if self.commit_table_schema(table_name):
                committed.append(table_name)
            self.commit_table_records(table_name)
        return committed

    # ------------------------------------------------------------------
    # Sync (database -> cache)
    # ------------------------------------------------------------------

    def synchronize_from_database(self) -> None:
        """Replace the entire cache with the live database's tables and rows."""
        self.cache.clear()

        pattern = INTERNAL_TABLE_PREFIX.replace("_", "\\_") + "%"
        tables = self.db.query_all(_USER_TABLES_SQL, (pattern,))

        for row in tables:
            table_name = row["name"]
            create_sql = row["sql"] or ""

            self.cache.create_table(table_name)
            self._load_fields(table_name, create_sql)
            self._load_records(table_name, without_rowid="WITHOUT ROWID" in create_sql.upper())

        self.cache.edited = False
        logger.info("Synchronized {count} tables from database", count=len(tables))

    def _unique_columns(self, table_name: str, create_sql: str) -> set[str]:
        """Columns carrying a single-column UNIQUE constraint."""
        unique = column_level_unique(create_sql)
        for index in self.db.query_all(f"PRAGMA index_list([{table_name}])"):
            if not index["unique"] or index["origin"] != "u":
                continue
            columns = self.db.query_all(f"PRAGMA index_info([{index['name']}])")
            if len(columns) == 1:
                unique.add(columns[0]["name"])
        return unique

    def _load_fields(self, table_name: str, create_sql: str = "") -> None:
        unique = self._unique_columns(table_name, create_sql)

        for column in self.db.query_all(f"PRAGMA table_info([{table_name}])"):
            declared = normalize_type_name(column["type"])
            type_name = affinity_type_name(declared) if declared else DEFAULT_FIELD_FLAGS.type
            if declared and type_name != declared:
                logger.debug("Mapped {table}.{field} type {declared} to {type_name}",
                             table=table_name, field=column["name"],
                             declared=declared, type_name=type_name)
            default = column["dflt_value"]

            self.cache.add_field(table_name, {
                "name": column["name"],
                "type": type_name,
                "primary": column["pk"] > 0,
                "notNull": bool(column["notnull"]),
                "unique": column["name"] in unique,
                "defaultVal": "" if default is None else str(default),
            })

    def _load_records(self, table_name: str, without_rowid: bool = False) -> None:
        sql = f"SELECT * FROM [{table_name}]"
        if not without_rowid:
            sql += " ORDER BY rowid"

        rows = self.db.query_all(sql)
        for row in rows:
            self.cache.add_record(table_name, dict(zip(row.keys(), row)))

        logger.debug("Loaded {count} records from {table}", count=len(rows), table=table_name)
