"""Tests for committing the cache to SQLite and synchronizing it back."""

import sqlite3

import pytest

from sqlmason.cache import SchemaCache
from sqlmason.orchestrator import SchemaSync, column_level_unique


class RecordingDatabase:
    """Collaborator stand-in that records executed statements."""

    def __init__(self, fail_queries=False):
        self.executed = []
        self.fail_queries = fail_queries

    def execute(self, sql):
        self.executed.append(sql)

    def query_one(self, sql, params=()):
        return None

    def query_all(self, sql, params=()):
        if self.fail_queries:
            raise sqlite3.OperationalError("database is locked")
        return []


@pytest.fixture
def populated_db(temp_db):
    """Temporary database with two user tables and an internal one."""
    temp_db.executescript("""
        CREATE TABLE users (
            id BIGINT PRIMARY KEY NOT NULL,
            email VARCHAR(255) UNIQUE,
            active BOOLEAN NOT NULL DEFAULT 0,
            note TEXT
        );
        CREATE TABLE logs (id INTEGER PRIMARY KEY AUTOINCREMENT, msg TEXT);
        INSERT INTO users VALUES (1, 'ann@example.com', 1, 'first');
        INSERT INTO users VALUES (2, NULL, 0, NULL);
        INSERT INTO logs (msg) VALUES ('hello');
    """)
    temp_db.commit()
    return temp_db


class TestCommit:
    """Cache -> database."""

    def test_commit_schema_executes_create(self, users_cache):
        db = RecordingDatabase()
        assert SchemaSync(users_cache, db).commit_table_schema("users") is True
        assert db.executed == [users_cache.get_table_field_sql("users")]

    def test_commit_records_executes_insert(self, users_cache):
        db = RecordingDatabase()
        assert SchemaSync(users_cache, db).commit_table_records("users") is True
        assert db.executed == ["INSERT OR REPLACE INTO users (id, name) VALUES\n(1,'Ann');"]

    def test_commit_records_without_records_is_noop(self):
        cache = SchemaCache()
        cache.create_table("t")
        cache.add_field("t", {"name": "a"})
        db = RecordingDatabase()

        assert SchemaSync(cache, db).commit_table_records("t") is False
        assert db.executed == []

    def test_commit_unknown_table_is_noop(self, users_cache):
        db = RecordingDatabase()
        sync = SchemaSync(users_cache, db)
        assert sync.commit_table_schema("missing") is False
        assert sync.commit_table_records("missing") is False
        assert db.executed == []

    def test_commit_to_sqlite(self, users_cache, db, temp_db):
        sync = SchemaSync(users_cache, db)
        sync.commit_table_schema("users")
        sync.commit_table_records("users")

        rows = temp_db.execute("SELECT id, name FROM users").fetchall()
        assert rows == [(1, "Ann")]

    def test_commit_schema_twice_is_harmless(self, users_cache, db):
        sync = SchemaSync(users_cache, db)
        assert sync.commit_table_schema("users") is True
        assert sync.commit_table_schema("users") is True

    def test_insert_or_replace_overwrites(self, users_cache, db, temp_db):
        sync = SchemaSync(users_cache, db)
        sync.commit_all()

        users_cache.get_table("users").records.clear()
        users_cache.add_record("users", {"id": 1, "name": "Annie"})
        sync.commit_table_records("users")

        assert temp_db.execute("SELECT id, name FROM users").fetchall() == [(1, "Annie")]

    def test_collaborator_errors_propagate(self, db):
        cache = SchemaCache()
        cache.create_table("t")
        cache.add_field("t", {"name": "a", "type": "INTEGER", "notNull": True})
        cache.add_field("t", {"name": "b", "type": "TEXT"})
        cache.add_record("t", {"a": 1, "b": "it's"})
        sync = SchemaSync(cache, db)
        sync.commit_table_schema("t")

        with pytest.raises(sqlite3.OperationalError):
            sync.commit_table_records("t")

    def test_commit_all_in_creation_order(self, users_cache):
        users_cache.create_table("empty")
        users_cache.create_table("roles")
        users_cache.add_field("roles", {"name": "role", "type": "TEXT"})
        db = RecordingDatabase()

        committed = SchemaSync(users_cache, db).commit_all()

        assert committed == ["users", "roles"]
        assert [sql.split("\n")[0] for sql in db.executed] == [
            "CREATE TABLE IF NOT EXISTS [users] (",
            "INSERT OR REPLACE INTO users (id, name) VALUES",
            "CREATE TABLE IF NOT EXISTS [roles] (",
        ]


class TestSynchronize:
    """Database -> cache."""

    def test_lists_user_tables_only(self, populated_db, db):
        cache = SchemaCache()
        SchemaSync(cache, db).synchronize_from_database()
        assert cache.table_names() == ["users", "logs"]

    def test_field_metadata(self, populated_db, db):
        cache = SchemaCache()
        SchemaSync(cache, db).synchronize_from_database()
        fields = cache.get_table("users").fields

        assert list(fields) == ["id", "email", "active", "note"]
        assert fields["id"].type == "BIGINT"
        assert fields["id"].primary_key is True
        assert fields["id"].not_null is True
        assert fields["email"].type == "VARCHAR"
        assert fields["email"].unique is True
        assert fields["active"].not_null is True
        assert fields["active"].default_value == "0"
        assert fields["note"].unique is False
        assert fields["note"].default_value == ""

    def test_records(self, populated_db, db):
        cache = SchemaCache()
        SchemaSync(cache, db).synchronize_from_database()

        assert cache.get_table("users").records == [
            {"id": 1, "email": "ann@example.com", "active": 1, "note": "first"},
            {"id": 2, "email": None, "active": 0, "note": None},
        ]
        assert cache.get_table("logs").records == [{"id": 1, "msg": "hello"}]

    def test_replaces_existing_cache(self, populated_db, db, users_cache):
        users_cache.create_table("stale")
        SchemaSync(users_cache, db).synchronize_from_database()

        assert "stale" not in users_cache
        assert users_cache.get_table("users").field_names() == ["id", "email", "active", "note"]

    def test_resets_edited(self, populated_db, db):
        cache = SchemaCache()
        SchemaSync(cache, db).synchronize_from_database()
        assert cache.edited is False

    def test_empty_declared_type_uses_default(self, temp_db, db):
        temp_db.execute("CREATE TABLE loose (a, b TEXT)")
        temp_db.commit()
        cache = SchemaCache()
        SchemaSync(cache, db).synchronize_from_database()
        assert cache.get_table("loose").fields["a"].type == "BIGINT"

    def test_regenerated_sql_round_trips(self, populated_db, db, tmp_path):
        cache = SchemaCache()
        SchemaSync(cache, db).synchronize_from_database()

        conn = sqlite3.connect(tmp_path / "copy.db")
        try:
            conn.execute(cache.get_table_field_sql("users"))
            conn.execute(cache.get_table_record_sql("users"))
            rows = conn.execute("SELECT id, email, active, note FROM users ORDER BY id").fetchall()
        finally:
            conn.close()

        assert rows == [(1, "ann@example.com", 1, "first"), (2, None, 0, None)]

    def test_committed_cache_syncs_back_identically(self, users_cache, db):
        """Primary key columns declared UNIQUE keep the flag after a resync."""
        SchemaSync(users_cache, db).commit_all()

        mirror = SchemaCache()
        SchemaSync(mirror, db).synchronize_from_database()

        assert mirror.get_table("users").fields == users_cache.get_table("users").fields
        assert mirror.get_table_field_sql("users") == users_cache.get_table_field_sql("users")
        assert mirror.get_table_record_sql("users") == users_cache.get_table_record_sql("users")

    def test_blob_round_trips(self, temp_db, db, tmp_path):
        temp_db.execute("CREATE TABLE files (id INTEGER PRIMARY KEY, data BLOB)")
        temp_db.execute("INSERT INTO files VALUES (1, ?)", (b"\x00\x01ab",))
        temp_db.commit()

        cache = SchemaCache()
        SchemaSync(cache, db).synchronize_from_database()
        sql = cache.get_table_record_sql("files")
        assert sql.endswith("(1,X'00016162');")

        conn = sqlite3.connect(tmp_path / "copy.db")
        try:
            conn.execute(cache.get_table_field_sql("files"))
            conn.execute(sql)
            rows = conn.execute("SELECT id, data FROM files").fetchall()
        finally:
            conn.close()

        assert rows == [(1, b"\x00\x01ab")]

    def test_unregistered_types_use_affinity(self, temp_db, db):
        temp_db.execute(
            "CREATE TABLE ev (id INTEGER PRIMARY KEY, at TIMESTAMP, payload JSON, n INTEGER UNSIGNED)"
        )
        temp_db.execute("INSERT INTO ev VALUES (1, '2024-01-01 10:00:00', 3, 5)")
        temp_db.commit()

        cache = SchemaCache()
        SchemaSync(cache, db).synchronize_from_database()
        fields = cache.get_table("ev").fields

        assert fields["at"].type == "DATETIME"
        assert fields["payload"].type == "NUMERIC"
        assert fields["n"].type == "INTEGER"
        assert cache.get_table_record_sql("ev").endswith("(1,'2024-01-01 10:00:00',3,5);")

    def test_failure_leaves_cache_wiped(self, users_cache):
        with pytest.raises(sqlite3.OperationalError):
            SchemaSync(users_cache, RecordingDatabase(fail_queries=True)).synchronize_from_database()
        assert len(users_cache) == 0


class TestDatabaseManager:
    """The sqlite3 collaborator operations."""

    def test_query_one(self, populated_db, db):
        row = db.query_one("SELECT email FROM users WHERE id = ?", (1,))
        assert row["email"] == "ann@example.com"

    def test_query_one_empty(self, populated_db, db):
        assert db.query_one("SELECT email FROM users WHERE id = ?", (99,)) is None

    def test_query_all_in_order(self, populated_db, db):
        rows = db.query_all("SELECT id FROM users ORDER BY id")
        assert [r["id"] for r in rows] == [1, 2]

    def test_execute_error_rolls_back(self, db):
        with pytest.raises(sqlite3.OperationalError):
            db.execute("CREATE TABLE (")
        assert db.query_all("SELECT name FROM sqlite_master") == []


class TestColumnLevelUnique:
    """UNIQUE read from the stored CREATE TABLE text."""

    def test_column_constraints(self):
        sql = (
            'CREATE TABLE t (a INTEGER PRIMARY KEY UNIQUE, "b c" TEXT unique, [d] TEXT, '
            "`e` TEXT CONSTRAINT u_e UNIQUE, f TEXT CHECK (f != 'UNIQUE'), UNIQUE (d, f))"
        )
        assert column_level_unique(sql) == {"a", "b c", "e"}

    def test_generated_statement(self, users_cache):
        sql = users_cache.get_table_field_sql("users")
        assert column_level_unique(sql.rstrip(";")) == {"id"}

    def test_no_definition(self):
        assert column_level_unique("") == set()
