"""mason CLI - inspect and populate SQLite databases through the schema cache."""

from pathlib import Path

import click
from rich.table import Table

from sqlmason import __version__
from sqlmason.cache import SchemaCache
from sqlmason.config import DEFAULT_DB_PATH, ESCAPE_QUOTES
from sqlmason.database import DatabaseManager
from sqlmason.definition import load_definition
from sqlmason.orchestrator import SchemaSync
from sqlmason.ui import console, print_header, print_success
from sqlmason.utils.error_handler import handle_exceptions
from sqlmason.utils.logging import configure_file_logging


def _synced_cache(db_path: Path) -> SchemaCache:
    """Open the database, mirror it into a fresh cache and close it again.

    The file must already exist: sqlite3 would otherwise create an empty one.
    """
    if not db_path.is_file():
        raise click.ClickException(f"Database not found: {db_path}")

    cache = SchemaCache(escape_quotes=ESCAPE_QUOTES)
    with DatabaseManager(db_path) as db:
        SchemaSync(cache, db).synchronize_from_database()
    return cache


def _selected_tables(cache: SchemaCache, table: str | None) -> list[str]:
    if table is None:
        return cache.table_names()
    if table not in cache:
        raise click.ClickException(f"Unknown table: {table}")
    return [table]


@click.group()
@click.version_option(version=__version__, prog_name="mason")
@click.help_option("-h", "--help")
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="SQLite database file (default: $SQLMASON_DB_PATH or ./mason.db)",
)
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Also write rotating debug logs to this directory",
)
@click.pass_context
def cli(ctx, db_path, log_dir):
    """mason - SQLite schema cache and SQL generator

    \b
    QUICK START:
      mason tables                   # List tables in the database
      mason schema users             # CREATE TABLE for one table
      mason dump                     # INSERT OR REPLACE for every table
      mason apply tables.json        # Create tables and insert records"""
    if log_dir is not None:
        configure_file_logging(log_dir)
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db_path or DEFAULT_DB_PATH


@cli.command()
@click.pass_context
@handle_exceptions
def tables(ctx):
    """List tables with their field and record counts."""
    cache = _synced_cache(ctx.obj["db_path"])

    table = Table(title=str(ctx.obj["db_path"]))
    table.add_column("Table", style="table")
    table.add_column("Fields", justify="right")
    table.add_column("Records", justify="right")
    for name in cache.table_names():
        definition = cache.get_table(name)
        table.add_row(name, str(len(definition.fields)), str(len(definition.records)))

    console.print(table)


@cli.command()
@click.argument("table", required=False)
@click.pass_context
@handle_exceptions
def schema(ctx, table):
    """Print CREATE TABLE statements regenerated from the database."""
    cache = _synced_cache(ctx.obj["db_path"])
    for name in _selected_tables(cache, table):
        sql = cache.get_table_field_sql(name)
        if sql:
            click.echo(sql)


@cli.command()
@click.argument("table", required=False)
@click.pass_context
@handle_exceptions
def dump(ctx, table):
    """Print INSERT OR REPLACE statements for the database's rows."""
    cache = _synced_cache(ctx.obj["db_path"])
    for name in _selected_tables(cache, table):
        sql = cache.get_table_record_sql(name)
        if sql:
            click.echo(sql)


@cli.command()
@click.argument("definition", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--dry-run", is_flag=True, help="Print the SQL instead of executing it")
@click.pass_context
@handle_exceptions
def apply(ctx, definition, dry_run):
    """Create the tables and insert the records described in a JSON file.

    \b
    DEFINITION FORMAT:
      {"tables": {"users": {
          "fields":  [{"name": "id", "type": "BIGINT", "primary": true}],
          "records": [{"id": 1}]}}}"""
    cache = load_definition(definition, escape_quotes=ESCAPE_QUOTES)

    if dry_run:
        for name in cache.table_names():
            for sql in (cache.get_table_field_sql(name), cache.get_table_record_sql(name)):
                if sql:
                    click.echo(sql)
        return

    with DatabaseManager(ctx.obj["db_path"]) as db:
        committed = SchemaSync(cache, db).commit_all()

    print_header("APPLY")
    for name in committed:
        console.print(f"  [table]{name}[/table]: {len(cache.get_table(name).records)} records")
    print_success(f"Applied {len(committed)} tables to {ctx.obj['db_path']}")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
