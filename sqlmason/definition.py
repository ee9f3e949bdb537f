"""Build a SchemaCache from a JSON table definition document.

Document shape:

    {
      "tables": {
        "users": {
          "fields": [{"name": "id", "type": "BIGINT", "primary": true}, ...],
          "records": [{"id": 1}, ...]
        }
      }
    }

Tables, fields and records are added in document order, so the document's
field order becomes column order in generated SQL.
"""

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .cache import SchemaCache
from .exceptions import ValidationError
from .utils.logging import logger


def build_cache(definition: Mapping[str, Any], escape_quotes: bool = False) -> SchemaCache:
    """Create a new cache holding every table in the definition.

    Raises:
        ValidationError: malformed document, duplicate table or field
        InvalidTypeError: a field declares an unregistered type
        FieldMismatchError: a record's keys differ from its table's fields
    """
    tables = definition.get("tables")
    if not isinstance(tables, Mapping):
        raise ValidationError("Definition must contain a 'tables' object")

    cache = SchemaCache(escape_quotes=escape_quotes)
    for table_name, table_def in tables.items():
        if not isinstance(table_def, Mapping):
            raise ValidationError(f"Table '{table_name}' must be an object", {"table": table_name})

        cache.create_table(table_name)

        for spec in table_def.get("fields", []):
            if not cache.add_field(table_name, spec):
                raise ValidationError(
                    f"Field {spec.get('name')!r} rejected for table '{table_name}'",
                    {"table": table_name, "field": spec.get("name")},
                )

        for record in table_def.get("records", []):
            cache.add_record(table_name, record)

    logger.debug("Built cache with {count} tables from definition", count=len(cache))
    return cache


def load_definition(path: Path, escape_quotes: bool = False) -> SchemaCache:
    """Read a JSON definition file and build its cache."""
    with open(path, encoding="utf-8") as f:
        definition = json.load(f)
    return build_cache(definition, escape_quotes=escape_quotes)
