"""Runtime schema sync: add columns and indexes that exist on the models but not yet in the database."""

from __future__ import annotations

import logging
from typing import List

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.schema import CreateColumn, CreateIndex, MetaData

logger = logging.getLogger(__name__)


def sync_missing_schema_objects(engine: Engine, metadata: MetaData) -> List[str]:
    """Bring existing tables up to the model metadata. Returns the applied changes."""
    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())
    preparer = engine.dialect.identifier_preparer
    applied: List[str] = []

    with engine.begin() as conn:
        for table in metadata.sorted_tables:
            if table.name not in existing_tables:
                continue

            known_columns = {
                str(col.get("name"))
                for col in inspector.get_columns(table.name)
                if col.get("name")
            }
            table_sql = preparer.format_table(table)
            for column in table.columns:
                if column.name in known_columns:
                    continue
                column_sql = str(CreateColumn(column).compile(dialect=engine.dialect)).strip()
                conn.execute(text(f"ALTER TABLE {table_sql} ADD COLUMN {column_sql}"))
                applied.append(f"{table.name}.{column.name}")

            # partial unique indexes carry storage invariants, so they are created too
            known_indexes = {
                str(idx.get("name"))
                for idx in inspector.get_indexes(table.name)
                if idx.get("name")
            }
            for index in table.indexes:
                if not index.name or index.name in known_indexes:
                    continue
                conn.execute(CreateIndex(index))
                applied.append(index.name)

    for change in applied:
        logger.info("[schema] added %s", change)
    return applied
