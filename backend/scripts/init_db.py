"""Initialize the database - creates all tables and missing columns/indexes."""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dentalce.database import engine, Base
import dentalce.models  # noqa: F401 - registers all models
from dentalce.utils.schema_sync import sync_missing_schema_objects


def init_db():
    print(f"Creating tables on {engine.url.render_as_string(hide_password=True)} ...")
    Base.metadata.create_all(bind=engine)
    applied = sync_missing_schema_objects(engine, Base.metadata)
    if applied:
        print(f"Added missing schema objects: {', '.join(applied)}")
    print("Database initialized successfully.")


if __name__ == "__main__":
    init_db()
