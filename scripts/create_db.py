import sys
from pathlib import Path
from urllib.parse import urlparse

import psycopg2
from psycopg2 import sql

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from leadflow.core.config import get_config
from leadflow.database.db import get_engine
from leadflow.models import Base


def create_database(db_url: str) -> None:
    result = urlparse(db_url)
    database = result.path[1:]

    # Connect to the maintenance database to create the target one
    conn = psycopg2.connect(
        database="postgres",
        user=result.username,
        password=result.password,
        host=result.hostname,
        port=result.port,
    )
    conn.autocommit = True
    try:
        with conn.cursor() as cursor:
            cursor.execute("SELECT 1 FROM pg_catalog.pg_database WHERE datname = %s", (database,))
            if cursor.fetchone():
                print(f"Database '{database}' already exists.")
                return
            print(f"Creating database '{database}'...")
            cursor.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(database)))
            print(f"Database '{database}' created successfully.")
    finally:
        conn.close()


def create_tables() -> None:
    Base.metadata.create_all(bind=get_engine())
    print(f"Created {len(Base.metadata.tables)} tables.")


if __name__ == "__main__":
    db_url = get_config().DATABASE_URL
    if db_url.startswith("postgresql"):
        create_database(db_url)
    create_tables()
