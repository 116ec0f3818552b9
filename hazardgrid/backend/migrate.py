"""Create the session tables in PostgreSQL."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

from hazardgrid.backend.config import load_settings
from hazardgrid.backend.logger import get_logger

log = get_logger(__name__)

SCHEMA_PATH = Path(__file__).with_name("db_schema.sql")


def _psycopg_connect(database_url: str) -> Any:
    import psycopg

    return psycopg.connect(database_url)


def load_schema(path: Path = SCHEMA_PATH) -> str:
    return path.read_text(encoding="utf-8")


def apply_schema(database_url: str | None, connect: Callable[[str], Any] = _psycopg_connect) -> None:
    """Run db_schema.sql against the database; every statement is idempotent."""
    if not database_url:
        raise RuntimeError("HAZARDGRID_DATABASE_URL is required for migration")

    schema_sql = load_schema()
    with connect(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(schema_sql)
        conn.commit()
    log.info("applied %s", SCHEMA_PATH.name)


def main() -> None:
    apply_schema(load_settings().database_url)


if __name__ == "__main__":
    main()
