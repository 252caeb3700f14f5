"""Database migration helpers."""

from __future__ import annotations

import logging
import pathlib
import sys

from dotenv import load_dotenv
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from reconciler.db.session import create_engine_from_env

logger = logging.getLogger(__name__)

SCHEMA_PATH = pathlib.Path(__file__).with_name("schema.sql")


def run_migrations(engine: Engine) -> None:
    """Apply schema.sql to the database. Every statement is re-runnable."""
    statements = _load_statements(SCHEMA_PATH.read_text())
    with engine.begin() as conn:
        for stmt in statements:
            conn.exec_driver_sql(stmt)
    logger.info("Applied %s schema statements", len(statements))


def _load_statements(sql: str) -> list[str]:
    """Split a schema script on ';' after dropping '--' line comments."""
    lines = [line.split("--", 1)[0].rstrip() for line in sql.splitlines()]
    return [stmt.strip() for stmt in "\n".join(lines).split(";") if stmt.strip()]


def main() -> None:
    load_dotenv()
    try:
        engine = create_engine_from_env()
    except KeyError as exc:  # pragma: no cover - env failure is user error
        print(f"Missing environment variable: {exc}", file=sys.stderr)
        sys.exit(2)
    try:
        run_migrations(engine)
    except SQLAlchemyError as exc:
        print(f"Migration failed: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
