from __future__ import annotations

import argparse
import asyncio
import re

import asyncpg
import structlog
from sqlalchemy.engine import make_url

from boutique.core.config import get_settings
from boutique.core.integration_db_safety import assert_safe_integration_db
from boutique.core.logging import configure_logging

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

logger = structlog.get_logger("boutique.scripts.ensure_test_db")


def validate_test_database_url(database_url: str) -> str:
    assert_safe_integration_db(database_url)
    db_name = (make_url(database_url).database or "").strip()
    if IDENTIFIER_RE.fullmatch(db_name) is None:
        raise RuntimeError(
            f"Unsupported database name '{db_name}'. "
            "Only [A-Za-z0-9_] identifiers are supported."
        )
    return db_name


async def ensure_database_exists(database_url: str) -> bool:
    db_name = validate_test_database_url(database_url)
    parsed = make_url(database_url)
    if parsed.username is None:
        raise RuntimeError("DATABASE_URL username is required.")

    conn = await asyncpg.connect(
        host=parsed.host or "localhost",
        port=int(parsed.port or 5432),
        user=parsed.username,
        password=parsed.password,
        database="postgres",
    )
    try:
        exists = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", db_name)
        if exists:
            logger.info("ensure_test_db_exists", database=db_name, host=parsed.host)
            return False

        await conn.execute(f'CREATE DATABASE "{db_name}"')
        logger.info("ensure_test_db_created", database=db_name, host=parsed.host)
        return True
    finally:
        await conn.close()


def main() -> int:
    parser = argparse.ArgumentParser(description="Create the local integration-test database")
    parser.add_argument("--database-url", default=None, help="defaults to DATABASE_URL")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)
    asyncio.run(ensure_database_exists(args.database_url or settings.database_url))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
