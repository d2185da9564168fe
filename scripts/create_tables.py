"""Create the database tables from the SQLAlchemy models.

Usage (from the project root, with POSTGRES_* set in the environment or .env):

    python scripts/create_tables.py            # create missing tables
    python scripts/create_tables.py --drop     # drop and recreate everything

Uses the same asyncpg engine as the app, so no extra driver is needed.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

# Add project root to Python path so we can import pkg and app modules
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

load_dotenv()

from app.core.config import settings  # noqa: E402
from pkg.db_util.postgres_conn import PostgresConnection  # noqa: E402
from pkg.db_util.sql_alchemy.declarative_base import Base  # noqa: E402
from pkg.db_util.types import PostgresConfig  # noqa: E402
from pkg.log.logger import get_logger  # noqa: E402

# Import all model modules so tables are registered in Base.metadata
from app.chat.repository.sql_schema import conversation as _conv  # noqa: F401,E402
from app.dates.repository.sql_schema import date as _date  # noqa: F401,E402
from app.user.repository.sql_schema import user as _user  # noqa: F401,E402

logger = get_logger("create_tables")

# Reverse dependency order so foreign keys never block a drop
DROP_ORDER = ("messages", "conversations", "dates", "user_profiles", "users")


async def create_tables(drop: bool = False) -> None:
    config = PostgresConfig(
        host=settings.POSTGRES_HOST,
        port=settings.POSTGRES_PORT,
        username=settings.POSTGRES_USER,
        password=settings.POSTGRES_PASSWORD,
        database=settings.POSTGRES_DB,
    )
    postgres = PostgresConnection(config, logger)
    engine = await postgres.get_engine()
    try:
        async with engine.begin() as conn:
            if drop:
                for table in DROP_ORDER:
                    await conn.execute(text(f"DROP TABLE IF EXISTS {table} CASCADE"))
                logger.info("Old tables dropped")
            await conn.run_sync(Base.metadata.create_all)

        async with engine.connect() as conn:
            result = await conn.execute(text(
                "SELECT table_name FROM information_schema.tables "
                "WHERE table_schema = 'public' ORDER BY table_name"
            ))
            tables = [row[0] for row in result]
        logger.info(f"Tables in database: {', '.join(tables) or '(none)'}")
    finally:
        await postgres.close_engine()


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--drop", action="store_true", help="drop existing tables first")
    args = parser.parse_args()

    missing = [k for k in ("POSTGRES_HOST", "POSTGRES_USER", "POSTGRES_DB") if not getattr(settings, k)]
    if missing:
        logger.error(f"Missing required settings: {', '.join(missing)}")
        sys.exit(2)

    try:
        asyncio.run(create_tables(drop=args.drop))
    except SQLAlchemyError as e:
        logger.error(f"SQLAlchemy error: {e}")
        raise


if __name__ == '__main__':
    main()
