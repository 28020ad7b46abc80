"""Schema migrations, run from code.

Learn: The schema is owned by Alembic (db/migrations). The same revisions
run from the `alembic` CLI (packages/backend/alembic.ini) and from the app
lifespan, which calls run_migrations() at startup when
TASKTRACK_MIGRATE_ON_STARTUP is on. The test suite builds its schema with
Base.metadata.create_all instead.
"""

import asyncio
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config

from tasktrack.config import settings

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def alembic_config(database_url: Optional[str] = None) -> Config:
    """Alembic Config without an ini file, pointed at our migrations."""
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    # configparser interpolation: a literal % must be doubled.
    url = database_url or settings.database_url
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return config


def upgrade_to_head(database_url: Optional[str] = None) -> None:
    command.upgrade(alembic_config(database_url), "head")


async def run_migrations(database_url: Optional[str] = None) -> None:
    """Upgrade the database to the latest revision.

    env.py drives its own event loop (asyncio.run), so the upgrade runs in
    a worker thread.
    """
    await asyncio.to_thread(upgrade_to_head, database_url)
