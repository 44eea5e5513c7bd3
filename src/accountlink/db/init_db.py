# src/accountlink/db/init_db.py
import asyncio
from typing import Optional

from accountlink.core.config import Settings, get_settings
from accountlink.db.session import Base, create_engine
from accountlink.db import models  # noqa: F401  ensure model classes are registered


async def init_models(settings: Optional[Settings] = None) -> None:
    """
    Creates all tables defined in SQLAlchemy models.
    Safe to run multiple times due to CREATE IF NOT EXISTS behavior.
    Production schemas are managed by Alembic; this is for local dev.
    """
    engine = create_engine(settings or get_settings())
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()


# Allows:
#   python -m accountlink.db.init_db
if __name__ == "__main__":
    asyncio.run(init_models())
