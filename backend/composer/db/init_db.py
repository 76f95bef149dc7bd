import asyncio
import logging

from composer.db.base_class import Base
from composer.db import session as db_session
from composer.models.document_template import DocumentTemplate  # noqa: F401 registers the table

logger = logging.getLogger(__name__)


async def init_db(engine=None):
    """Create the tables on `engine` (defaults to the configured one)."""
    engine = engine or db_session.engine
    if not engine:
        logger.error("Database engine is not initialized. Cannot create tables.")
        return

    async with engine.begin() as conn:
        logger.info("Creating all tables...")
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialization complete.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(levelname)s:%(name)s:%(message)s')
    asyncio.run(init_db())
