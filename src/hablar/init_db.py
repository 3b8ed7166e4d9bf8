import asyncio
import logging
from pathlib import Path
from sqlalchemy import text
from .config import load_settings
from .db import Base, ensure_schema, make_engine
from . import models  # noqa: F401  registers tables on Base.metadata

logger = logging.getLogger(__name__)

async def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = load_settings()
    engine = make_engine(settings)
    try:
        if settings.database_url.startswith("sqlite"):
            Path("./data").mkdir(parents=True, exist_ok=True)
        await ensure_schema(engine)
        if settings.database_url.startswith("sqlite"):
            async with engine.begin() as conn:
                await conn.execute(text("PRAGMA journal_mode=WAL;"))
                await conn.execute(text("PRAGMA synchronous=NORMAL;"))
        logger.info("schema_ready tables=%s", sorted(Base.metadata.tables))
    finally:
        await engine.dispose()

if __name__ == "__main__":
    asyncio.run(main())
