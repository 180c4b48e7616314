from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine


async def check_database_connection(engine: AsyncEngine) -> None:
    """Run a trivial query; raises ``SQLAlchemyError`` when the database is unreachable."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
