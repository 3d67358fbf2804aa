"""
Explicit transaction boundaries for multi-step writes.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """
    Execute operations atomically, all or nothing.

    Usage:
        async with atomic(session):
            await session.execute(stmt)
            session.add(obj)
            # commits on success, rolls back and re-raises on error
    """
    try:
        yield db
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Transaction rolled back: {str(e)}", exc_info=True)
        raise
