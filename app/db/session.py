from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool
from app.core.config import settings

engine = create_async_engine(
    str(settings.DATABASE_URL),
    echo=settings.DATABASE_ECHO,
    pool_pre_ping=True,
)
SessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request. Routes commit or roll back themselves."""
    async with SessionLocal() as session:
        yield session


def create_task_session_maker() -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """
    Engine and session maker for one worker task.

    Celery tasks run each job under a fresh asyncio.run() loop, and pooled
    asyncpg connections cannot cross loops, so every task gets an unpooled
    engine and disposes it when done.
    """
    task_engine = create_async_engine(
        str(settings.DATABASE_URL),
        echo=settings.DATABASE_ECHO,
        poolclass=NullPool,
    )
    return async_sessionmaker(
        bind=task_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    ), task_engine
