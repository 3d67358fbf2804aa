"""
Tests for the deferred conversion task.
"""
import asyncio
import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.api.v1.onboarding import tasks
from app.api.v1.onboarding.tasks import convert_onboarding_answers_internal, convert_onboarding_answers_task
from app.core.config import settings
from app.db.base import Base
from app.db.session import create_task_session_maker
from app.models.onboarding_answer import OnboardingAnswer
from app.models.user import User


def task_sessions(test_engine):
    """Session maker over the test engine plus a stand-in engine to observe dispose()."""
    engine = MagicMock()
    engine.dispose = AsyncMock()
    session_maker = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    return session_maker, engine


@pytest.mark.asyncio
async def test_internal_conversion_uses_own_session(test_engine, test_user, add_answer):
    user_id = test_user.id
    await add_answer("origins", "Geboren 1950 in Hamburg")
    session_maker, engine = task_sessions(test_engine)

    with patch.object(tasks, "create_task_session_maker", return_value=(session_maker, engine)):
        result = await convert_onboarding_answers_internal(str(user_id))

    assert result["usersUpdated"] is True
    assert result["errors"] == []
    engine.dispose.assert_awaited_once()


@pytest.mark.asyncio
async def test_internal_conversion_without_answers(test_engine, test_user):
    session_maker, engine = task_sessions(test_engine)

    with patch.object(tasks, "create_task_session_maker", return_value=(session_maker, engine)):
        result = await convert_onboarding_answers_internal(str(test_user.id))

    assert result == {
        "usersUpdated": False, "profileUpdated": False, "eventsCreated": 0, "skipped": 0, "errors": [],
    }


@pytest.mark.asyncio
async def test_engine_disposed_when_conversion_raises(test_engine, test_user):
    session_maker, engine = task_sessions(test_engine)

    with patch.object(tasks, "create_task_session_maker", return_value=(session_maker, engine)), \
            patch.object(tasks.OnboardingConverter, "convert", side_effect=RuntimeError("db down")):
        with pytest.raises(RuntimeError):
            await convert_onboarding_answers_internal(str(test_user.id))

    engine.dispose.assert_awaited_once()


def test_task_session_maker_is_unpooled():
    session_maker, engine = create_task_session_maker()
    assert isinstance(engine.pool, NullPool)
    assert session_maker.kw["expire_on_commit"] is False
    asyncio.run(engine.dispose())


def test_task_runs_twice_in_one_worker(tmp_path, monkeypatch):
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'worker.db'}"
    user_id = uuid.uuid4()

    async def seed():
        engine = create_async_engine(database_url, poolclass=NullPool)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with async_sessionmaker(engine, expire_on_commit=False)() as session:
            session.add(User(id=user_id, email="anna@example.com"))
            session.add(OnboardingAnswer(
                user_id=user_id, question_topic="origins",
                answer_text="Geboren 1950 in Hamburg", answer_json={"extracted": False}))
            await session.commit()
        await engine.dispose()

    asyncio.run(seed())
    monkeypatch.setattr(settings, "DATABASE_URL", database_url)
    monkeypatch.setattr(settings, "EXTRACTION_API_URL", None)

    # Each call runs under its own event loop, like a Celery worker process.
    first = convert_onboarding_answers_task(str(user_id))
    second = convert_onboarding_answers_task(str(user_id))

    assert first["usersUpdated"] is True
    assert first["errors"] == []
    assert second["skipped"] == 1
    assert second["errors"] == []
