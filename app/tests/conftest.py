"""
Pytest configuration and fixtures.

Provides fixtures for:
- In-memory SQLite sessions with a fresh schema per test
- HTTP client bound to the test session
- A registered test user with auth headers
"""
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import get_db
from app.models.user import User
from app.models.onboarding_answer import OnboardingAnswer
from app.models.pending_onboarding import PendingOnboarding  # noqa: F401
from app.models.life_event import LifeEvent  # noqa: F401
from app.models.user_profile import UserProfile  # noqa: F401

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_user(db_session) -> User:
    user = User(email="anna@example.com", first_name="Anna", last_name="Berg", is_active=True)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(test_user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(test_user.id)}"}


@pytest.fixture
def add_answer(db_session, test_user):
    """Factory storing an onboarding answer for the test user."""
    user_id = test_user.id

    async def _add(topic: str, text: str, answer_json: dict | None = None) -> OnboardingAnswer:
        answer = OnboardingAnswer(
            user_id=user_id,
            question_topic=topic,
            answer_text=text,
            answer_json=answer_json or {"extracted": False},
        )
        db_session.add(answer)
        await db_session.commit()
        return answer

    return _add
