"""
Shared test fixtures.

Environment is pinned before the application is imported so that settings
point at an in-memory database, development tokens are disabled and rate
limiting does not interfere with tests that do not exercise it.
"""

import os

os.environ["PYTHON_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret"

from collections.abc import AsyncGenerator  # noqa: E402
from datetime import date  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.auth import Actor, ActorRole  # noqa: E402
from app.core.database import Base, get_db  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.main import app  # noqa: E402
from app.modules.documents.models import AcademicTrack  # noqa: E402
from app.modules.documents.schemas import StudentRecord  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the app, sharing the test session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def director() -> Actor:
    return Actor(
        id="1",
        name="Dr. Carlos Silva",
        role=ActorRole.DIRECTOR,
        school="Escola Técnica de Gaza",
        city="Gaza",
    )


@pytest.fixture
def other_director() -> Actor:
    return Actor(
        id="9",
        name="Ana Machava",
        role=ActorRole.DIRECTOR,
        school="Escola Secundária Machel",
        city="Maputo",
    )


@pytest.fixture
def student() -> Actor:
    return Actor(
        id="3",
        name="Maria Silva",
        role=ActorRole.STUDENT,
        school="Escola Técnica de Gaza",
        city="Gaza",
        class_name="11B",
        grade="11",
        national_id="987654321",
    )


def token_for(actor: Actor) -> str:
    claims = {
        "sub": actor.id,
        "name": actor.name,
        "role": actor.role.value,
        "school": actor.school,
        "city": actor.city,
    }
    if actor.class_name:
        claims["class_name"] = actor.class_name
    if actor.grade:
        claims["grade"] = actor.grade
    if actor.national_id:
        claims["national_id"] = actor.national_id
    return create_access_token(subject=claims)


@pytest.fixture
def director_headers(director: Actor) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_for(director)}"}


@pytest.fixture
def other_director_headers(other_director: Actor) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_for(other_director)}"}


@pytest.fixture
def student_headers(student: Actor) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_for(student)}"}


@pytest.fixture
def maria_silva() -> StudentRecord:
    """Secondary-track student record."""
    return StudentRecord(
        full_name="Maria Silva",
        national_id="987654321",
        enrollment_date=date(2021, 2, 1),
        grade_level="11",
        academic_track=AcademicTrack.SECONDARY,
        grades={"matematica": "15", "portugues": "14", "fisica": "12"},
        remarks="Aluna exemplar",
    )
