"""
Pytest fixtures for PeerPulse backend tests.
"""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing app
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./peerpulse_test.db")
# Keep PBKDF2 fast in tests
os.environ.setdefault("VOTER_TOKEN_HASH_ITERATIONS", "1000")


@dataclass
class SeededSurvey:
    """Identifiers and plaintext tokens of a seeded survey."""

    survey_id: str
    candidate_ids: dict[str, str]
    voter_tokens: dict[str, str]
    voter_token_ids: dict[str, str]
    access_tokens: dict[str, str]
    anonymous_tokens: list[str] = field(default_factory=list)
    anonymous_token_ids: list[str] = field(default_factory=list)
    strength_option_ids: list[str] = field(default_factory=list)
    weakness_option_ids: list[str] = field(default_factory=list)


@pytest.fixture
async def db_engine(tmp_path: Any) -> AsyncGenerator[Any, None]:
    """File-backed SQLite database with all tables created."""
    from db.session import close_db, configure_engine, init_db

    engine = configure_engine(f"sqlite+aiosqlite:///{tmp_path / 'peerpulse.db'}")
    await init_db()
    yield engine
    await close_db()


@pytest.fixture
def session_factory(db_engine: Any) -> Any:
    from db.session import get_session_factory

    return get_session_factory()


@pytest.fixture
async def db_session(session_factory: Any) -> AsyncGenerator[Any, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed_survey(session_factory: Any) -> Callable[..., Awaitable[SeededSurvey]]:
    """
    Factory seeding a survey with candidates, named tokens and options.

    Every candidate gets one named voter token and an access token. Anonymous
    tokens are minted on request. Pass legacy=True to store named tokens
    without a lookup digest.
    """
    from core.security import (
        compute_token_lookup,
        generate_candidate_token,
        generate_voter_token,
        hash_candidate_token,
        hash_voter_token,
    )
    from models import Candidate, FeedbackOption, FeedbackType, Survey, VoterToken

    async def _seed(
        policy: str = "multi_candidate",
        status: str = "active",
        candidates: tuple[str, ...] = ("xavier", "yara", "zane"),
        anonymous: int = 0,
        legacy: bool = False,
        expires_at: Optional[Any] = None,
    ) -> SeededSurvey:
        async with session_factory() as session:
            survey = Survey(
                title="Quarterly peer review",
                status=status,
                token_policy=policy,
                expires_at=expires_at,
            )
            session.add(survey)
            await session.flush()

            seeded = SeededSurvey(
                survey_id=survey.id,
                candidate_ids={},
                voter_tokens={},
                voter_token_ids={},
                access_tokens={},
            )

            for order, text in enumerate(["Communication", "Ownership", "Mentoring"]):
                option = FeedbackOption(
                    survey_id=survey.id,
                    type=FeedbackType.STRENGTH.value,
                    option_text=text,
                    display_order=order,
                )
                session.add(option)
                await session.flush()
                seeded.strength_option_ids.append(option.id)

            for order, text in enumerate(["Time management", "Delegation"]):
                option = FeedbackOption(
                    survey_id=survey.id,
                    type=FeedbackType.WEAKNESS.value,
                    option_text=text,
                    display_order=order,
                )
                session.add(option)
                await session.flush()
                seeded.weakness_option_ids.append(option.id)

            for name in candidates:
                access_token = generate_candidate_token()
                candidate = Candidate(
                    survey_id=survey.id,
                    name=name.title(),
                    employee_id=f"E-{name}",
                    department="Engineering",
                    access_token_hash=hash_candidate_token(access_token),
                )
                session.add(candidate)
                await session.flush()

                plaintext = generate_voter_token()
                token = VoterToken(
                    survey_id=survey.id,
                    candidate_id=candidate.id,
                    token_hash=hash_voter_token(plaintext),
                    lookup_hash=None if legacy else compute_token_lookup(plaintext),
                )
                session.add(token)
                await session.flush()

                seeded.candidate_ids[name] = candidate.id
                seeded.access_tokens[name] = access_token
                seeded.voter_tokens[name] = plaintext
                seeded.voter_token_ids[name] = token.id

            for _ in range(anonymous):
                plaintext = generate_voter_token()
                token = VoterToken(
                    survey_id=survey.id,
                    token_hash=hash_voter_token(plaintext),
                    lookup_hash=None if legacy else compute_token_lookup(plaintext),
                )
                session.add(token)
                await session.flush()
                seeded.anonymous_tokens.append(plaintext)
                seeded.anonymous_token_ids.append(token.id)

            await session.commit()
            return seeded

    return _seed


@pytest.fixture
async def app(session_factory: Any) -> AsyncGenerator[Any, None]:
    """FastAPI application bound to the test database."""
    from db.session import get_db
    from main import app as fastapi_app

    async def _get_test_db() -> AsyncGenerator[Any, None]:
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = _get_test_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def client(app: Any) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Origin": "http://localhost:5173"},
    ) as ac:
        yield ac


@pytest.fixture
def admin_headers() -> dict[str, str]:
    from core.security import create_admin_token

    return {"Authorization": f"Bearer {create_admin_token('admin-1', role='admin')}"}


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """Create mock database session."""
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.flush = AsyncMock()
    session.execute = AsyncMock()
    session.add = MagicMock()
    return session
