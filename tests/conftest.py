import asyncio
import base64
import os
import tempfile
from datetime import date, datetime
from types import SimpleNamespace

# Settings are read at import time
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///" + os.path.join(tempfile.gettempdir(), "adhub_app.db"),
)
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.setdefault("COOKIE_SECURE", "false")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test-access-key")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test-secret-key")
os.environ.setdefault("AWS_S3_ENDPOINT_URL", "http://localhost:9000")
os.environ.setdefault("AWS_S3_BUCKET_NAME", "profile-photos")
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-client-id")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault(
    "CLERK_WEBHOOK_SECRET",
    "whsec_" + base64.b64encode(b"test-webhook-secret").decode("utf-8"),
)
os.environ.setdefault("ADMIN_PASSWORD", "sweep-me")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from core.clock import get_now, get_today
from core.database import get_db
from core.security import create_session_token
from main import app
from models.base import Base
from models.job_posting import JobPosting
from models.profile import Profile
from models.travel_schedule import TravelSchedule


@pytest.fixture()
def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'adhub.db'}", poolclass=NullPool)

    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create())
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
def run(session_factory):
    """run(fn, *args) awaits fn(session, *args) on a fresh session."""
    def _run(fn, *args, **kwargs):
        async def _inner():
            async with session_factory() as session:
                return await fn(session, *args, **kwargs)
        return asyncio.run(_inner())
    return _run


@pytest.fixture()
def clock():
    return SimpleNamespace(today=date(2025, 2, 5), now=datetime(2025, 2, 5, 12, 0))


@pytest.fixture()
def client(session_factory, clock):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_today] = lambda: clock.today
    app.dependency_overrides[get_now] = lambda: clock.now
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(profile_id: str) -> dict:
    token, _ = create_session_token(profile_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_profile(run):
    def _make(profile_id, username, user_type="content_creator", **fields):
        fields.setdefault("first_name", username.capitalize())
        fields.setdefault("last_name", "Tester")
        fields.setdefault("is_profile_completed", True)

        async def _create(db):
            profile = Profile(id=profile_id, username=username, user_type=user_type, **fields)
            db.add(profile)
            await db.commit()
            await db.refresh(profile)
            return profile

        return run(_create)
    return _make


@pytest.fixture()
def make_schedule(run):
    def _make(profile_id, start_date, end_date, city="Paris", country="France"):
        async def _create(db):
            schedule = TravelSchedule(
                profile_id=profile_id,
                start_date=start_date,
                end_date=end_date,
                city=city,
                country=country,
            )
            db.add(schedule)
            await db.commit()
            await db.refresh(schedule)
            return schedule

        return run(_create)
    return _make


@pytest.fixture()
def count_rows(run):
    def _count(model):
        async def _inner(db):
            result = await db.execute(select(func.count()).select_from(model))
            return result.scalar_one()

        return run(_inner)
    return _count


@pytest.fixture()
def get_job(run):
    def _get(slug):
        async def _inner(db):
            result = await db.execute(select(JobPosting).where(JobPosting.slug == slug))
            return result.scalar_one_or_none()

        return run(_inner)
    return _get
