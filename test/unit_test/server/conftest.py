from typing import AsyncGenerator
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel.pool import StaticPool

# Use in-memory SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "Correct-Horse-42"
BUCKET_HOST = "mortiscope-test.s3.ap-southeast-1.amazonaws.com"


@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database with every table created."""
    from mortiscope.core.database import Base
    from mortiscope.core.database import entities  # noqa: F401

    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine) -> async_sessionmaker:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(name="session")
async def session_fixture(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a new session for each test."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def s3_client() -> MagicMock:
    """Stand-in for the boto3 S3 client."""
    client = MagicMock()
    client.generate_presigned_url.return_value = "https://mock-s3/presigned"
    client.head_object.return_value = {"Metadata": {}}
    return client


@pytest.fixture
def storage(s3_client):
    from mortiscope.core.storage import S3Storage

    return S3Storage(bucket_name="mortiscope-test", region="ap-southeast-1", client=s3_client)


@pytest.fixture
def jobs() -> MagicMock:
    """Job queue that records what was enqueued instead of running it."""
    return MagicMock()


@pytest_asyncio.fixture
async def user_auth(session: AsyncSession):
    """A signed-up user and their bearer token."""
    from mortiscope.core.models.io.auth import SignUpRequest
    from mortiscope.server.services.auth import AuthService

    token = await AuthService(session).sign_up(
        SignUpRequest(
            name="Ana Cruz",
            email="ana.cruz@example.com",
            password=TEST_PASSWORD,
            confirm_password=TEST_PASSWORD,
        ),
        user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/120.0.0.0 Safari/537.36",
        ip_address="127.0.0.1",
    )
    return token


@pytest.fixture
def user_id(user_auth) -> str:
    return user_auth.user.id


@pytest.fixture
def auth_headers(user_auth) -> dict:
    return {"Authorization": f"Bearer {user_auth.access_token}"}


@pytest_asyncio.fixture(name="client")
async def client_fixture(session: AsyncSession, storage, jobs) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client with the session, storage and job queue dependencies overridden."""
    from mortiscope.core.database import get_session
    from mortiscope.server.main import app
    from mortiscope.server.services.deps import get_job_queue, get_storage

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_job_queue] = lambda: jobs

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
        yield client

    app.dependency_overrides.clear()


class DataFactory:
    """Inserts rows directly, for tests that need existing cases, images or detections."""

    def __init__(self, session: AsyncSession, user_id: str) -> None:
        self.session = session
        self.user_id = user_id

    async def _add(self, row):
        self.session.add(row)
        await self.session.commit()
        await self.session.refresh(row)
        return row

    async def case(self, name: str = "Case Alpha", status: str = "active", user_id: str | None = None, **values):
        from datetime import datetime

        from mortiscope.core.database.entities.cases import Case

        fields = {
            "temperature_celsius": 28.0,
            "location_region": "NCR",
            "location_province": "Metro Manila",
            "location_city": "Quezon City",
            "location_barangay": "Diliman",
            "case_date": datetime(2025, 3, 14, 9, 30),
        }
        fields.update(values)
        return await self._add(Case(user_id=user_id or self.user_id, case_name=name, status=status, **fields))

    async def upload(self, case_id: str | None, name: str = "maggots.jpg", user_id: str | None = None, **values):
        from mortiscope.core.database.entities.uploads import Upload

        owner = user_id or self.user_id
        key = values.pop("key", f"{owner}/{name}")
        fields = {"size": 2048, "type": "image/jpeg", "width": 1280, "height": 960}
        fields.update(values)
        return await self._add(
            Upload(
                case_id=case_id,
                user_id=owner,
                name=name,
                key=key,
                url=f"https://{BUCKET_HOST}/{key}",
                **fields,
            )
        )

    async def detection(self, upload_id: str, label: str = "pupa", confidence: float | None = 0.9, **values):
        from mortiscope.core.database.entities.detections import Detection

        fields = {
            "original_label": label,
            "original_confidence": confidence,
            "x_min": 10.0,
            "y_min": 20.0,
            "x_max": 110.0,
            "y_max": 220.0,
        }
        fields.update(values)
        return await self._add(Detection(upload_id=upload_id, label=label, confidence=confidence, **fields))

    async def result(self, case_id: str, status: str = "completed", **values):
        from mortiscope.core.database.entities.analysis_results import AnalysisResult

        return await self._add(AnalysisResult(case_id=case_id, status=status, **values))

    async def other_user(self, email: str = "juan.luna@example.com"):
        from mortiscope.core.database.entities.users import User

        return await self._add(User(name="Juan Luna", email=email))


@pytest.fixture
def factory(session: AsyncSession, user_id: str) -> DataFactory:
    return DataFactory(session, user_id)
