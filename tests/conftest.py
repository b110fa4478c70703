import os
import tempfile
import time
import uuid
from typing import Any, Dict, List, Optional

import pytest

# Settings are read at import time, so the environment has to be in place first
_db_dir = tempfile.mkdtemp(prefix="healthcare-api-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ["JWT_SECRET"] = "test-secret-key-with-enough-length-for-hs256"
os.environ["AUTH_SYNC_SECRET"] = "test-sync-secret"
os.environ["DEBUG"] = "false"
os.environ["SMTP_HOST"] = ""
os.environ["UPSTASH_REDIS_REST_URL"] = ""
os.environ["UPSTASH_REDIS_REST_TOKEN"] = ""

from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import func, select  # noqa: E402

from src.auth.auth_service import create_session_token  # noqa: E402
from src.common.cache import RateLimitResult  # noqa: E402
from src.common.database.database import async_session, engine  # noqa: E402
from src.common.dependencies import get_cache, get_llm, get_storage  # noqa: E402
from src.common.storage import StoredFile  # noqa: E402
from src.main import app  # noqa: E402
from src.models.models import Base, User, UserRole  # noqa: E402
from src.modules.users.users_service import add_extension_row  # noqa: E402

SYNC_SECRET = "test-sync-secret"


class FakeCache:
    """In-memory stand-in for the Redis REST cache."""

    def __init__(self):
        self.store: Dict[str, Any] = {}
        self.counters: Dict[str, int] = {}
        self.deleted: List[str] = []

    async def get(self, key: str) -> Optional[Any]:
        return self.store.get(key)

    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> bool:
        self.store[key] = value
        return True

    async def delete(self, *keys: str) -> bool:
        for key in keys:
            self.store.pop(key, None)
            self.deleted.append(key)
        return True

    async def check_rate_limit(self, identifier: str, max_requests: int, window_seconds: int) -> RateLimitResult:
        current = self.counters.get(identifier, 0) + 1
        self.counters[identifier] = current
        return RateLimitResult(
            allowed=current <= max_requests,
            remaining=max(0, max_requests - current),
            reset_at=time.time() + window_seconds,
        )


class FakeStorage:
    """Records uploads instead of sending them to Cloudinary."""

    def __init__(self):
        self.uploads: List[Dict[str, Any]] = []
        self.deleted: List[str] = []

    async def upload(self, data, filename, content_type, folder, public_id, tags=None) -> StoredFile:
        self.uploads.append({
            "filename": filename,
            "content_type": content_type,
            "folder": folder,
            "public_id": public_id,
            "size": len(data),
        })
        file_format = filename.rsplit(".", 1)[-1] if "." in filename else "unknown"
        return StoredFile(
            public_id=f"{folder}/{public_id}",
            secure_url=f"https://files.example.test/{folder}/{public_id}.{file_format}",
            format=file_format,
            bytes=len(data),
        )

    def signed_download_url(self, public_id, file_format=None, expires_in=3600, resource_type="image") -> str:
        return f"https://files.example.test/download?public_id={public_id}&expires_in={expires_in}"

    async def delete(self, public_id: str, resource_type: str = "image") -> bool:
        self.deleted.append(public_id)
        return True


class FakeLLM:
    def __init__(self):
        self.suggestions: List[dict] = [
            {
                "name": "Amoxicillin",
                "dosage": "500mg",
                "frequency": "Three times daily",
                "duration": "7 days",
                "reason": "Bacterial infection",
            },
        ]
        self.analysis: dict = {
            "summary": "Mildly elevated glucose",
            "findings": ["Fasting glucose 110 mg/dL"],
            "abnormalities": ["Elevated fasting glucose"],
            "recommendations": ["Repeat test in 3 months"],
            "confidence": 0.92,
        }
        self.calls: List[str] = []

    async def suggest_medications(self, symptoms, diagnosis, patient_history=None) -> List[dict]:
        self.calls.append("suggest_medications")
        return self.suggestions

    async def analyze_report(self, report_text: str, report_type: str) -> dict:
        self.calls.append("analyze_report")
        return self.analysis


@pytest.fixture
async def db_engine():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def fake_cache():
    return FakeCache()


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
async def client(db_engine, fake_cache, fake_storage, fake_llm):
    app.dependency_overrides[get_cache] = lambda: fake_cache
    app.dependency_overrides[get_storage] = lambda: fake_storage
    app.dependency_overrides[get_llm] = lambda: fake_llm
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def make_user(
    role: UserRole,
    name: Optional[str] = None,
    email: Optional[str] = None,
    provisioned: bool = False,
) -> User:
    """Insert a user with the extension row its role needs."""
    user_id = uuid.uuid4()
    async with async_session() as session:
        user = User(
            id=user_id,
            email=email or f"{role.value}-{user_id.hex[:8]}@example.com",
            name=name or f"Test {role.value.title()}",
            role=role,
            provisioned=provisioned,
        )
        session.add(user)
        await session.flush()
        add_extension_row(session, user_id, role)
        await session.commit()
        await session.refresh(user)
    return user


@pytest.fixture
async def admin(db_engine) -> User:
    return await make_user(UserRole.ADMIN, name="Ada Admin")


@pytest.fixture
async def doctor(db_engine) -> User:
    return await make_user(UserRole.DOCTOR, name="Meredith Grey")


@pytest.fixture
async def patient(db_engine) -> User:
    return await make_user(UserRole.PATIENT, name="Pat Patient")


@pytest.fixture
async def other_patient(db_engine) -> User:
    return await make_user(UserRole.PATIENT, name="Olive Other")


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_session_token(user.id)}"}


async def count_rows(model, *criteria) -> int:
    async with async_session() as session:
        query = select(func.count()).select_from(model)
        if criteria:
            query = query.where(*criteria)
        return (await session.scalar(query)) or 0


async def fetch_one(model, *criteria):
    async with async_session() as session:
        result = await session.execute(select(model).where(*criteria))
        return result.scalars().first()


