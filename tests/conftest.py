from datetime import datetime, timezone

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import peerrate.models  # noqa: F401
from peerrate.database import Base, enable_sqlite_foreign_keys, get_db
from peerrate.exceptions import FetchError
from peerrate.main import app
from peerrate.models.class_model import SchoolClass
from peerrate.models.participant import Participant
from peerrate.models.project_group import ProjectGroup
from peerrate.models.user import User
from peerrate.routers.auth import COOKIE_KEY, create_access_token
from peerrate.schemas.options import ClassOption, GroupOption, ParticipantOption
from peerrate.schemas.rating import PeerRatingOut


# ═══════════════════════════════════════════════════════════════
#  Database
# ═══════════════════════════════════════════════════════════════

@pytest.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def seeded(session_factory):
    """C1/CS101 with Team A (Alice, Bob) and Team B (Carol); Dave has no group."""
    async with session_factory() as session:
        session.add_all([
            SchoolClass(class_id="C1", class_name="CS101"),
            SchoolClass(class_id="C2", class_name="CS202"),
        ])
        await session.flush()
        session.add_all([
            ProjectGroup(group_id="G1", class_id="C1", group_name="Team A"),
            ProjectGroup(group_id="G2", class_id="C1", group_name="Team B"),
            ProjectGroup(group_id="G3", class_id="C2", group_name="Team Orion"),
        ])
        await session.flush()
        session.add_all([
            Participant(nrp="S1", full_name="Alice", group_id="G1"),
            Participant(nrp="S2", full_name="Bob", group_id="G1"),
            Participant(nrp="S3", full_name="Carol", group_id="G2"),
            Participant(nrp="S4", full_name="Dave", group_id=None),
        ])
        session.add(User(id=1, email="alice@example.com", full_name="Alice Account"))
        await session.commit()


@pytest.fixture
async def db(session_factory, seeded):
    async with session_factory() as session:
        yield session


# ═══════════════════════════════════════════════════════════════
#  HTTP
# ═══════════════════════════════════════════════════════════════

@pytest.fixture
async def client(session_factory, seeded):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def signed_in(client):
    client.cookies.set(COOKIE_KEY, create_access_token({"sub": "1"}))
    return client


# ═══════════════════════════════════════════════════════════════
#  In-process store
# ═══════════════════════════════════════════════════════════════

class FakeStore:
    """Store double with optional per-call gates and failures."""

    def __init__(self):
        self.classes = [
            ClassOption(class_id="C1", class_name="CS101"),
            ClassOption(class_id="C2", class_name="CS202"),
        ]
        self.groups = {
            "C1": [
                GroupOption(group_id="G1", group_name="Team A"),
                GroupOption(group_id="G2", group_name="Team B"),
            ],
            "C2": [GroupOption(group_id="G3", group_name="Team Orion")],
        }
        self.participants = {
            "G1": [
                ParticipantOption(nrp="S1", full_name="Alice"),
                ParticipantOption(nrp="S2", full_name="Bob"),
            ],
            "G2": [ParticipantOption(nrp="S3", full_name="Carol")],
        }
        self.gates = {}
        self.failing = set()
        self.calls = []
        self.inserted = []
        self.insert_error = None

    async def _enter(self, key):
        self.calls.append(key)
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        if key in self.failing:
            raise FetchError(key[0], "simulated outage")

    async def list_classes(self):
        await self._enter(("classes",))
        return list(self.classes)

    async def list_groups(self, class_id):
        await self._enter(("groups", class_id))
        return list(self.groups.get(class_id, []))

    async def list_participants(self, group_id):
        await self._enter(("participants", group_id))
        return list(self.participants.get(group_id, []))

    async def insert_rating(self, payload):
        if self.insert_error is not None:
            raise self.insert_error
        self.inserted.append(payload)
        return PeerRatingOut(
            rating_id=len(self.inserted),
            created_at=datetime.now(timezone.utc),
            **payload.model_dump(),
        )


@pytest.fixture
def fake_store():
    return FakeStore()

