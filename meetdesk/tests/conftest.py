"""
Test fixtures - per-test SQLite database, fake clock/notifier and HTTP client
"""
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from meetdesk.database import Base, configure_sqlite, get_db
from meetdesk.main import app
from meetdesk.models.meeting import Meeting, MeetingStatus, MeetingType
from meetdesk.services.notifier import Notifier, NotificationResult, get_notifier
from meetdesk.services.repository import MeetingRepository
from meetdesk.utils.time_utils import Clock


class FixedClock(Clock):
    """Clock that only moves when told to"""

    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)


class RecordingNotifier(Notifier):
    """Keeps every send in memory; recipients in `failing` get a failed result"""

    def __init__(self):
        self.sent = []
        self.failing = set()

    async def send(self, recipient_id, title, body, category, priority="medium", link=None):
        if recipient_id in self.failing:
            return NotificationResult(recipient_id=recipient_id, delivered=False, error="channel down")
        self.sent.append({
            "recipient_id": recipient_id,
            "title": title,
            "body": body,
            "category": category,
            "priority": priority,
            "link": link,
        })
        return NotificationResult(recipient_id=recipient_id, delivered=True)

    def to(self, recipient_id):
        return [n for n in self.sent if n["recipient_id"] == recipient_id]


NOW = datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture()
def clock():
    return FixedClock(NOW)


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest_asyncio.fixture()
async def session_factory(tmp_path):
    """Fresh SQLite database file for each test"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'meetdesk_test.db'}", echo=False)
    configure_sqlite(engine, busy_timeout=5)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
def repository(db_session):
    return MeetingRepository(db_session)


@pytest.fixture()
def make_meeting(session_factory):
    """Insert a meeting and return it"""

    async def _make(scheduled_at, status=MeetingStatus.CONFIRMED, requester_id="student@uni.edu",
                    approver_id="supervisor@uni.edu", title="Thesis check-in"):
        async with session_factory() as session:
            meeting = Meeting(
                title=title,
                scheduled_at=scheduled_at,
                duration_minutes=30,
                meeting_type=MeetingType.VIRTUAL,
                status=status,
                requester_id=requester_id,
                approver_id=approver_id,
            )
            session.add(meeting)
            await session.commit()
            await session.refresh(meeting)
            return meeting

    return _make


@pytest_asyncio.fixture()
async def client(db_session, notifier):
    """httpx AsyncClient bound to the FastAPI app"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac

    app.dependency_overrides.clear()
