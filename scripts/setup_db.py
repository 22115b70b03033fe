"""
Database setup script - creates tables and a demo request/meeting pair
"""
import asyncio
from datetime import timedelta

from meetdesk.database import engine, Base, AsyncSessionLocal
from meetdesk import models  # noqa: F401
from meetdesk.services.notifier import DatabaseNotifier
from meetdesk.services.repository import MeetingRepository
from meetdesk.services.request_workflow import MeetingRequestDraft, RequestWorkflow
from meetdesk.utils.time_utils import utcnow


async def setup_database():
    """Create tables and seed demo data"""
    print("Creating database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("Tables created")

    async with AsyncSessionLocal() as session:
        workflow = RequestWorkflow(MeetingRepository(session), DatabaseNotifier(AsyncSessionLocal))

        # Starts in a little over an hour so the 60 minute reminder fires soon
        approved = await workflow.submit(MeetingRequestDraft(
            project_id="demo-project",
            requester_id="student@example.com",
            approver_id="supervisor@example.com",
            title="Weekly progress review",
            agenda="Progress since last week, blockers, next steps",
            preferred_at=utcnow() + timedelta(minutes=65),
            duration_minutes=30,
        ))
        meeting = await workflow.approve(approved.id)

        await workflow.submit(MeetingRequestDraft(
            project_id="demo-project",
            requester_id="student@example.com",
            approver_id="supervisor@example.com",
            title="Draft chapter feedback",
            agenda="Feedback on chapter 3 draft",
            preferred_at=utcnow() + timedelta(days=2),
        ))
        print(f"Seed data created: meeting {meeting.id} at {meeting.scheduled_at.isoformat()}")

    print("\nDatabase setup complete!")


if __name__ == "__main__":
    asyncio.run(setup_database())
