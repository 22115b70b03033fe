"""
Notifier tests - persisted in-app notifications and failure reporting.
"""
from datetime import datetime, timezone

from sqlalchemy import select

from meetdesk.models.notification import Notification, NotificationCategory, NotificationPriority
from meetdesk.services.notifier import (
    DatabaseNotifier,
    notify_meeting_cancelled,
    notify_meeting_invitation,
    notify_meeting_scheduled,
    notify_request_approved,
    notify_upcoming_meeting,
)


async def stored_notifications(session_factory):
    async with session_factory() as session:
        result = await session.execute(select(Notification).order_by(Notification.id))
        return list(result.scalars().all())


async def test_database_notifier_stores_notification(session_factory):
    notifier = DatabaseNotifier(session_factory)

    result = await notifier.send(
        "A", "Hello", "Body text", NotificationCategory.MEETING, NotificationPriority.HIGH, "/meetings/1"
    )

    assert result.delivered
    [stored] = await stored_notifications(session_factory)
    assert stored.recipient_id == "A"
    assert stored.priority == NotificationPriority.HIGH
    assert stored.link == "/meetings/1"
    assert stored.is_read is False


async def test_database_notifier_reports_failure_instead_of_raising():
    def broken_factory():
        raise RuntimeError("database unreachable")

    result = await DatabaseNotifier(broken_factory).send("A", "Hello", "Body", NotificationCategory.MEETING)

    assert not result.delivered
    assert "database unreachable" in result.error


async def test_database_notifier_requires_recipient(session_factory):
    result = await DatabaseNotifier(session_factory).send("", "Hello", "Body", NotificationCategory.MEETING)

    assert not result.delivered
    assert await stored_notifications(session_factory) == []


async def test_message_builders(notifier):
    await notify_request_approved(notifier, "A", "Review", datetime(2025, 6, 1, 10, 0, tzinfo=timezone.utc), "m-1")
    await notify_upcoming_meeting(notifier, "A", "Review", 30, "m-1")
    await notify_upcoming_meeting(notifier, "A", "Review", 1440, "m-1")
    results = await notify_meeting_cancelled(notifier, ["A", "B"], "Review")

    bodies = [n["body"] for n in notifier.sent]
    assert bodies[0] == "Your meeting request 'Review' has been approved for Jun 01, 2025 10:00 UTC."
    assert bodies[1] == "Reminder: 'Review' starts in 30 minute(s)."
    assert bodies[2] == "Reminder: 'Review' starts in 24 hour(s)."
    assert notifier.sent[1]["priority"] == NotificationPriority.URGENT
    assert [r.recipient_id for r in results] == ["A", "B"]
    assert all(r.delivered for r in results)


async def test_scheduled_and_invitation_builders(notifier):
    when = datetime(2025, 6, 2, 14, 30, tzinfo=timezone.utc)

    scheduled = await notify_meeting_scheduled(notifier, ["A", "B"], "Kickoff", when, "m-2")
    invited = await notify_meeting_invitation(notifier, "C", "Kickoff", when, "m-3")

    assert [r.recipient_id for r in scheduled] == ["A", "B"]
    assert invited.delivered
    assert notifier.sent[0]["body"] == "A meeting 'Kickoff' has been scheduled for Jun 02, 2025 14:30 UTC."
    assert notifier.sent[0]["priority"] == NotificationPriority.MEDIUM
    assert notifier.sent[2]["title"] == "Meeting Invitation"
    assert notifier.sent[2]["body"] == "You're invited to 'Kickoff' on Jun 02, 2025 14:30 UTC."
    assert notifier.sent[2]["link"] == "/meetings/m-3"
    assert notifier.sent[2]["priority"] == NotificationPriority.HIGH
