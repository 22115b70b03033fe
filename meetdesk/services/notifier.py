"""
Notification delivery.

A Notifier is passed explicitly to the services that need one. Sending is
fire-and-forget: failures are logged and reported through the returned
NotificationResult, never raised into the caller.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from meetdesk.database import AsyncSessionLocal
from meetdesk.models.notification import Notification, NotificationCategory, NotificationPriority
from meetdesk.services.repository import MeetingRepository
from meetdesk.utils.logger import get_logger
from meetdesk.utils.time_utils import describe_lead_time, format_meeting_time

logger = get_logger(__name__)


@dataclass
class NotificationResult:
    recipient_id: str
    delivered: bool
    error: Optional[str] = None


class Notifier:
    """Interface for delivering a message to one recipient"""

    async def send(
        self,
        recipient_id: str,
        title: str,
        body: str,
        category: NotificationCategory,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
        link: Optional[str] = None,
    ) -> NotificationResult:
        raise NotImplementedError


class DatabaseNotifier(Notifier):
    """Stores in-app notifications, each in its own session.

    Using a separate session keeps a failed send from touching the caller's
    transaction.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal):
        self.session_factory = session_factory

    async def send(
        self,
        recipient_id: str,
        title: str,
        body: str,
        category: NotificationCategory,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
        link: Optional[str] = None,
    ) -> NotificationResult:
        if not recipient_id:
            return NotificationResult(recipient_id=recipient_id, delivered=False, error="No recipient")

        try:
            async with self.session_factory() as session:
                await MeetingRepository(session).save_notification(Notification(
                    recipient_id=recipient_id,
                    title=title,
                    message=body,
                    category=category,
                    priority=priority,
                    link=link,
                ))
        except Exception as e:
            logger.error(f"Failed to notify {recipient_id} ({title}): {e}")
            return NotificationResult(recipient_id=recipient_id, delivered=False, error=str(e))

        logger.debug(f"Notified {recipient_id}: {title}")
        return NotificationResult(recipient_id=recipient_id, delivered=True)


def get_notifier() -> Notifier:
    """Dependency for getting the application notifier"""
    return DatabaseNotifier(AsyncSessionLocal)


# ──────────────────────────────────────────────────────
#  Message builders
# ──────────────────────────────────────────────────────

async def notify_request_received(
    notifier: Notifier, approver_id: str, requester_name: str, title: str, request_id: str
) -> NotificationResult:
    return await notifier.send(
        approver_id,
        "New Meeting Request",
        f"{requester_name} requested a meeting: '{title}'.",
        NotificationCategory.MEETING,
        NotificationPriority.HIGH,
        f"/meetings?requestId={request_id}",
    )


async def notify_request_approved(
    notifier: Notifier, requester_id: str, title: str, scheduled_at: datetime, meeting_id: str
) -> NotificationResult:
    return await notifier.send(
        requester_id,
        "Meeting Request Approved",
        f"Your meeting request '{title}' has been approved for {format_meeting_time(scheduled_at)}.",
        NotificationCategory.SUCCESS,
        NotificationPriority.HIGH,
        f"/meetings/{meeting_id}",
    )


async def notify_request_rejected(
    notifier: Notifier, requester_id: str, title: str, reason: str
) -> NotificationResult:
    return await notifier.send(
        requester_id,
        "Meeting Request Rejected",
        f"Your meeting request '{title}' was rejected. Reason: {reason}",
        NotificationCategory.WARNING,
        NotificationPriority.HIGH,
        "/meetings",
    )


async def notify_upcoming_meeting(
    notifier: Notifier, recipient_id: str, title: str, minutes_before: int, meeting_id: str
) -> NotificationResult:
    return await notifier.send(
        recipient_id,
        "Upcoming Meeting",
        f"Reminder: '{title}' starts in {describe_lead_time(minutes_before)}.",
        NotificationCategory.MEETING,
        NotificationPriority.URGENT,
        f"/meetings/{meeting_id}",
    )


async def notify_meeting_scheduled(
    notifier: Notifier, participant_ids: Iterable[str], title: str, scheduled_at: datetime, meeting_id: str
) -> List[NotificationResult]:
    results = []
    for participant_id in participant_ids:
        results.append(await notifier.send(
            participant_id,
            "Meeting Scheduled",
            f"A meeting '{title}' has been scheduled for {format_meeting_time(scheduled_at)}.",
            NotificationCategory.MEETING,
            NotificationPriority.MEDIUM,
            f"/meetings/{meeting_id}",
        ))
    return results


async def notify_meeting_invitation(
    notifier: Notifier, invitee_id: str, title: str, scheduled_at: datetime, meeting_id: str
) -> NotificationResult:
    return await notifier.send(
        invitee_id,
        "Meeting Invitation",
        f"You're invited to '{title}' on {format_meeting_time(scheduled_at)}.",
        NotificationCategory.MEETING,
        NotificationPriority.HIGH,
        f"/meetings/{meeting_id}",
    )


async def notify_meeting_cancelled(
    notifier: Notifier, participant_ids: Iterable[str], title: str
) -> List[NotificationResult]:
    results = []
    for participant_id in participant_ids:
        results.append(await notifier.send(
            participant_id,
            "Meeting Cancelled",
            f"The meeting '{title}' has been cancelled.",
            NotificationCategory.WARNING,
            NotificationPriority.MEDIUM,
        ))
    return results
