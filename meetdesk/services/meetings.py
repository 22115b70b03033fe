"""
Meeting service - direct scheduling, edits, bulk invitations, cancellation
and removal, plus the read side used by the meetings endpoints.

Status changes outside this module are limited to approval (creates a
confirmed meeting) and the scheduler (confirmed -> completed). Here a pending
meeting may be confirmed, and any live meeting may be cancelled.
"""
from datetime import datetime, timedelta
from typing import List, Optional

from pydantic import BaseModel

from meetdesk.config import get_settings
from meetdesk.models.meeting import Meeting, MeetingStatus, MeetingType, RecurrencePattern, TERMINAL_MEETING_STATUSES
from meetdesk.services.errors import ConflictError, NotFoundError, ValidationError
from meetdesk.services.notifier import (
    Notifier,
    notify_meeting_cancelled,
    notify_meeting_invitation,
    notify_meeting_scheduled,
)
from meetdesk.services.repository import MeetingRepository
from meetdesk.utils.logger import get_logger
from meetdesk.utils.time_utils import Clock, SystemClock, ensure_utc

logger = get_logger(__name__)


class MeetingDraft(BaseModel):
    """A meeting scheduled directly, without a request"""
    project_id: Optional[str] = None
    title: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    location: Optional[str] = None
    meeting_link: Optional[str] = None
    meeting_type: Optional[MeetingType] = None
    status: Optional[MeetingStatus] = None
    requested_by: Optional[str] = None
    requester_id: Optional[str] = None
    approver_id: Optional[str] = None
    agenda: Optional[str] = None
    notes: Optional[str] = None
    is_recurring: bool = False
    recurrence_pattern: Optional[RecurrencePattern] = None
    recurrence_end_date: Optional[datetime] = None


class MeetingUpdate(BaseModel):
    """Partial edit; only the fields that were sent are applied"""
    title: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    location: Optional[str] = None
    meeting_link: Optional[str] = None
    meeting_type: Optional[MeetingType] = None
    status: Optional[MeetingStatus] = None
    requested_by: Optional[str] = None
    agenda: Optional[str] = None
    notes: Optional[str] = None
    is_recurring: Optional[bool] = None
    recurrence_pattern: Optional[RecurrencePattern] = None
    recurrence_end_date: Optional[datetime] = None


class BulkInviteDraft(BaseModel):
    """One pending meeting per invitee, all with the same approver"""
    approver_id: Optional[str] = None
    invitee_ids: List[str] = []
    project_id: Optional[str] = None
    title: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    location: Optional[str] = None
    agenda: Optional[str] = None
    meeting_type: Optional[MeetingType] = None


# Fields that exist on every meeting and cannot be cleared by an edit
_REQUIRED_ON_UPDATE = ("scheduled_at", "meeting_type", "status", "is_recurring")


def _check_duration(duration_minutes: Optional[int]) -> None:
    if duration_minutes is not None and duration_minutes <= 0:
        raise ValidationError("duration_minutes must be positive")


def _check_recurrence(meeting: Meeting) -> None:
    if meeting.is_recurring and meeting.recurrence_pattern is None:
        raise ValidationError("Recurring meetings need a recurrence_pattern")
    if not meeting.is_recurring and meeting.recurrence_pattern is not None:
        raise ValidationError("recurrence_pattern is only allowed on recurring meetings")
    if meeting.recurrence_end_date is not None and meeting.recurrence_end_date <= meeting.scheduled_at:
        raise ValidationError("recurrence_end_date must be after scheduled_at")


class MeetingService:

    def __init__(self, repository: MeetingRepository, notifier: Notifier, clock: Optional[Clock] = None):
        self.repository = repository
        self.notifier = notifier
        self.clock = clock or SystemClock()
        settings = get_settings()
        self.default_duration = settings.DEFAULT_MEETING_DURATION_MINUTES
        self.default_type = MeetingType(settings.DEFAULT_MEETING_TYPE)

    async def get(self, meeting_id: str) -> Meeting:
        meeting = await self.repository.find_meeting(meeting_id)
        if not meeting:
            raise NotFoundError(f"Meeting {meeting_id} not found")
        return meeting

    async def list(
        self,
        status: Optional[MeetingStatus] = None,
        upcoming_only: bool = False,
        project_id: Optional[str] = None,
        participant_id: Optional[str] = None,
    ) -> List[Meeting]:
        filters = dict(status=status, project_id=project_id, participant_id=participant_id)
        if upcoming_only:
            return await self.repository.list_meetings(
                start=self.clock.now(),
                status_not_in=[MeetingStatus.CANCELLED],
                **filters,
            )
        return await self.repository.list_meetings(**filters)

    async def upcoming_for(self, user_id: str, hours: int = 24) -> List[Meeting]:
        """Meetings the user takes part in during the next `hours` hours"""
        if hours <= 0:
            raise ValidationError("hours must be positive")
        now = self.clock.now()
        return await self.repository.list_meetings(
            start=now,
            end=now + timedelta(hours=hours),
            status_not_in=[MeetingStatus.CANCELLED],
            participant_id=user_id,
        )

    async def create(self, draft: MeetingDraft) -> Meeting:
        """Schedule a meeting directly and tell its participants"""
        if draft.scheduled_at is None:
            raise ValidationError("Missing required fields: scheduled_at")
        if not (draft.requester_id or "").strip() and not (draft.approver_id or "").strip():
            raise ValidationError("A meeting needs at least one participant")
        if draft.status in TERMINAL_MEETING_STATUSES:
            raise ValidationError(f"A new meeting cannot start as {draft.status.value}")
        _check_duration(draft.duration_minutes)

        now = self.clock.now()
        meeting = Meeting(
            **draft.model_dump(exclude={"scheduled_at", "recurrence_end_date", "status", "duration_minutes", "meeting_type"}),
            scheduled_at=ensure_utc(draft.scheduled_at),
            recurrence_end_date=ensure_utc(draft.recurrence_end_date),
            status=draft.status or MeetingStatus.CONFIRMED,
            duration_minutes=draft.duration_minutes or self.default_duration,
            meeting_type=draft.meeting_type or self.default_type,
            created_at=now,
            updated_at=now,
        )
        _check_recurrence(meeting)

        meeting = await self.repository.save_meeting(meeting)
        logger.info(f"Meeting {meeting.id} scheduled for {meeting.scheduled_at.isoformat()}")

        await notify_meeting_scheduled(
            self.notifier, meeting.participants, meeting.title or "Meeting", meeting.scheduled_at, meeting.id
        )
        return meeting

    async def update(self, meeting_id: str, changes: MeetingUpdate) -> Meeting:
        """Apply a partial edit to a live meeting.

        Moving scheduled_at clears the meeting's sent reminder records so the
        new time gets its own reminders, and tells the participants.
        """
        meeting = await self.get(meeting_id)
        if meeting.is_terminal:
            raise ConflictError(f"Meeting {meeting_id} is already {meeting.status.value}")

        data = changes.model_dump(exclude_unset=True)
        for name in _REQUIRED_ON_UPDATE:
            if name in data and data[name] is None:
                raise ValidationError(f"{name} cannot be cleared")
        _check_duration(data.get("duration_minutes"))

        new_status = data.get("status")
        if new_status is not None and new_status != meeting.status:
            if new_status in TERMINAL_MEETING_STATUSES:
                raise ValidationError(
                    "Use cancel to cancel a meeting; completion happens automatically"
                )
            if not (meeting.status == MeetingStatus.PENDING and new_status == MeetingStatus.CONFIRMED):
                raise ConflictError(f"Meeting {meeting_id} cannot move from {meeting.status.value} to {new_status.value}")

        for name in ("scheduled_at", "recurrence_end_date"):
            if name in data:
                data[name] = ensure_utc(data[name])
        rescheduled = "scheduled_at" in data and data["scheduled_at"] != meeting.scheduled_at

        for name, value in data.items():
            setattr(meeting, name, value)
        _check_recurrence(meeting)
        meeting.updated_at = self.clock.now()

        meeting = await self.repository.save_meeting(meeting, clear_reminders=rescheduled)
        logger.info(f"Meeting {meeting_id} updated ({', '.join(sorted(data)) or 'no changes'})")

        if rescheduled:
            await notify_meeting_scheduled(
                self.notifier, meeting.participants, meeting.title or "Meeting", meeting.scheduled_at, meeting.id
            )
        return meeting

    async def cancel(self, meeting_id: str) -> Meeting:
        meeting = await self.get(meeting_id)
        if meeting.is_terminal:
            raise ConflictError(f"Meeting {meeting_id} is already {meeting.status.value}")

        meeting.status = MeetingStatus.CANCELLED
        meeting.updated_at = self.clock.now()
        meeting = await self.repository.save_meeting(meeting)
        logger.info(f"Meeting {meeting_id} cancelled")

        await notify_meeting_cancelled(self.notifier, meeting.participants, meeting.title or "Meeting")
        return meeting

    async def delete(self, meeting_id: str) -> None:
        """Remove a meeting and its reminder records.

        Meetings created by approving a request stay, since the approved
        request points at them; those can only be cancelled.
        """
        meeting = await self.get(meeting_id)
        source = await self.repository.find_request_for_meeting(meeting_id)
        if source is not None:
            raise ConflictError(
                f"Meeting {meeting_id} was created from request {source.id}; cancel it instead"
            )

        participants = meeting.participants
        title = meeting.title or "Meeting"
        was_live = not meeting.is_terminal

        await self.repository.delete_meeting(meeting)
        logger.info(f"Meeting {meeting_id} deleted")

        if was_live:
            await notify_meeting_cancelled(self.notifier, participants, title)

    async def bulk_invite(self, draft: BulkInviteDraft) -> List[Meeting]:
        """Create a pending meeting for each invitee and send each an invitation"""
        missing = [
            name for name, value in (("approver_id", draft.approver_id), ("title", draft.title))
            if value is None or not value.strip()
        ]
        if draft.scheduled_at is None:
            missing.append("scheduled_at")
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        _check_duration(draft.duration_minutes)

        invitees = []
        for invitee_id in draft.invitee_ids:
            invitee_id = invitee_id.strip()
            if invitee_id and invitee_id != draft.approver_id and invitee_id not in invitees:
                invitees.append(invitee_id)
        if not invitees:
            raise ValidationError("No invitees given")

        now = self.clock.now()
        scheduled_at = ensure_utc(draft.scheduled_at)
        meetings = [
            Meeting(
                project_id=draft.project_id,
                title=draft.title,
                scheduled_at=scheduled_at,
                duration_minutes=draft.duration_minutes or self.default_duration,
                location=draft.location,
                agenda=draft.agenda,
                meeting_type=draft.meeting_type or self.default_type,
                status=MeetingStatus.PENDING,
                requested_by=draft.approver_id,
                requester_id=invitee_id,
                approver_id=draft.approver_id,
                created_at=now,
                updated_at=now,
            )
            for invitee_id in invitees
        ]
        meetings = await self.repository.save_meetings(meetings)
        logger.info(f"{draft.approver_id} invited {len(meetings)} participants to '{draft.title}'")

        for meeting in meetings:
            await notify_meeting_invitation(
                self.notifier, meeting.requester_id, meeting.title, meeting.scheduled_at, meeting.id
            )
        return meetings
