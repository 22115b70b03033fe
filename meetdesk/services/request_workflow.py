"""
Meeting request workflow - submission, approval, rejection and removal.

Approval is the only operation that touches two entities: the new Meeting and
the request's status/back-reference are written in a single transaction by
MeetingRepository.approve. Approval and rejection both write only while the
stored row is still pending, so a request resolved by another writer in the
meantime raises ConflictError instead of being overwritten.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from meetdesk.config import get_settings
from meetdesk.models.meeting import Meeting, MeetingStatus, MeetingType
from meetdesk.models.meeting_request import MeetingRequest, RequestStatus
from meetdesk.services.errors import ConflictError, NotFoundError, ValidationError
from meetdesk.services.notifier import (
    Notifier,
    notify_request_approved,
    notify_request_received,
    notify_request_rejected,
)
from meetdesk.services.repository import MeetingRepository
from meetdesk.utils.logger import get_logger
from meetdesk.utils.time_utils import Clock, SystemClock, ensure_utc

logger = get_logger(__name__)


class MeetingRequestDraft(BaseModel):
    """Fields a requester submits; required ones are checked by submit()"""
    project_id: Optional[str] = None
    requester_id: Optional[str] = None
    approver_id: Optional[str] = None
    title: Optional[str] = None
    agenda: Optional[str] = None
    preferred_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    meeting_type: Optional[MeetingType] = None
    location: Optional[str] = None


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class RequestWorkflow:

    def __init__(
        self,
        repository: MeetingRepository,
        notifier: Notifier,
        clock: Optional[Clock] = None,
    ):
        self.repository = repository
        self.notifier = notifier
        self.clock = clock or SystemClock()
        settings = get_settings()
        self.default_duration = settings.DEFAULT_MEETING_DURATION_MINUTES
        self.default_type = MeetingType(settings.DEFAULT_MEETING_TYPE)

    async def submit(self, draft: MeetingRequestDraft) -> MeetingRequest:
        missing = [
            name for name, value in (
                ("requester_id", draft.requester_id),
                ("approver_id", draft.approver_id),
                ("agenda", draft.agenda),
            ) if _blank(value)
        ]
        if draft.preferred_at is None:
            missing.append("preferred_at")
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        if draft.duration_minutes is not None and draft.duration_minutes <= 0:
            raise ValidationError("duration_minutes must be positive")

        now = self.clock.now()
        request = MeetingRequest(
            **draft.model_dump(exclude={"preferred_at"}),
            preferred_at=ensure_utc(draft.preferred_at),
            status=RequestStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        request = await self.repository.save_request(request)
        logger.info(f"Meeting request {request.id} submitted by {request.requester_id}")

        await notify_request_received(
            self.notifier,
            request.approver_id,
            request.requester_id,
            request.title or "Meeting",
            request.id,
        )
        return request

    async def get(self, request_id: str) -> MeetingRequest:
        request = await self.repository.find_request(request_id)
        if not request:
            raise NotFoundError(f"Meeting request {request_id} not found")
        return request

    async def list(
        self,
        requester_id: Optional[str] = None,
        approver_id: Optional[str] = None,
        status: Optional[RequestStatus] = None,
        project_id: Optional[str] = None,
    ) -> List[MeetingRequest]:
        return await self.repository.list_requests(
            requester_id=requester_id,
            approver_id=approver_id,
            status=status,
            project_id=project_id,
        )

    async def approve(self, request_id: str, scheduled_at: Optional[datetime] = None) -> Meeting:
        request = await self.get(request_id)
        if request.status != RequestStatus.PENDING:
            raise ConflictError(f"Meeting request {request_id} is not pending")

        now = self.clock.now()
        meeting = Meeting(
            project_id=request.project_id,
            title=request.title,
            scheduled_at=ensure_utc(scheduled_at or request.preferred_at),
            duration_minutes=request.duration_minutes or self.default_duration,
            agenda=request.agenda,
            location=request.location,
            meeting_type=request.meeting_type or self.default_type,
            # Approval confirms directly; there is no pending meeting stage here
            status=MeetingStatus.CONFIRMED,
            requested_by=request.requester_id,
            requester_id=request.requester_id,
            approver_id=request.approver_id,
            created_at=now,
            updated_at=now,
        )
        meeting = await self.repository.approve(request, meeting, now)
        logger.info(f"Meeting request {request_id} approved as meeting {meeting.id}")

        await notify_request_approved(
            self.notifier,
            request.requester_id,
            request.title or "Meeting",
            meeting.scheduled_at,
            meeting.id,
        )
        return meeting

    async def reject(self, request_id: str, reason: Optional[str]) -> MeetingRequest:
        if _blank(reason):
            raise ValidationError("Rejection reason is required")

        request = await self.get(request_id)
        if request.status != RequestStatus.PENDING:
            raise ConflictError(f"Meeting request {request_id} is not pending")

        request = await self.repository.reject(request, reason, self.clock.now())
        logger.info(f"Meeting request {request_id} rejected")

        await notify_request_rejected(
            self.notifier,
            request.requester_id,
            request.title or "Meeting",
            reason,
        )
        return request

    async def cancel(self, request_id: str) -> None:
        """Remove a request regardless of its status"""
        request = await self.get(request_id)
        await self.repository.delete_request(request)
        logger.info(f"Meeting request {request_id} deleted")
