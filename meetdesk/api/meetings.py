"""
Meeting endpoints
"""
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel

from meetdesk.database import get_db
from meetdesk.models.meeting import MeetingStatus, MeetingType, RecurrencePattern
from meetdesk.services.meetings import BulkInviteDraft, MeetingDraft, MeetingService, MeetingUpdate
from meetdesk.services.notifier import Notifier, get_notifier
from meetdesk.services.repository import MeetingRepository

router = APIRouter()


class MeetingResponse(BaseModel):
    id: str
    project_id: Optional[str]
    title: Optional[str]
    scheduled_at: datetime
    duration_minutes: Optional[int]
    location: Optional[str]
    meeting_link: Optional[str]
    meeting_type: MeetingType
    status: MeetingStatus
    requested_by: Optional[str]
    requester_id: Optional[str]
    approver_id: Optional[str]
    agenda: Optional[str]
    notes: Optional[str]
    is_recurring: bool
    recurrence_pattern: Optional[RecurrencePattern]
    recurrence_end_date: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


def get_meeting_service(
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> MeetingService:
    return MeetingService(MeetingRepository(db), notifier)


@router.get("/", response_model=List[MeetingResponse])
async def list_meetings(
    status: Optional[MeetingStatus] = None,
    upcoming_only: bool = False,
    project_id: Optional[str] = None,
    participant_id: Optional[str] = None,
    service: MeetingService = Depends(get_meeting_service),
):
    """List meetings ordered by start time"""
    return await service.list(
        status=status,
        upcoming_only=upcoming_only,
        project_id=project_id,
        participant_id=participant_id,
    )


@router.post("/", response_model=MeetingResponse, status_code=201)
async def create_meeting(data: MeetingDraft, service: MeetingService = Depends(get_meeting_service)):
    """Schedule a meeting directly and notify its participants"""
    return await service.create(data)


@router.post("/bulk-invite", response_model=List[MeetingResponse], status_code=201)
async def bulk_invite(data: BulkInviteDraft, service: MeetingService = Depends(get_meeting_service)):
    """Create one pending meeting per invitee"""
    return await service.bulk_invite(data)


@router.get("/upcoming/{user_id}", response_model=List[MeetingResponse])
async def upcoming_meetings(
    user_id: str,
    hours: int = 24,
    service: MeetingService = Depends(get_meeting_service),
):
    """Meetings the user takes part in during the next `hours` hours"""
    return await service.upcoming_for(user_id, hours)


@router.get("/{meeting_id}", response_model=MeetingResponse)
async def get_meeting(meeting_id: str, service: MeetingService = Depends(get_meeting_service)):
    return await service.get(meeting_id)


@router.put("/{meeting_id}", response_model=MeetingResponse)
async def update_meeting(
    meeting_id: str,
    data: MeetingUpdate,
    service: MeetingService = Depends(get_meeting_service),
):
    return await service.update(meeting_id, data)


@router.post("/{meeting_id}/cancel", response_model=MeetingResponse)
async def cancel_meeting(meeting_id: str, service: MeetingService = Depends(get_meeting_service)):
    """Cancel a meeting and notify its participants"""
    return await service.cancel(meeting_id)


@router.delete("/{meeting_id}", status_code=204)
async def delete_meeting(meeting_id: str, service: MeetingService = Depends(get_meeting_service)):
    await service.delete(meeting_id)
    return Response(status_code=204)
