"""
Meeting request endpoints - submit, review and remove requests
"""
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel

from meetdesk.api.meetings import MeetingResponse
from meetdesk.database import get_db
from meetdesk.models.meeting import MeetingType
from meetdesk.models.meeting_request import RequestStatus
from meetdesk.services.notifier import Notifier, get_notifier
from meetdesk.services.repository import MeetingRepository
from meetdesk.services.request_workflow import MeetingRequestDraft, RequestWorkflow

router = APIRouter()


# --- Pydantic Schemas ---

class MeetingRequestResponse(BaseModel):
    id: str
    project_id: Optional[str]
    requester_id: str
    approver_id: str
    title: Optional[str]
    agenda: str
    preferred_at: datetime
    duration_minutes: Optional[int]
    meeting_type: Optional[MeetingType]
    location: Optional[str]
    status: RequestStatus
    rejection_reason: Optional[str]
    meeting_id: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class ApproveRequest(BaseModel):
    scheduled_at: Optional[datetime] = None


class RejectRequest(BaseModel):
    reason: str = ""


def get_workflow(
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> RequestWorkflow:
    return RequestWorkflow(MeetingRepository(db), notifier)


# --- Endpoints ---

@router.get("/", response_model=List[MeetingRequestResponse])
async def list_requests(
    requester_id: Optional[str] = None,
    approver_id: Optional[str] = None,
    status: Optional[RequestStatus] = None,
    project_id: Optional[str] = None,
    workflow: RequestWorkflow = Depends(get_workflow),
):
    """List meeting requests, newest first"""
    return await workflow.list(
        requester_id=requester_id,
        approver_id=approver_id,
        status=status,
        project_id=project_id,
    )


@router.get("/{request_id}", response_model=MeetingRequestResponse)
async def get_request(request_id: str, workflow: RequestWorkflow = Depends(get_workflow)):
    return await workflow.get(request_id)


@router.post("/", response_model=MeetingRequestResponse, status_code=201)
async def submit_request(data: MeetingRequestDraft, workflow: RequestWorkflow = Depends(get_workflow)):
    """Submit a meeting request for approval"""
    return await workflow.submit(data)


@router.post("/{request_id}/approve", response_model=MeetingResponse)
async def approve_request(
    request_id: str,
    data: Optional[ApproveRequest] = None,
    workflow: RequestWorkflow = Depends(get_workflow),
):
    """Approve a pending request; the meeting uses scheduled_at when given"""
    scheduled_at = data.scheduled_at if data else None
    return await workflow.approve(request_id, scheduled_at)


@router.post("/{request_id}/reject", response_model=MeetingRequestResponse)
async def reject_request(
    request_id: str,
    data: RejectRequest,
    workflow: RequestWorkflow = Depends(get_workflow),
):
    return await workflow.reject(request_id, data.reason)


@router.delete("/{request_id}", status_code=204)
async def delete_request(request_id: str, workflow: RequestWorkflow = Depends(get_workflow)):
    await workflow.cancel(request_id)
    return Response(status_code=204)
