"""
Supervisor availability endpoints
"""
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import datetime, time
from pydantic import BaseModel

from meetdesk.database import get_db
from meetdesk.models.availability import SlotMeetingType, Weekday
from meetdesk.services.availability import AvailabilityDraft, AvailabilityService
from meetdesk.services.repository import AvailabilityRepository

router = APIRouter()


# --- Pydantic Schemas ---

class AvailabilityResponse(BaseModel):
    id: str
    supervisor_id: str
    day_of_week: Weekday
    start_time: time
    end_time: time
    is_recurring: bool
    specific_date: Optional[datetime]
    meeting_type: SlotMeetingType
    location: Optional[str]
    is_active: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class SlotSummary(BaseModel):
    id: str
    start_time: str
    end_time: str
    meeting_type: SlotMeetingType
    location: Optional[str]


class DaySchedule(BaseModel):
    day: Weekday
    slots: List[SlotSummary]


def get_availability_service(db: AsyncSession = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(AvailabilityRepository(db))


# --- Endpoints ---

@router.get("/", response_model=List[AvailabilityResponse])
async def list_availability(
    supervisor_id: Optional[str] = None,
    active_only: bool = True,
    service: AvailabilityService = Depends(get_availability_service),
):
    return await service.list(supervisor_id=supervisor_id, active_only=active_only)


@router.get("/weekly/{supervisor_id}", response_model=List[DaySchedule])
async def weekly_schedule(supervisor_id: str, service: AvailabilityService = Depends(get_availability_service)):
    """Active weekly office hours grouped by day"""
    return await service.weekly_schedule(supervisor_id)


@router.get("/{slot_id}", response_model=AvailabilityResponse)
async def get_availability(slot_id: str, service: AvailabilityService = Depends(get_availability_service)):
    return await service.get(slot_id)


@router.post("/", response_model=AvailabilityResponse, status_code=201)
async def create_availability(
    data: AvailabilityDraft,
    service: AvailabilityService = Depends(get_availability_service),
):
    return await service.create(data)


@router.post("/bulk", response_model=List[AvailabilityResponse], status_code=201)
async def bulk_create_availability(
    data: List[AvailabilityDraft],
    service: AvailabilityService = Depends(get_availability_service),
):
    """Create a week of office hours at once"""
    return await service.bulk_create(data)


@router.put("/{slot_id}", response_model=AvailabilityResponse)
async def update_availability(
    slot_id: str,
    data: AvailabilityDraft,
    service: AvailabilityService = Depends(get_availability_service),
):
    return await service.update(slot_id, data)


@router.patch("/{slot_id}/deactivate", response_model=AvailabilityResponse)
async def deactivate_availability(slot_id: str, service: AvailabilityService = Depends(get_availability_service)):
    return await service.deactivate(slot_id)


@router.delete("/clear/{supervisor_id}", status_code=204)
async def clear_availability(supervisor_id: str, service: AvailabilityService = Depends(get_availability_service)):
    """Remove every slot of a supervisor"""
    await service.clear(supervisor_id)
    return Response(status_code=204)


@router.delete("/{slot_id}", status_code=204)
async def delete_availability(slot_id: str, service: AvailabilityService = Depends(get_availability_service)):
    await service.delete(slot_id)
    return Response(status_code=204)
