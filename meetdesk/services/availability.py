"""
Supervisor availability - the office hours requesters pick meeting times from
"""
from datetime import datetime, time
from typing import List, Optional

from pydantic import BaseModel

from meetdesk.models.availability import SlotMeetingType, SupervisorAvailability, Weekday, WEEK_ORDER
from meetdesk.services.errors import NotFoundError, ValidationError
from meetdesk.services.repository import AvailabilityRepository
from meetdesk.utils.logger import get_logger
from meetdesk.utils.time_utils import Clock, SystemClock, ensure_utc

logger = get_logger(__name__)


class AvailabilityDraft(BaseModel):
    supervisor_id: Optional[str] = None
    day_of_week: Optional[Weekday] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    is_recurring: bool = True
    specific_date: Optional[datetime] = None
    meeting_type: SlotMeetingType = SlotMeetingType.BOTH
    location: Optional[str] = None
    is_active: bool = True


def _validate(draft: AvailabilityDraft) -> None:
    missing = [
        name for name in ("supervisor_id", "day_of_week", "start_time", "end_time")
        if getattr(draft, name) in (None, "")
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    if draft.start_time >= draft.end_time:
        raise ValidationError("start_time must be before end_time")
    if not draft.is_recurring and draft.specific_date is None:
        raise ValidationError("One-off availability needs a specific_date")


def _format(value: time) -> str:
    return value.strftime("%H:%M")


class AvailabilityService:

    def __init__(self, repository: AvailabilityRepository, clock: Optional[Clock] = None):
        self.repository = repository
        self.clock = clock or SystemClock()

    def _build(self, draft: AvailabilityDraft) -> SupervisorAvailability:
        now = self.clock.now()
        return SupervisorAvailability(
            **draft.model_dump(exclude={"specific_date"}),
            specific_date=ensure_utc(draft.specific_date),
            created_at=now,
            updated_at=now,
        )

    async def get(self, slot_id: str) -> SupervisorAvailability:
        slot = await self.repository.find_slot(slot_id)
        if not slot:
            raise NotFoundError(f"Availability slot {slot_id} not found")
        return slot

    async def list(self, supervisor_id: Optional[str] = None, active_only: bool = True) -> List[SupervisorAvailability]:
        """Slots in week order, Monday first, then by start time"""
        slots = await self.repository.list_slots(supervisor_id=supervisor_id, active_only=active_only)
        return sorted(slots, key=lambda s: s.sort_key)

    async def weekly_schedule(self, supervisor_id: str) -> List[dict]:
        """Active recurring slots grouped by day"""
        slots = await self.repository.list_slots(
            supervisor_id=supervisor_id, active_only=True, recurring_only=True
        )
        schedule = []
        for day in WEEK_ORDER:
            day_slots = sorted((s for s in slots if s.day_of_week == day), key=lambda s: s.start_time)
            if day_slots:
                schedule.append({
                    "day": day.value,
                    "slots": [
                        {
                            "id": s.id,
                            "start_time": _format(s.start_time),
                            "end_time": _format(s.end_time),
                            "meeting_type": s.meeting_type.value,
                            "location": s.location,
                        }
                        for s in day_slots
                    ],
                })
        return schedule

    async def create(self, draft: AvailabilityDraft) -> SupervisorAvailability:
        _validate(draft)
        slot = await self.repository.save_slot(self._build(draft))
        logger.info(f"Availability {slot.id} added for {slot.supervisor_id} on {slot.day_of_week.value}")
        return slot

    async def bulk_create(self, drafts: List[AvailabilityDraft]) -> List[SupervisorAvailability]:
        """Create several slots; nothing is stored if any of them is invalid"""
        if not drafts:
            raise ValidationError("No availability slots given")
        for draft in drafts:
            _validate(draft)
        slots = await self.repository.save_slots([self._build(d) for d in drafts])
        logger.info(f"Added {len(slots)} availability slots")
        return slots

    async def update(self, slot_id: str, draft: AvailabilityDraft) -> SupervisorAvailability:
        """Replace a slot's schedule fields; the owning supervisor never changes"""
        slot = await self.get(slot_id)
        draft = draft.model_copy(update={"supervisor_id": slot.supervisor_id})
        _validate(draft)

        for name, value in draft.model_dump(exclude={"supervisor_id", "specific_date"}).items():
            setattr(slot, name, value)
        slot.specific_date = ensure_utc(draft.specific_date)
        slot.updated_at = self.clock.now()
        return await self.repository.save_slot(slot)

    async def deactivate(self, slot_id: str) -> SupervisorAvailability:
        slot = await self.get(slot_id)
        slot.is_active = False
        slot.updated_at = self.clock.now()
        return await self.repository.save_slot(slot)

    async def delete(self, slot_id: str) -> None:
        slot = await self.get(slot_id)
        await self.repository.delete_slot(slot)
        logger.info(f"Availability {slot_id} deleted")

    async def clear(self, supervisor_id: str) -> int:
        removed = await self.repository.clear_slots(supervisor_id)
        logger.info(f"Cleared {removed} availability slots for {supervisor_id}")
        return removed
