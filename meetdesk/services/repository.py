"""
Persistence for meeting requests, meetings, reminder records, notifications
and supervisor availability.

All writes commit immediately. Database failures are rolled back and surfaced
as TransientIOError so callers never see driver exceptions.
"""
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import delete, select, update, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from meetdesk.models.meeting import Meeting, MeetingStatus
from meetdesk.models.meeting_request import MeetingRequest, RequestStatus
from meetdesk.models.notification import Notification
from meetdesk.models.reminder import ReminderRecord
from meetdesk.models.availability import SupervisorAvailability
from meetdesk.services.errors import ConflictError, TransientIOError


class _Repository:

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def _guard(self, action: str):
        try:
            yield
        except IntegrityError:
            await self.session.rollback()
            raise
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise TransientIOError(f"Database error while trying to {action}: {e}") from e


class MeetingRepository(_Repository):

    # --- Meeting requests ---

    async def find_request(self, request_id: str) -> Optional[MeetingRequest]:
        async with self._guard("load meeting request"):
            result = await self.session.execute(
                select(MeetingRequest).where(MeetingRequest.id == request_id)
            )
            return result.scalar_one_or_none()

    async def list_requests(
        self,
        requester_id: Optional[str] = None,
        approver_id: Optional[str] = None,
        status: Optional[RequestStatus] = None,
        project_id: Optional[str] = None,
    ) -> List[MeetingRequest]:
        query = select(MeetingRequest).order_by(MeetingRequest.created_at.desc())
        if requester_id:
            query = query.where(MeetingRequest.requester_id == requester_id)
        if approver_id:
            query = query.where(MeetingRequest.approver_id == approver_id)
        if status:
            query = query.where(MeetingRequest.status == status)
        if project_id:
            query = query.where(MeetingRequest.project_id == project_id)

        async with self._guard("list meeting requests"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def save_request(self, request: MeetingRequest) -> MeetingRequest:
        async with self._guard("save meeting request"):
            self.session.add(request)
            await self.session.commit()
            await self.session.refresh(request)
            return request

    async def delete_request(self, request: MeetingRequest) -> None:
        async with self._guard("delete meeting request"):
            await self.session.delete(request)
            await self.session.commit()

    async def approve(self, request: MeetingRequest, meeting: Meeting, now: datetime) -> Meeting:
        """Insert the meeting and mark the request approved in one transaction.

        The request update only applies while the row is still pending; if
        another writer got there first nothing is written and ConflictError
        is raised.
        """
        async with self._guard("approve meeting request"):
            self.session.add(meeting)
            await self.session.flush()

            result = await self.session.execute(
                update(MeetingRequest)
                .where(
                    MeetingRequest.id == request.id,
                    MeetingRequest.status == RequestStatus.PENDING,
                )
                .values(
                    status=RequestStatus.APPROVED,
                    meeting_id=meeting.id,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await self.session.rollback()
                raise ConflictError("Only pending requests can be approved")

            await self.session.commit()
            await self.session.refresh(request)
            await self.session.refresh(meeting)
            return meeting

    async def reject(self, request: MeetingRequest, reason: str, now: datetime) -> MeetingRequest:
        """Mark a still-pending request rejected; ConflictError if it was resolved meanwhile"""
        async with self._guard("reject meeting request"):
            result = await self.session.execute(
                update(MeetingRequest)
                .where(
                    MeetingRequest.id == request.id,
                    MeetingRequest.status == RequestStatus.PENDING,
                )
                .values(
                    status=RequestStatus.REJECTED,
                    rejection_reason=reason,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await self.session.rollback()
                raise ConflictError("Only pending requests can be rejected")

            await self.session.commit()
            await self.session.refresh(request)
            return request

    # --- Meetings ---

    async def find_meeting(self, meeting_id: str) -> Optional[Meeting]:
        async with self._guard("load meeting"):
            result = await self.session.execute(select(Meeting).where(Meeting.id == meeting_id))
            return result.scalar_one_or_none()

    async def save_meeting(self, meeting: Meeting, clear_reminders: bool = False) -> Meeting:
        """Persist a meeting; clear_reminders also drops its sent reminder records
        in the same transaction, so a rescheduled meeting is reminded again."""
        async with self._guard("save meeting"):
            self.session.add(meeting)
            if clear_reminders and meeting.id:
                await self.session.execute(
                    delete(ReminderRecord).where(ReminderRecord.meeting_id == meeting.id)
                )
            await self.session.commit()
            await self.session.refresh(meeting)
            return meeting

    async def save_meetings(self, meetings: List[Meeting]) -> List[Meeting]:
        """Insert several meetings in one transaction"""
        async with self._guard("save meetings"):
            self.session.add_all(meetings)
            await self.session.commit()
            for meeting in meetings:
                await self.session.refresh(meeting)
            return meetings

    async def delete_meeting(self, meeting: Meeting) -> None:
        async with self._guard("delete meeting"):
            await self.session.execute(
                delete(ReminderRecord).where(ReminderRecord.meeting_id == meeting.id)
            )
            await self.session.delete(meeting)
            await self.session.commit()

    async def find_request_for_meeting(self, meeting_id: str) -> Optional[MeetingRequest]:
        async with self._guard("load meeting request"):
            result = await self.session.execute(
                select(MeetingRequest).where(MeetingRequest.meeting_id == meeting_id)
            )
            return result.scalars().first()

    async def list_meetings(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status_not_in: Iterable[MeetingStatus] = (),
        status: Optional[MeetingStatus] = None,
        participant_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> List[Meeting]:
        """Meetings ordered by scheduled time; start and end are inclusive"""
        query = select(Meeting).order_by(Meeting.scheduled_at)
        if start is not None:
            query = query.where(Meeting.scheduled_at >= start)
        if end is not None:
            query = query.where(Meeting.scheduled_at <= end)
        excluded = list(status_not_in)
        if excluded:
            query = query.where(Meeting.status.notin_(excluded))
        if status:
            query = query.where(Meeting.status == status)
        if project_id:
            query = query.where(Meeting.project_id == project_id)
        if participant_id:
            query = query.where(or_(
                Meeting.requester_id == participant_id,
                Meeting.approver_id == participant_id,
            ))

        async with self._guard("list meetings"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def complete_meetings_before(self, cutoff: datetime, now: datetime) -> int:
        """Move every confirmed meeting scheduled before cutoff to completed"""
        async with self._guard("auto-complete meetings"):
            result = await self.session.execute(
                update(Meeting)
                .where(
                    Meeting.status == MeetingStatus.CONFIRMED,
                    Meeting.scheduled_at < cutoff,
                )
                .values(status=MeetingStatus.COMPLETED, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            await self.session.commit()
            return result.rowcount or 0

    # --- Reminder records ---

    async def find_reminder_record(
        self, meeting_id: str, recipient_id: str, minutes_before: int
    ) -> Optional[ReminderRecord]:
        async with self._guard("load reminder record"):
            result = await self.session.execute(
                select(ReminderRecord).where(
                    ReminderRecord.meeting_id == meeting_id,
                    ReminderRecord.recipient_id == recipient_id,
                    ReminderRecord.minutes_before == minutes_before,
                    ReminderRecord.is_sent.is_(True),
                )
            )
            return result.scalar_one_or_none()

    async def save_reminder_record(self, record: ReminderRecord) -> ReminderRecord:
        try:
            async with self._guard("save reminder record"):
                self.session.add(record)
                await self.session.commit()
                return record
        except IntegrityError as e:
            raise ConflictError(
                f"Reminder already recorded for meeting {record.meeting_id}, "
                f"recipient {record.recipient_id}, {record.minutes_before} min"
            ) from e

    # --- Notifications ---

    async def save_notification(self, notification: Notification) -> Notification:
        async with self._guard("store notification"):
            self.session.add(notification)
            await self.session.commit()
            await self.session.refresh(notification)
            return notification

    async def list_notifications(self, recipient_id: str, unread_only: bool = False) -> List[Notification]:
        query = (
            select(Notification)
            .where(Notification.recipient_id == recipient_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )
        if unread_only:
            query = query.where(Notification.is_read.is_(False))

        async with self._guard("list notifications"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def find_notification(self, notification_id: int) -> Optional[Notification]:
        async with self._guard("load notification"):
            result = await self.session.execute(
                select(Notification).where(Notification.id == notification_id)
            )
            return result.scalar_one_or_none()


class AvailabilityRepository(_Repository):

    async def find_slot(self, slot_id: str) -> Optional[SupervisorAvailability]:
        async with self._guard("load availability slot"):
            result = await self.session.execute(
                select(SupervisorAvailability).where(SupervisorAvailability.id == slot_id)
            )
            return result.scalar_one_or_none()

    async def list_slots(
        self,
        supervisor_id: Optional[str] = None,
        active_only: bool = True,
        recurring_only: bool = False,
    ) -> List[SupervisorAvailability]:
        query = select(SupervisorAvailability).order_by(SupervisorAvailability.start_time)
        if supervisor_id:
            query = query.where(SupervisorAvailability.supervisor_id == supervisor_id)
        if active_only:
            query = query.where(SupervisorAvailability.is_active.is_(True))
        if recurring_only:
            query = query.where(SupervisorAvailability.is_recurring.is_(True))

        async with self._guard("list availability"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def save_slot(self, slot: SupervisorAvailability) -> SupervisorAvailability:
        async with self._guard("save availability slot"):
            self.session.add(slot)
            await self.session.commit()
            await self.session.refresh(slot)
            return slot

    async def save_slots(self, slots: List[SupervisorAvailability]) -> List[SupervisorAvailability]:
        async with self._guard("save availability slots"):
            self.session.add_all(slots)
            await self.session.commit()
            for slot in slots:
                await self.session.refresh(slot)
            return slots

    async def delete_slot(self, slot: SupervisorAvailability) -> None:
        async with self._guard("delete availability slot"):
            await self.session.delete(slot)
            await self.session.commit()

    async def clear_slots(self, supervisor_id: str) -> int:
        """Delete every slot of a supervisor; returns how many were removed"""
        async with self._guard("clear availability"):
            result = await self.session.execute(
                delete(SupervisorAvailability)
                .where(SupervisorAvailability.supervisor_id == supervisor_id)
                .execution_options(synchronize_session=False)
            )
            await self.session.commit()
            return result.rowcount or 0
