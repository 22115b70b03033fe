"""
Background reminder scheduler.

Every tick the scheduler reconciles the clock against persisted meetings:

  1. meetings starting within the lookahead window get their due reminders
     (one per participant and lead time, deduplicated by ReminderRecord rows)
  2. confirmed meetings that started long enough ago are marked completed

Ticks run one after another on a single asyncio task and never overlap.
stop() interrupts the wait between ticks but lets a running tick finish.
"""
import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from meetdesk.config import get_settings
from meetdesk.database import AsyncSessionLocal
from meetdesk.models.meeting import Meeting, TERMINAL_MEETING_STATUSES
from meetdesk.models.reminder import ReminderRecord
from meetdesk.services.errors import ConflictError
from meetdesk.services.notifier import Notifier, notify_upcoming_meeting
from meetdesk.services.repository import MeetingRepository
from meetdesk.utils.logger import get_logger
from meetdesk.utils.time_utils import Clock, SystemClock

logger = get_logger(__name__)


def is_reminder_due(scheduled_at: datetime, minutes_before: int, now: datetime, window: timedelta) -> bool:
    """True while now falls in the window that opens minutes_before the meeting"""
    reminder_at = scheduled_at - timedelta(minutes=minutes_before)
    return reminder_at <= now <= reminder_at + window


@dataclass
class TickReport:
    started_at: datetime
    meetings_checked: int = 0
    reminders_sent: int = 0
    failed_sends: int = 0
    meetings_completed: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class _UpcomingMeeting:
    """Plain copy of the fields a tick needs, detached from the session"""
    id: str
    title: str
    scheduled_at: datetime
    participants: tuple

    @classmethod
    def from_model(cls, meeting: Meeting) -> "_UpcomingMeeting":
        return cls(
            id=meeting.id,
            title=meeting.title or "Meeting",
            scheduled_at=meeting.scheduled_at,
            participants=tuple(meeting.participants),
        )


class ReminderScheduler:
    """Periodic reminder and auto-completion loop.

    Args:
        notifier: Delivery channel for reminders.
        session_factory: Opens one session per tick.
        clock: Source of the current UTC instant.
        tick_interval: Time between ticks; also the width of the due window.
        lead_times: Minutes before a meeting at which reminders fire.
        lookahead: How far ahead to look for upcoming meetings.
        complete_after: How long after its start a confirmed meeting is completed.
        startup_delay: Seconds to wait before the first tick.
    """

    def __init__(
        self,
        notifier: Notifier,
        session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
        clock: Optional[Clock] = None,
        tick_interval: Optional[timedelta] = None,
        lead_times: Optional[Sequence[int]] = None,
        lookahead: Optional[timedelta] = None,
        complete_after: Optional[timedelta] = None,
        startup_delay: Optional[float] = None,
    ):
        settings = get_settings()
        self.notifier = notifier
        self.session_factory = session_factory
        self.clock = clock or SystemClock()
        self.tick_interval = tick_interval or timedelta(minutes=settings.REMINDER_TICK_MINUTES)
        self.lead_times = tuple(lead_times or settings.REMINDER_LEAD_TIMES)
        self.lookahead = lookahead or timedelta(hours=settings.REMINDER_LOOKAHEAD_HOURS)
        self.complete_after = complete_after or timedelta(hours=settings.AUTO_COMPLETE_AFTER_HOURS)
        self.startup_delay = settings.REMINDER_STARTUP_DELAY_SECONDS if startup_delay is None else startup_delay

        self.ticks_completed = 0
        self.last_report: Optional[TickReport] = None
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Start the loop on the running event loop. Returns False if already running."""
        if self.is_running:
            logger.warning("Reminder scheduler already running")
            return False

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="reminder-scheduler")
        logger.info(
            f"Reminder scheduler started: tick every {self.tick_interval}, "
            f"lead times {list(self.lead_times)} min"
        )
        return True

    async def stop(self) -> None:
        """Request a stop and wait for the loop to exit"""
        if self._task is None:
            return
        self._stop_event.set()
        try:
            await self._task
        finally:
            self._task = None
        logger.info("Reminder scheduler stopped")

    async def _wait(self, seconds: float) -> bool:
        """Sleep up to `seconds`; True if a stop was requested meanwhile"""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
            return True
        except asyncio.TimeoutError:
            return False

    async def _run(self) -> None:
        if self.startup_delay and await self._wait(self.startup_delay):
            return

        while not self._stop_event.is_set():
            try:
                self.last_report = await self.run_once()
            except Exception as e:
                logger.exception(f"Error processing meeting reminders: {e}")
            self.ticks_completed += 1

            if await self._wait(self.tick_interval.total_seconds()):
                break

    async def run_once(self) -> TickReport:
        """Run a single reconciliation pass"""
        now = self.clock.now()
        report = TickReport(started_at=now)

        async with self.session_factory() as session:
            repository = MeetingRepository(session)
            await self._send_due_reminders(repository, now, report)
            await self._complete_past_meetings(repository, now, report)

        if report.reminders_sent or report.failed_sends or report.errors:
            logger.info(
                f"Reminder tick: {report.meetings_checked} meetings checked, "
                f"{report.reminders_sent} sent, {report.failed_sends} failed, "
                f"{len(report.errors)} errors"
            )
        return report

    async def _send_due_reminders(self, repository: MeetingRepository, now: datetime, report: TickReport) -> None:
        try:
            meetings = await repository.list_meetings(
                start=now,
                end=now + self.lookahead,
                status_not_in=TERMINAL_MEETING_STATUSES,
            )
        except Exception as e:
            logger.error(f"Could not load upcoming meetings: {e}")
            report.errors.append(str(e))
            return

        upcoming = [_UpcomingMeeting.from_model(m) for m in meetings]
        report.meetings_checked = len(upcoming)

        for meeting in upcoming:
            try:
                await self._remind(repository, meeting, now, report)
            except Exception as e:
                logger.error(f"Error sending reminders for meeting {meeting.id}: {e}")
                report.errors.append(f"{meeting.id}: {e}")

    async def _remind(
        self, repository: MeetingRepository, meeting: _UpcomingMeeting, now: datetime, report: TickReport
    ) -> None:
        for minutes_before in self.lead_times:
            if not is_reminder_due(meeting.scheduled_at, minutes_before, now, self.tick_interval):
                continue

            reminder_at = meeting.scheduled_at - timedelta(minutes=minutes_before)
            sent = 0
            for recipient_id in meeting.participants:
                existing = await repository.find_reminder_record(meeting.id, recipient_id, minutes_before)
                if existing:
                    continue

                result = await notify_upcoming_meeting(
                    self.notifier, recipient_id, meeting.title, minutes_before, meeting.id
                )
                if not result.delivered:
                    # No record, so the next tick inside the window retries
                    report.failed_sends += 1
                    logger.warning(
                        f"{minutes_before} minute reminder for meeting {meeting.id} "
                        f"not delivered to {recipient_id}: {result.error}"
                    )
                    continue

                try:
                    await repository.save_reminder_record(ReminderRecord(
                        meeting_id=meeting.id,
                        recipient_id=recipient_id,
                        minutes_before=minutes_before,
                        is_sent=True,
                        sent_at=now,
                        scheduled_for=reminder_at,
                        created_at=now,
                    ))
                except ConflictError as e:
                    # Another writer recorded this reminder first
                    logger.warning(str(e))
                    continue
                sent += 1

            if sent:
                report.reminders_sent += sent
                logger.info(f"Sent {minutes_before} minute reminder for meeting {meeting.id} to {sent} recipient(s)")

    async def _complete_past_meetings(self, repository: MeetingRepository, now: datetime, report: TickReport) -> None:
        try:
            completed = await repository.complete_meetings_before(now - self.complete_after, now)
        except Exception as e:
            logger.error(f"Could not auto-complete past meetings: {e}")
            report.errors.append(str(e))
            return

        report.meetings_completed = completed
        if completed:
            logger.info(f"Auto-completed {completed} past meetings")
