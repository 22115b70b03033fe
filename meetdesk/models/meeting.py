"""
Meeting model
"""
import enum
import uuid

from sqlalchemy import Column, Integer, String, Text, Boolean, Enum
from meetdesk.database import Base
from meetdesk.utils.db_compat import UTCDateTime
from meetdesk.utils.time_utils import utcnow


class MeetingType(str, enum.Enum):
    VIRTUAL = "virtual"
    IN_PERSON = "in-person"
    HYBRID = "hybrid"


class MeetingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_MEETING_STATUSES = (MeetingStatus.COMPLETED, MeetingStatus.CANCELLED)


class RecurrencePattern(str, enum.Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class Meeting(Base):
    __tablename__ = "meetings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String, nullable=True, index=True)
    title = Column(String, nullable=True)
    scheduled_at = Column(UTCDateTime, nullable=False, index=True)
    duration_minutes = Column(Integer, default=60)
    location = Column(String, nullable=True)
    meeting_link = Column(String, nullable=True)  # call link, or the room for in-person
    meeting_type = Column(Enum(MeetingType, native_enum=False), nullable=False, default=MeetingType.VIRTUAL)
    status = Column(Enum(MeetingStatus, native_enum=False), nullable=False, default=MeetingStatus.PENDING, index=True)

    # Participants
    requested_by = Column(String, nullable=True)
    requester_id = Column(String, nullable=True, index=True)
    approver_id = Column(String, nullable=True, index=True)

    agenda = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    # Recurrence
    is_recurring = Column(Boolean, default=False, nullable=False)
    recurrence_pattern = Column(Enum(RecurrencePattern, native_enum=False), nullable=True)
    recurrence_end_date = Column(UTCDateTime, nullable=True)

    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    @property
    def participants(self) -> list[str]:
        """Distinct non-empty participant ids, requester first"""
        result = []
        for user_id in (self.requester_id, self.approver_id):
            if user_id and user_id not in result:
                result.append(user_id)
        return result

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_MEETING_STATUSES

    def __repr__(self):
        return f"<Meeting id={self.id} status={self.status} at={self.scheduled_at}>"
