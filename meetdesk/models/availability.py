"""
Supervisor availability - weekly office hours and one-off slots
"""
import enum
import uuid

from sqlalchemy import Column, String, Boolean, Time, Enum
from meetdesk.database import Base
from meetdesk.utils.db_compat import UTCDateTime
from meetdesk.utils.time_utils import utcnow


class Weekday(str, enum.Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


WEEK_ORDER = list(Weekday)


class SlotMeetingType(str, enum.Enum):
    VIRTUAL = "virtual"
    IN_PERSON = "in-person"
    BOTH = "both"


class SupervisorAvailability(Base):
    __tablename__ = "supervisor_availability"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    supervisor_id = Column(String, nullable=False, index=True)
    day_of_week = Column(Enum(Weekday, native_enum=False), nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_recurring = Column(Boolean, default=True, nullable=False)  # repeats weekly
    specific_date = Column(UTCDateTime, nullable=True)  # one-off slots only
    meeting_type = Column(Enum(SlotMeetingType, native_enum=False), nullable=False, default=SlotMeetingType.BOTH)
    location = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    @property
    def sort_key(self):
        return WEEK_ORDER.index(self.day_of_week), self.start_time

    def __repr__(self):
        return f"<SupervisorAvailability {self.supervisor_id} {self.day_of_week} {self.start_time}-{self.end_time}>"
