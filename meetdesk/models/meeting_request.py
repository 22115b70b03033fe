"""
Meeting request model - a requester asks an approver for a meeting
"""
import enum
import uuid

from sqlalchemy import Column, Integer, String, Text, ForeignKey, Enum
from meetdesk.database import Base
from meetdesk.models.meeting import MeetingType
from meetdesk.utils.db_compat import UTCDateTime
from meetdesk.utils.time_utils import utcnow


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class MeetingRequest(Base):
    __tablename__ = "meeting_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String, nullable=True, index=True)
    requester_id = Column(String, nullable=False, index=True)
    approver_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=True)
    agenda = Column(Text, nullable=False)
    preferred_at = Column(UTCDateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=True)
    meeting_type = Column(Enum(MeetingType, native_enum=False), nullable=True)
    location = Column(String, nullable=True)
    status = Column(Enum(RequestStatus, native_enum=False), nullable=False, default=RequestStatus.PENDING, index=True)

    # Set on rejection only
    rejection_reason = Column(Text, nullable=True)
    # Set on approval only
    meeting_id = Column(String(36), ForeignKey("meetings.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<MeetingRequest id={self.id} status={self.status}>"
