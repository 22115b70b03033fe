"""
Reminder records - one row per reminder actually sent
"""
import uuid

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, UniqueConstraint
from meetdesk.database import Base
from meetdesk.utils.db_compat import UTCDateTime
from meetdesk.utils.time_utils import utcnow


class ReminderRecord(Base):
    __tablename__ = "meeting_reminders"
    __table_args__ = (
        # (meeting, recipient, lead time) is the dedup key
        UniqueConstraint("meeting_id", "recipient_id", "minutes_before", name="uq_reminder_dedup_key"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    meeting_id = Column(String(36), ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False, index=True)
    recipient_id = Column(String, nullable=False)
    minutes_before = Column(Integer, nullable=False)  # 1440 = one day, 60 = one hour
    is_sent = Column(Boolean, default=False, nullable=False)
    sent_at = Column(UTCDateTime, nullable=True)
    scheduled_for = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, default=utcnow)
