"""
In-app notification model
"""
import enum

from sqlalchemy import Column, Integer, String, Text, Boolean, Enum
from meetdesk.database import Base
from meetdesk.utils.db_compat import UTCDateTime
from meetdesk.utils.time_utils import utcnow


class NotificationCategory(str, enum.Enum):
    MEETING = "meeting"
    SUCCESS = "success"
    WARNING = "warning"


class NotificationPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    category = Column(Enum(NotificationCategory, native_enum=False), nullable=False)
    priority = Column(Enum(NotificationPriority, native_enum=False), nullable=False, default=NotificationPriority.MEDIUM)
    link = Column(String, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(UTCDateTime, default=utcnow)
