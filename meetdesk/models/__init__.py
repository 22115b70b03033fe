from meetdesk.models.meeting import Meeting, MeetingStatus, MeetingType, RecurrencePattern
from meetdesk.models.meeting_request import MeetingRequest, RequestStatus
from meetdesk.models.reminder import ReminderRecord
from meetdesk.models.notification import Notification, NotificationCategory, NotificationPriority
from meetdesk.models.availability import SlotMeetingType, SupervisorAvailability, Weekday

__all__ = [
    "Meeting",
    "MeetingStatus",
    "MeetingType",
    "RecurrencePattern",
    "MeetingRequest",
    "RequestStatus",
    "ReminderRecord",
    "Notification",
    "NotificationCategory",
    "NotificationPriority",
    "SlotMeetingType",
    "SupervisorAvailability",
    "Weekday",
]
