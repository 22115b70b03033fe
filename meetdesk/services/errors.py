"""
Typed failures raised by the service layer
"""


class MeetDeskError(Exception):
    """Base class for service-layer failures"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MeetDeskError):
    """Bad or missing input"""


class ConflictError(MeetDeskError):
    """A precondition on the current state was violated"""


class NotFoundError(MeetDeskError):
    """A referenced id does not exist"""


class TransientIOError(MeetDeskError):
    """The database or notification channel could not be reached"""
