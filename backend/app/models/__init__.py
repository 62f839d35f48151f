from app.models.attendee import AttendanceStatus, AttendeeRole, EventAttendee
from app.models.event import Event
from app.models.task import Task, TaskStatus
from app.models.user import User

__all__ = [
    "User",
    "Event",
    "EventAttendee",
    "AttendeeRole",
    "AttendanceStatus",
    "Task",
    "TaskStatus",
]
