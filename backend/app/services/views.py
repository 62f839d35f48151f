"""Response assembly: turn joined ORM rows into the wire views."""
from typing import Optional

from app.models.attendee import AttendanceStatus, AttendeeRole, EventAttendee
from app.models.event import Event
from app.models.task import Task
from app.models.user import User
from app.schemas.base import UserSummary
from app.schemas.event import (
    AttendeeOut,
    EventDetailOut,
    EventOut,
    EventSearchHit,
    InvitedEventOut,
)
from app.schemas.task import TaskOut


def roster_sort_key(att: EventAttendee):
    """Organizers first, then by invitation time."""
    return (att.role != AttendeeRole.organizer, att.invited_at, att.user_id)


def user_summary(user: User) -> UserSummary:
    return UserSummary(id=user.id, name=user.name, email=user.email)


def attendee_view(att: EventAttendee) -> AttendeeOut:
    return AttendeeOut(
        user_id=att.user_id,
        user_name=att.user.name,
        user_email=att.user.email,
        role=att.role,
        status=att.status,
        invited_at=att.invited_at,
    )


def _event_fields(event: Event) -> dict:
    return dict(
        id=event.id,
        title=event.title,
        description=event.description,
        location=event.location,
        event_date=event.event_date,
        event_time=event.event_time,
        created_by=event.created_by,
        created_at=event.created_at,
        attendees=[attendee_view(a) for a in sorted(event.attendees, key=roster_sort_key)],
    )


def find_record(event: Event, user_id: int) -> Optional[EventAttendee]:
    for att in event.attendees:
        if att.user_id == user_id:
            return att
    return None


def caller_role_status(event: Event, user_id: int) -> tuple[AttendeeRole, AttendanceStatus]:
    """The caller's own role/status; the creator defaults to organizer/going."""
    record = find_record(event, user_id)
    if record is not None:
        return record.role, record.status
    return AttendeeRole.organizer, AttendanceStatus.going


def event_view(event: Event) -> EventOut:
    return EventOut(**_event_fields(event))


def event_detail_view(event: Event, actor_id: int) -> EventDetailOut:
    role, status = caller_role_status(event, actor_id)
    return EventDetailOut(
        **_event_fields(event),
        organizer=user_summary(event.organizer),
        my_role=role,
        my_status=status,
    )


def invited_event_view(record: EventAttendee) -> InvitedEventOut:
    return InvitedEventOut(
        **_event_fields(record.event),
        role=record.role,
        status=record.status,
        invited_at=record.invited_at,
    )


def event_search_hit(event: Event, actor_id: int) -> EventSearchHit:
    role, status = caller_role_status(event, actor_id)
    return EventSearchHit(**_event_fields(event), my_role=role, my_status=status)


def task_view(task: Task) -> TaskOut:
    return TaskOut(
        id=task.id,
        event_id=task.event_id,
        event_title=task.event.title,
        description=task.description,
        assigned_to=task.assigned_to,
        assignee=user_summary(task.assignee) if task.assignee is not None else None,
        status=task.status,
        due_date=task.due_date,
        created_by=task.created_by,
        creator=user_summary(task.creator),
        created_at=task.created_at,
        updated_at=task.updated_at,
    )
