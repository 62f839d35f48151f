"""Attendance responses and the organizer-only attendee roster."""
import logging
from datetime import datetime, timezone
from typing import Union

from sqlalchemy import case
from sqlalchemy.orm import Session, joinedload

from app.database import retry_on_serialization_failure, transaction
from app.errors import ForbiddenError, ValidationError
from app.models.attendee import RESPONSE_STATUSES, AttendanceStatus, AttendeeRole, EventAttendee
from app.schemas.event import AttendanceOut, AttendeeListOut
from app.services import views
from app.services.event_service import find_attendance, get_event_or_404, require_organizer

logger = logging.getLogger(__name__)


def _response_status(value: Union[str, AttendanceStatus]) -> AttendanceStatus:
    try:
        status = AttendanceStatus(value)
    except ValueError:
        status = None
    if status not in RESPONSE_STATUSES:
        raise ValidationError("status must be one of going, maybe, not_going")
    return status


@retry_on_serialization_failure
def set_attendance_status(
    db: Session,
    actor_id: int,
    event_id: int,
    new_status: Union[str, AttendanceStatus],
) -> AttendanceOut:
    """Record the actor's own response to an event.

    Invited users update their record in place. A creator whose organizer
    record is missing gets one recreated with the chosen status. Anyone else
    is refused.
    """
    status = _response_status(new_status)

    with transaction(db):
        event = get_event_or_404(db, event_id)
        record = find_attendance(db, event.id, actor_id)
        if record is not None:
            record.status = status
        elif event.created_by == actor_id:
            record = EventAttendee(
                event_id=event.id,
                user_id=actor_id,
                role=AttendeeRole.organizer,
                status=status,
                invited_at=datetime.now(timezone.utc),
            )
            db.add(record)
            logger.info("Recreated missing organizer record for creator %s on event %s", actor_id, event_id)
        else:
            logger.warning("User %s is not invited to event %s", actor_id, event_id)
            raise ForbiddenError("you are not invited to this event")
        result = AttendanceOut(event_id=event.id, user_id=actor_id, status=status, role=record.role)

    logger.info("User %s set status '%s' on event %s", actor_id, status.value, event_id)
    return result


def list_attendees(db: Session, actor_id: int, event_id: int) -> AttendeeListOut:
    """Roster for organizers: organizer role first, then by invitation time."""
    event = get_event_or_404(db, event_id)
    require_organizer(db, event, actor_id, "only organizers can view attendees list")

    organizers_first = case((EventAttendee.role == AttendeeRole.organizer, 0), else_=1)
    records = (
        db.query(EventAttendee)
        .options(joinedload(EventAttendee.user))
        .filter(EventAttendee.event_id == event.id)
        .order_by(organizers_first, EventAttendee.invited_at.asc(), EventAttendee.user_id.asc())
        .all()
    )
    return AttendeeListOut(
        event_id=event.id,
        event_title=event.title,
        attendees=[views.attendee_view(r) for r in records],
    )
