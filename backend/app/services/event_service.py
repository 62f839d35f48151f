"""Core event service: access control and transactional workflows.

Responsibilities:
- Event creation together with the creator's organizer record
- Visibility: only the creator and invited users may see an event
- Invitations: organizers only, one record per (event, user)
- Deletion: creator only, attendance records and tasks go with the event

Every write runs inside ``transaction(db)`` so a failure at any step rolls
back the whole operation.
"""
import logging
from datetime import date, datetime, timezone
from typing import Optional, Union

from sqlalchemy.orm import Session, joinedload, selectinload

from app.database import retry_on_serialization_failure, transaction
from app.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.models.attendee import AttendanceStatus, AttendeeRole, EventAttendee
from app.models.event import Event
from app.models.task import Task
from app.schemas.event import EventDetailOut, EventOut, InvitationOut, InvitedEventOut
from app.services import views
from app.services.auth_service import find_user_by_email

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 255
MAX_LOCATION_LENGTH = 255


# ── Parsing ────────────────────────────────────────────────────────


def parse_event_date(value: Union[str, date]) -> date:
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("invalid eventDate format. Use YYYY-MM-DD")


def normalize_event_time(value: str) -> str:
    """Accept HH:MM or HH:MM:SS and return HH:MM:SS."""
    value = value.strip()
    if len(value) == 5 and value[2] == ":":
        value += ":00"
    try:
        parsed = datetime.strptime(value, "%H:%M:%S")
    except ValueError:
        raise ValidationError("invalid eventTime format. Use HH:MM:SS or HH:MM")
    return parsed.strftime("%H:%M:%S")


def _check_length(field: str, value: str, limit: int) -> None:
    if not value or not value.strip() or len(value) > limit:
        raise ValidationError(f"{field} must be between 1 and {limit} characters")


# ── Lookups & authorization ────────────────────────────────────────


def _with_roster(query):
    return query.options(
        joinedload(Event.organizer),
        selectinload(Event.attendees).joinedload(EventAttendee.user),
    )


def get_event_or_404(db: Session, event_id: int, with_roster: bool = False) -> Event:
    query = db.query(Event).filter(Event.id == event_id)
    if with_roster:
        query = _with_roster(query)
    event = query.first()
    if event is None:
        raise NotFoundError("event not found")
    return event


def find_attendance(db: Session, event_id: int, user_id: int) -> Optional[EventAttendee]:
    return (
        db.query(EventAttendee)
        .filter(EventAttendee.event_id == event_id, EventAttendee.user_id == user_id)
        .first()
    )


def is_organizer(db: Session, event: Event, user_id: int) -> bool:
    """Creator, or anyone holding an organizer-role record for the event."""
    if event.created_by == user_id:
        return True
    record = find_attendance(db, event.id, user_id)
    return record is not None and record.role == AttendeeRole.organizer


def can_view(db: Session, event: Event, user_id: int) -> bool:
    return event.created_by == user_id or find_attendance(db, event.id, user_id) is not None


def require_organizer(db: Session, event: Event, user_id: int, message: str) -> None:
    if not is_organizer(db, event, user_id):
        logger.warning("User %s refused organizer action on event %s", user_id, event.id)
        raise ForbiddenError(message)


# ── Operations ─────────────────────────────────────────────────────


@retry_on_serialization_failure
def create_event(
    db: Session,
    actor_id: int,
    title: str,
    description: Optional[str],
    location: str,
    event_date: Union[str, date],
    event_time: str,
) -> EventOut:
    """Create an event and the creator's organizer/going record atomically."""
    _check_length("title", title, MAX_TITLE_LENGTH)
    _check_length("location", location, MAX_LOCATION_LENGTH)
    parsed_date = parse_event_date(event_date)
    normalized_time = normalize_event_time(event_time)

    with transaction(db):
        event = Event(
            title=title,
            description=description,
            location=location,
            event_date=parsed_date,
            event_time=normalized_time,
            created_by=actor_id,
        )
        db.add(event)
        db.flush()
        db.add(
            EventAttendee(
                event_id=event.id,
                user_id=actor_id,
                role=AttendeeRole.organizer,
                status=AttendanceStatus.going,
                invited_at=datetime.now(timezone.utc),
            )
        )

    logger.info("Created event '%s' (%s) by organizer %s", title, event.id, actor_id)
    return views.event_view(get_event_or_404(db, event.id, with_roster=True))


def get_event_details(db: Session, actor_id: int, event_id: int) -> EventDetailOut:
    event = get_event_or_404(db, event_id, with_roster=True)
    if event.created_by != actor_id and views.find_record(event, actor_id) is None:
        raise ForbiddenError("you are not authorized to view this event")
    return views.event_detail_view(event, actor_id)


def list_organized_events(db: Session, actor_id: int) -> list[EventOut]:
    """Events the actor created, newest first."""
    events = (
        _with_roster(db.query(Event))
        .filter(Event.created_by == actor_id)
        .order_by(Event.created_at.desc(), Event.id.desc())
        .all()
    )
    return [views.event_view(e) for e in events]


def list_invited_events(db: Session, actor_id: int) -> list[InvitedEventOut]:
    """Every event the actor holds a record for, most recent invitation first."""
    records = (
        db.query(EventAttendee)
        .options(
            selectinload(EventAttendee.event)
            .selectinload(Event.attendees)
            .joinedload(EventAttendee.user)
        )
        .filter(EventAttendee.user_id == actor_id)
        .order_by(EventAttendee.invited_at.desc(), EventAttendee.event_id.desc())
        .all()
    )
    return [views.invited_event_view(r) for r in records]


@retry_on_serialization_failure
def invite_user(
    db: Session,
    actor_id: int,
    event_id: int,
    invitee_email: str,
    role: AttendeeRole = AttendeeRole.attendee,
) -> InvitationOut:
    """Invite a registered user to an event with status pending.

    Existence is checked before authorization, so a missing event is always
    404 and an existing one the actor cannot manage is always 403. The
    existence check for a prior record is only a pre-check; the composite
    primary key on event_attendees rejects a concurrent duplicate, which
    surfaces as the same ConflictError.
    """
    try:
        role = AttendeeRole(role)
    except ValueError:
        raise ValidationError("role must be organizer or attendee")
    already_invited = "user is already invited to this event"

    with transaction(db, conflict_message=already_invited):
        event = get_event_or_404(db, event_id)
        require_organizer(db, event, actor_id, "only organizers can invite users")

        invitee = find_user_by_email(db, invitee_email)
        if invitee is None:
            raise NotFoundError("user not found")
        if invitee.id == event.created_by or find_attendance(db, event.id, invitee.id) is not None:
            raise ConflictError(already_invited)

        db.add(
            EventAttendee(
                event_id=event.id,
                user_id=invitee.id,
                role=role,
                status=AttendanceStatus.pending,
                invited_at=datetime.now(timezone.utc),
            )
        )
        result = InvitationOut(event_id=event.id, user_id=invitee.id, email=invitee.email, role=role)

    logger.info("User %s invited %s to event %s as %s", actor_id, result.email, event_id, role.value)
    return result


@retry_on_serialization_failure
def delete_event(db: Session, actor_id: int, event_id: int) -> None:
    """Delete an event with its attendance records and tasks (creator only)."""
    with transaction(db):
        event = get_event_or_404(db, event_id)
        if event.created_by != actor_id:
            logger.warning("User %s refused deletion of event %s", actor_id, event_id)
            raise ForbiddenError("only the event creator can delete this event")

        db.query(EventAttendee).filter(EventAttendee.event_id == event_id).delete(synchronize_session=False)
        db.query(Task).filter(Task.event_id == event_id).delete(synchronize_session=False)
        db.query(Event).filter(Event.id == event_id).delete(synchronize_session=False)
        db.expunge(event)

    logger.info("Deleted event %s by creator %s", event_id, actor_id)
