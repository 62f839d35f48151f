"""Keyword search over the caller's events and their tasks.

Both searches join through event_attendees on the caller's user id, so a
result can only come from an event the caller holds a record for.
"""
import logging
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from app.errors import ValidationError
from app.models.attendee import AttendeeRole, EventAttendee
from app.models.event import Event
from app.models.task import Task
from app.schemas.event import EventSearchHit
from app.schemas.search import SearchResults
from app.schemas.task import TaskOut
from app.services import views
from app.services.task_service import task_ordering, with_task_relations

logger = logging.getLogger(__name__)

SEARCH_TYPES = ("events", "tasks", "all")


def _like_pattern(keyword: str) -> str:
    escaped = keyword.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _role_filter(role: Optional[str]) -> Optional[AttendeeRole]:
    if not role:
        return None
    try:
        return AttendeeRole(role.strip().lower())
    except ValueError:
        # unknown roles are ignored rather than rejected
        logger.debug("Ignoring unsupported search role %r", role)
        return None


def search_events(
    db: Session, actor_id: int, keyword: Optional[str] = None, role: Optional[str] = None
) -> list[EventSearchHit]:
    query = (
        db.query(Event)
        .join(EventAttendee, EventAttendee.event_id == Event.id)
        .filter(EventAttendee.user_id == actor_id)
    )
    if keyword:
        pattern = _like_pattern(keyword)
        query = query.filter(
            or_(
                func.lower(Event.title).like(pattern, escape="\\"),
                func.lower(Event.description).like(pattern, escape="\\"),
            )
        )
    role_filter = _role_filter(role)
    if role_filter is not None:
        query = query.filter(EventAttendee.role == role_filter)

    events = (
        query.options(
            joinedload(Event.organizer),
            selectinload(Event.attendees).joinedload(EventAttendee.user),
        )
        .order_by(Event.created_at.desc(), Event.id.desc())
        .all()
    )
    return [views.event_search_hit(e, actor_id) for e in events]


def search_tasks(
    db: Session, actor_id: int, keyword: Optional[str] = None, role: Optional[str] = None
) -> list[TaskOut]:
    query = (
        with_task_relations(db.query(Task))
        .join(EventAttendee, EventAttendee.event_id == Task.event_id)
        .filter(EventAttendee.user_id == actor_id)
    )
    if keyword:
        query = query.filter(func.lower(Task.description).like(_like_pattern(keyword), escape="\\"))
    role_filter = _role_filter(role)
    if role_filter is not None:
        query = query.filter(EventAttendee.role == role_filter)

    tasks = query.order_by(*task_ordering()).all()
    return [views.task_view(t) for t in tasks]


def search(
    db: Session,
    actor_id: int,
    keyword: Optional[str] = None,
    role: Optional[str] = None,
    search_type: Optional[str] = None,
) -> SearchResults:
    search_type = (search_type or "all").strip().lower()
    if search_type not in SEARCH_TYPES:
        raise ValidationError("type must be one of events, tasks, all")
    keyword = keyword.strip() if keyword else None

    results = SearchResults()
    if search_type in ("events", "all"):
        results.events = search_events(db, actor_id, keyword, role)
    if search_type in ("tasks", "all"):
        results.tasks = search_tasks(db, actor_id, keyword, role)
    return results
