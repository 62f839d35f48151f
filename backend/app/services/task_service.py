"""Task board: tasks scoped to one event, optionally assigned to a member."""
import logging
from datetime import date
from typing import Any, Optional

from sqlalchemy.orm import Query, Session, joinedload

from app.database import retry_on_serialization_failure, transaction
from app.errors import ForbiddenError, NotFoundError, ValidationError
from app.models.event import Event
from app.models.task import Task, TaskStatus
from app.schemas.task import TaskOut
from app.services import views
from app.services.event_service import can_view, get_event_or_404, is_organizer, require_organizer

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("description", "status", "assigned_to", "due_date")


def with_task_relations(query: Query) -> Query:
    return query.options(
        joinedload(Task.event),
        joinedload(Task.assignee),
        joinedload(Task.creator),
    )


def task_ordering():
    """Due date ascending with undated tasks last, then newest first."""
    return (Task.due_date.is_(None), Task.due_date.asc(), Task.created_at.desc(), Task.id.desc())


def _load_task(db: Session, task_id: int) -> Task:
    task = with_task_relations(db.query(Task)).filter(Task.id == task_id).first()
    if task is None:
        raise NotFoundError("task not found")
    return task


def _clean_description(description: Optional[str]) -> str:
    if description is None or not description.strip():
        raise ValidationError("task description is required")
    return description.strip()


def _check_assignee(db: Session, event: Event, user_id: Optional[int]) -> None:
    if user_id is not None and not can_view(db, event, user_id):
        raise ValidationError("assignee must be invited to the event")


@retry_on_serialization_failure
def create_task(
    db: Session,
    actor_id: int,
    event_id: int,
    description: str,
    assigned_to: Optional[int] = None,
    due_date: Optional[date] = None,
) -> TaskOut:
    with transaction(db):
        event = get_event_or_404(db, event_id)
        require_organizer(db, event, actor_id, "only organizers can create tasks")
        _check_assignee(db, event, assigned_to)
        task = Task(
            event_id=event.id,
            description=_clean_description(description),
            assigned_to=assigned_to,
            due_date=due_date,
            status=TaskStatus.pending,
            created_by=actor_id,
        )
        db.add(task)

    logger.info("Created task %s on event %s by %s", task.id, event_id, actor_id)
    return views.task_view(_load_task(db, task.id))


def list_event_tasks(db: Session, actor_id: int, event_id: int) -> list[TaskOut]:
    event = get_event_or_404(db, event_id)
    if not can_view(db, event, actor_id):
        raise ForbiddenError("you are not authorized to view this event")
    tasks = (
        with_task_relations(db.query(Task))
        .filter(Task.event_id == event.id)
        .order_by(*task_ordering())
        .all()
    )
    return [views.task_view(t) for t in tasks]


@retry_on_serialization_failure
def update_task(db: Session, actor_id: int, task_id: int, updates: dict[str, Any]) -> TaskOut:
    """Apply a partial update.

    Organizers may change any field, including clearing the assignee or due
    date. The current assignee may change only the status.
    """
    changes = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS}

    with transaction(db):
        task = _load_task(db, task_id)
        event = task.event
        if not is_organizer(db, event, actor_id):
            if task.assigned_to != actor_id or set(changes) - {"status"}:
                logger.warning("User %s refused update of task %s", actor_id, task_id)
                raise ForbiddenError("only organizers or the assignee can update this task")

        if "description" in changes:
            changes["description"] = _clean_description(changes["description"])
        if "status" in changes:
            try:
                changes["status"] = TaskStatus(changes["status"])
            except ValueError:
                raise ValidationError("status must be one of pending, in_progress, completed, cancelled")
        if "assigned_to" in changes:
            _check_assignee(db, event, changes["assigned_to"])

        for field, value in changes.items():
            setattr(task, field, value)

    logger.info("Updated task %s (%s) by %s", task_id, ", ".join(sorted(changes)) or "no changes", actor_id)
    return views.task_view(_load_task(db, task_id))


@retry_on_serialization_failure
def delete_task(db: Session, actor_id: int, task_id: int) -> None:
    with transaction(db):
        task = _load_task(db, task_id)
        require_organizer(db, task.event, actor_id, "only organizers can delete tasks")
        db.delete(task)
    logger.info("Deleted task %s by %s", task_id, actor_id)
