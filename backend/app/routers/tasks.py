"""Task board routes."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.base import MessageOut
from app.schemas.task import TaskCreate, TaskOut, TaskUpdate
from app.security import get_current_user_id
from app.services import task_service

router = APIRouter()


@router.post("/events/{event_id}/tasks", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    event_id: int,
    payload: TaskCreate,
    actor_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return task_service.create_task(
        db,
        actor_id=actor_id,
        event_id=event_id,
        description=payload.description,
        assigned_to=payload.assigned_to,
        due_date=payload.due_date,
    )


@router.get("/events/{event_id}/tasks", response_model=list[TaskOut])
def list_tasks(event_id: int, actor_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return task_service.list_event_tasks(db, actor_id, event_id)


@router.patch("/tasks/{task_id}", response_model=TaskOut)
def update_task(
    task_id: int,
    payload: TaskUpdate,
    actor_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Partial update; omitted fields are left unchanged, explicit nulls clear them."""
    return task_service.update_task(db, actor_id, task_id, payload.model_dump(exclude_unset=True))


@router.delete("/tasks/{task_id}", response_model=MessageOut)
def delete_task(task_id: int, actor_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    task_service.delete_task(db, actor_id, task_id)
    return MessageOut(message="task deleted successfully")
