"""Pydantic schemas for Tasks."""
from datetime import date, datetime
from typing import Optional

from pydantic import Field

from app.models.task import TaskStatus
from app.schemas.base import CamelModel, UserSummary


class TaskCreate(CamelModel):
    description: str = Field(min_length=1)
    assigned_to: Optional[int] = None
    due_date: Optional[date] = None


class TaskUpdate(CamelModel):
    """Partial update; only fields present in the request body are applied."""

    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    assigned_to: Optional[int] = None
    due_date: Optional[date] = None


class TaskOut(CamelModel):
    id: int
    event_id: int
    event_title: str
    description: str
    assigned_to: Optional[int] = None
    assignee: Optional[UserSummary] = None
    status: TaskStatus
    due_date: Optional[date] = None
    created_by: int
    creator: UserSummary
    created_at: datetime
    updated_at: datetime
