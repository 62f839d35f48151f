"""Pydantic schemas for keyword search."""
from typing import Optional

from app.schemas.base import CamelModel
from app.schemas.event import EventSearchHit
from app.schemas.task import TaskOut


class SearchResults(CamelModel):
    events: Optional[list[EventSearchHit]] = None
    tasks: Optional[list[TaskOut]] = None
