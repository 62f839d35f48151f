"""Search route."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.search import SearchResults
from app.security import get_current_user_id
from app.services import search_service

router = APIRouter()


@router.get("/search", response_model=SearchResults, response_model_exclude_unset=True)
def search(
    keyword: Optional[str] = Query(None, description="Matched against event title/description or task description"),
    role: Optional[str] = Query(None, description="Caller's role in the event: organizer or attendee"),
    type: Optional[str] = Query("all", description="events, tasks or all"),
    actor_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return search_service.search(db, actor_id, keyword=keyword, role=role, search_type=type)
