"""Event API routes: delegates to event_service for access control."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.base import MessageOut
from app.schemas.event import (
    EventCreate,
    EventDetailOut,
    EventOut,
    InvitationOut,
    InviteRequest,
    InvitedEventOut,
)
from app.security import get_current_user_id
from app.services import event_service

router = APIRouter()


@router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    actor_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Create an event; the caller becomes its organizer."""
    return event_service.create_event(
        db,
        actor_id=actor_id,
        title=payload.title,
        description=payload.description,
        location=payload.location,
        event_date=payload.event_date,
        event_time=payload.event_time,
    )


@router.get("/organized", response_model=list[EventOut])
def list_organized_events(actor_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return event_service.list_organized_events(db, actor_id)


@router.get("/invited", response_model=list[InvitedEventOut])
def list_invited_events(actor_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return event_service.list_invited_events(db, actor_id)


@router.get("/{event_id}", response_model=EventDetailOut)
def get_event(event_id: int, actor_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Fetch a single event with organizer, roster and the caller's own role."""
    return event_service.get_event_details(db, actor_id, event_id)


@router.delete("/{event_id}", response_model=MessageOut)
def delete_event(event_id: int, actor_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Delete an event with its attendees and tasks (creator only)."""
    event_service.delete_event(db, actor_id, event_id)
    return MessageOut(message="event deleted successfully")


@router.post("/{event_id}/invite", response_model=InvitationOut, status_code=status.HTTP_201_CREATED)
def invite_user(
    event_id: int,
    payload: InviteRequest,
    actor_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Invite a registered user by email (organizers only)."""
    return event_service.invite_user(db, actor_id, event_id, payload.email, payload.role)
