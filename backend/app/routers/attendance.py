"""Attendance response and roster routes."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.event import AttendanceOut, AttendanceUpdate, AttendeeListOut
from app.security import get_current_user_id
from app.services import attendance_service

router = APIRouter()


@router.put("/{event_id}/attendance", response_model=AttendanceOut)
def set_attendance(
    event_id: int,
    payload: AttendanceUpdate,
    actor_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Set the caller's own status (going, maybe, not_going)."""
    return attendance_service.set_attendance_status(db, actor_id, event_id, payload.status)


@router.get("/{event_id}/attendees", response_model=AttendeeListOut)
def list_attendees(event_id: int, actor_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Roster with statuses (organizers only)."""
    return attendance_service.list_attendees(db, actor_id, event_id)
