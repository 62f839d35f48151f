"""EventAttendee ORM model: one user's role and attendance status for one event."""
import enum

from sqlalchemy import Column, DateTime, Enum as SAEnum, ForeignKey, Integer
from sqlalchemy.orm import relationship

from app.database import Base
from app.models.user import utcnow


class AttendeeRole(str, enum.Enum):
    organizer = "organizer"
    attendee = "attendee"


class AttendanceStatus(str, enum.Enum):
    going = "going"
    maybe = "maybe"
    not_going = "not_going"
    pending = "pending"


# Statuses a user may pick for themselves; pending is only ever set by an invite.
RESPONSE_STATUSES = (AttendanceStatus.going, AttendanceStatus.maybe, AttendanceStatus.not_going)


class EventAttendee(Base):
    __tablename__ = "event_attendees"

    # composite key: the authoritative guard against duplicate invitations
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True, index=True)
    role = Column(SAEnum(AttendeeRole, name="attendee_role"), nullable=False, default=AttendeeRole.attendee)
    status = Column(
        SAEnum(AttendanceStatus, name="attendance_status"),
        nullable=False,
        default=AttendanceStatus.pending,
    )
    invited_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    event = relationship("Event", back_populates="attendees")
    user = relationship("User")
