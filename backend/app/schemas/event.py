"""Pydantic schemas for events, invitations and attendance."""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import EmailStr, Field

from app.models.attendee import AttendanceStatus, AttendeeRole
from app.schemas.base import CamelModel, UserSummary


class EventCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    location: str = Field(min_length=1, max_length=255)
    event_date: str  # YYYY-MM-DD
    event_time: str  # HH:MM or HH:MM:SS


class InviteRequest(CamelModel):
    email: EmailStr
    role: AttendeeRole = AttendeeRole.attendee


class AttendanceUpdate(CamelModel):
    status: AttendanceStatus


class AttendeeOut(CamelModel):
    user_id: int
    user_name: str
    user_email: str
    role: AttendeeRole
    status: AttendanceStatus
    invited_at: datetime


class EventOut(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    location: str
    event_date: date
    event_time: str
    created_by: int
    created_at: datetime
    attendees: list[AttendeeOut] = []


class EventDetailOut(EventOut):
    organizer: UserSummary
    my_role: AttendeeRole
    my_status: AttendanceStatus


class InvitedEventOut(EventOut):
    role: AttendeeRole
    status: AttendanceStatus
    invited_at: datetime


class EventSearchHit(EventOut):
    my_role: AttendeeRole
    my_status: AttendanceStatus


class InvitationOut(CamelModel):
    message: str = "user invited successfully"
    event_id: int
    user_id: int
    email: str
    role: AttendeeRole


class AttendanceOut(CamelModel):
    message: str = "attendance status updated successfully"
    event_id: int
    user_id: int
    status: AttendanceStatus
    role: AttendeeRole


class AttendeeListOut(CamelModel):
    event_id: int
    event_title: str
    attendees: list[AttendeeOut]
