"""Signup and login routes (public)."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.base import UserSummary
from app.schemas.user import LoginRequest, LoginResponse, SignupRequest
from app.services import auth_service

router = APIRouter()


@router.post("/signup", response_model=UserSummary, status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, db: Session = Depends(get_db)):
    """Register a new account."""
    user = auth_service.register(db, name=payload.name, email=payload.email, password=payload.password)
    return UserSummary.model_validate(user)


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for a bearer token."""
    user, token = auth_service.authenticate(db, email=payload.email, password=payload.password)
    return LoginResponse(token=token, user=UserSummary.model_validate(user))
