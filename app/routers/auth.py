# app/routers/auth.py
"""Login — flat credential check, returns the user's id and role."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.auth import LoginRequest, UserOut
from app.services.auth_service import authenticate

router = APIRouter()


@router.post("/auth", response_model=UserOut, summary="Authenticate a user")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    return authenticate(db, body.username, body.password)
