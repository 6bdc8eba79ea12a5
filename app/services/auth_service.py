# app/services/auth_service.py
"""Flat username/password check against the users table."""

import hmac
from sqlalchemy.orm import Session
from app.database import transaction
from app.errors import InvalidCredentialsError
from app.models.user import User
from app.services.event_log import record


def authenticate(db: Session, username: str, password: str) -> User:
    user = db.query(User).filter(User.username == username).first()
    if user is None or not hmac.compare_digest(user.password.encode(), (password or "").encode()):
        with transaction(db):
            record(db, "WARN", "AUTH_FAILURE", {"username": username, "reason": "Invalid credentials"})
        raise InvalidCredentialsError("Invalid credentials")

    with transaction(db):
        record(db, "INFO", "AUTH_SUCCESS", {"userId": user.id, "username": user.username})
    return user
