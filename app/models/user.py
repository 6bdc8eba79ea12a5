# app/models/user.py
"""
Users table — flat credential store for the two account kinds.
role is either "admin" or "consumer".
"""

from sqlalchemy import Column, String, DateTime
from app.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    password = Column(String(200), nullable=False)
    role = Column(String(20), default="consumer", nullable=False)
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<User {self.username} role={self.role}>"
