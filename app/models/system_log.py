# app/models/system_log.py
"""
System log table — append-only audit trail of state-machine events.
Written through app.services.event_log.record(); read only by analytics.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text
from app.database import Base


class SystemLog(Base):
    __tablename__ = "system_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    level = Column(String(10), nullable=False)      # INFO | WARN | ERROR
    event = Column(String(50), nullable=False, index=True)
    details = Column(Text)                          # JSON
    timestamp = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<SystemLog {self.id} {self.level} {self.event}>"
