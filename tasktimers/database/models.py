"""SQLAlchemy ORM models for TaskTimers."""

from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class StoredValue(Base):
    """One preference or snapshot field, addressed by a string key.

    ``value`` holds JSON text so every key can carry its own shape
    (scalars, the task list, the pomodoro settings object).
    """

    __tablename__ = "stored_values"

    key = Column(String(128), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow,
                        onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<StoredValue key={self.key} value={self.value[:40]!r}>"
