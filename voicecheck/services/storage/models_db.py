"""
SQLAlchemy ORM models for the VoiceCheck access-log store (schema v2).

Tables: ``access_logs``. Raw audio is never stored.
"""

from sqlalchemy import BigInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from voicecheck.services.storage.database import Base


class AccessLog(Base):
    """One completed analysis plus best-effort request metadata."""

    __tablename__ = "access_logs"

    # id and timestamp are assigned by AccessLogRepository.create_log
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, index=True)
    analysis: Mapped[dict] = mapped_column(JSON)
    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<AccessLog id={self.id!r} timestamp={self.timestamp}>"
