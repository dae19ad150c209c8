"""
CRUD repository for the access-log table.

``AccessLogRepository`` receives an ``AsyncSession`` and provides all
data-access methods. It calls ``flush()`` rather than ``commit()`` so
that transaction boundaries are controlled by the caller (typically
:func:`get_session`).
"""

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from voicecheck.core.exceptions import LogRecordNotFoundError
from voicecheck.core.models import AnalysisResult, LogRecord
from voicecheck.core.utils import now_ms
from voicecheck.services.storage.models_db import AccessLog

logger = logging.getLogger(__name__)


def to_log_record(row: AccessLog) -> LogRecord:
    """Convert an ORM row into the public ``LogRecord`` model."""
    return LogRecord(
        id=row.id,
        timestamp=row.timestamp,
        analysis=AnalysisResult.model_validate(row.analysis),
        ip=row.ip,
        user_agent=row.user_agent,
    )


class AccessLogRepository:
    """Data-access layer for ``access_logs``.

    Args:
        session: An active SQLAlchemy ``AsyncSession``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_log(
        self,
        analysis: AnalysisResult,
        ip: str | None = None,
        user_agent: str | None = None,
        timestamp: int | None = None,
    ) -> AccessLog:
        """Insert and return a new log row with a fresh UUID."""
        row = AccessLog(
            id=str(uuid.uuid4()),
            timestamp=timestamp if timestamp is not None else now_ms(),
            analysis=analysis.to_wire(),
            ip=ip,
            user_agent=user_agent,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get_log(self, record_id: str) -> AccessLog:
        """Return a row by ID or raise :class:`LogRecordNotFoundError`."""
        row = await self._session.get(AccessLog, record_id)
        if row is None:
            raise LogRecordNotFoundError(record_id)
        return row

    async def list_logs(self, limit: int | None = None, offset: int = 0) -> list[AccessLog]:
        """Return rows newest first."""
        stmt = (
            select(AccessLog)
            .order_by(AccessLog.timestamp.desc(), AccessLog.id)
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def count_logs(self) -> int:
        """Number of stored rows."""
        result = await self._session.execute(select(func.count()).select_from(AccessLog))
        return int(result.scalar_one())

    async def delete_log(self, record_id: str) -> None:
        """Delete a row by ID or raise :class:`LogRecordNotFoundError`."""
        row = await self.get_log(record_id)
        await self._session.delete(row)
        await self._session.flush()
