"""
Local persistence store for analysis access logs.

``save`` is an observability side effect: IP-lookup and write failures are
logged and swallowed so they never interrupt a session. ``list_all``
degrades to an empty list; ``delete`` propagates to the admin caller.
"""

import logging
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager

from sqlalchemy.ext.asyncio import AsyncSession

from voicecheck.core.models import AnalysisResult, LogRecord
from voicecheck.services.storage.database import get_session
from voicecheck.services.storage.ip_lookup import UNKNOWN_IP, IpLookup
from voicecheck.services.storage.repository import AccessLogRepository, to_log_record

logger = logging.getLogger(__name__)

SessionProvider = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class AccessLogStore:
    """Save / list / delete ``LogRecord`` entries.

    Args:
        ip_lookup: Awaitable returning the caller's IP; None skips the lookup.
        session_provider: Context-manager factory yielding an ``AsyncSession``.
    """

    def __init__(
        self,
        ip_lookup: Callable[[], Awaitable[str]] | None = None,
        session_provider: SessionProvider = get_session,
    ) -> None:
        self._ip_lookup = ip_lookup
        self._session_provider = session_provider

    @classmethod
    def default(cls) -> "AccessLogStore":
        """Store wired to the configured database and IP service."""
        return cls(ip_lookup=IpLookup())

    async def _resolve_ip(self) -> str | None:
        if self._ip_lookup is None:
            return None
        try:
            return await self._ip_lookup()
        except Exception:
            logger.warning("IP lookup raised; storing placeholder", exc_info=True)
            return UNKNOWN_IP

    async def save(
        self,
        analysis: AnalysisResult,
        user_agent: str | None = None,
    ) -> LogRecord | None:
        """Persist one analysis. Never raises.

        Returns:
            The stored record, or None if the write failed.
        """
        ip = await self._resolve_ip()
        try:
            async with self._session_provider() as session:
                repo = AccessLogRepository(session)
                row = await repo.create_log(analysis=analysis, ip=ip, user_agent=user_agent)
                record = to_log_record(row)
        except Exception:
            logger.exception("Failed to save access log")
            return None
        logger.info("Saved access log %s", record.id)
        return record

    async def list_all(self) -> list[LogRecord]:
        """All records newest first; empty if the store cannot be read."""
        try:
            async with self._session_provider() as session:
                rows = await AccessLogRepository(session).list_logs()
                return [to_log_record(row) for row in rows]
        except Exception:
            logger.exception("Failed to fetch access logs")
            return []

    async def count(self) -> int:
        """Number of stored records; 0 if the store cannot be read."""
        try:
            async with self._session_provider() as session:
                return await AccessLogRepository(session).count_logs()
        except Exception:
            logger.exception("Failed to count access logs")
            return 0

    async def delete(self, record_id: str) -> None:
        """Delete one record.

        Raises:
            LogRecordNotFoundError: If the ID does not exist.
        """
        async with self._session_provider() as session:
            await AccessLogRepository(session).delete_log(record_id)
        logger.info("Deleted access log %s", record_id)
