"""
Storage module - Access-log database operations.
"""

from voicecheck.services.storage.access_log import AccessLogStore
from voicecheck.services.storage.database import (
    SCHEMA_VERSION,
    Base,
    close_db,
    get_engine,
    get_session,
    init_db,
    reset_engine,
)
from voicecheck.services.storage.ip_lookup import UNKNOWN_IP, IpLookup
from voicecheck.services.storage.models_db import AccessLog
from voicecheck.services.storage.repository import AccessLogRepository

__all__ = [
    "SCHEMA_VERSION",
    "UNKNOWN_IP",
    "AccessLog",
    "AccessLogRepository",
    "AccessLogStore",
    "Base",
    "IpLookup",
    "close_db",
    "get_engine",
    "get_session",
    "init_db",
    "reset_engine",
]
