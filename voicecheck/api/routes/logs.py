"""
Access-log admin endpoints.

Listing degrades to an empty list when the store cannot be read;
deleting an unknown ID answers 404.
"""

from fastapi import APIRouter

from voicecheck.api.middleware.error_handler import ERROR_RESPONSES
from voicecheck.core.models import DeleteLogResponse, LogCount, LogRecord
from voicecheck.services.storage import AccessLogStore

router = APIRouter(prefix="/logs", tags=["logs"], responses=ERROR_RESPONSES)


@router.get("", response_model=list[LogRecord])
async def list_logs():
    """All access logs, newest first."""
    return await AccessLogStore().list_all()


@router.get("/count", response_model=LogCount)
async def count_logs():
    """Number of stored access logs, as shown on the admin dashboard."""
    return LogCount(total=await AccessLogStore().count())


@router.delete("/{record_id}", response_model=DeleteLogResponse)
async def delete_log(record_id: str):
    """Delete one access log by ID."""
    await AccessLogStore().delete(record_id)
    return DeleteLogResponse(id=record_id)
