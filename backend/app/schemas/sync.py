from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel


class SyncResult(BaseModel):
    """Counts produced by one successful sync."""

    media_count: int
    cluster_count: int
    created: int
    updated: int
    total: int


class SyncEnqueueResponse(BaseModel):
    message: str
    job_id: str


class SyncStatusResponse(BaseModel):
    """Sync status response model."""

    is_syncing: bool
    started_at: Optional[datetime] = None
    last_sync_time: Optional[datetime] = None
    last_error: Optional[str] = None
    media_count: int = 0
    cluster_count: int = 0
    adventures_created: int = 0
    adventures_updated: int = 0
    adventure_total: int = 0
    server_reachable: Optional[bool] = None

    class Config:
        from_attributes = True


class RefreshMediaResponse(BaseModel):
    refreshed: int


class SyncMetricsResponse(BaseModel):
    internal_counters: Dict[str, int]
    lock_held: bool
    settings: Dict[str, Any]
