import logging
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlmodel import Session

from ..core.database import get_db
from ..core.deps import get_configured_media_client, get_media_client
from ..core.immich import ImmichClient
from ..schemas.sync import (
    RefreshMediaResponse,
    SyncEnqueueResponse,
    SyncMetricsResponse,
    SyncStatusResponse,
)
from ..store import get_sync_status
from ..worker_tasks import (
    SyncInProgressError,
    enqueue_sync,
    get_sync_metrics,
    refresh_media_urls,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=SyncEnqueueResponse, status_code=status.HTTP_202_ACCEPTED)
async def start_sync(
    client: ImmichClient = Depends(get_configured_media_client),
):
    """Queue a full resync of adventures from the photo server."""
    try:
        job_id = enqueue_sync()
    except SyncInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return SyncEnqueueResponse(message="Sync queued", job_id=job_id)


@router.get("/status", response_model=SyncStatusResponse)
async def sync_status(
    check_server: bool = Query(False, description="Also ping the photo server"),
    db: Session = Depends(get_db),
    client: ImmichClient = Depends(get_media_client),
):
    """Get the outcome of the last sync."""
    response = SyncStatusResponse.model_validate(get_sync_status(db))
    if check_server:
        response.server_reachable = client.is_configured() and client.ping()
    return response


@router.post("/refresh-media", response_model=RefreshMediaResponse)
async def refresh_media(
    db: Session = Depends(get_db),
    client: ImmichClient = Depends(get_configured_media_client),
):
    """Rebuild photo URLs of stored adventures without reclustering."""
    try:
        refreshed = refresh_media_urls(db, client.thumbnail_url)
    except SyncInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return RefreshMediaResponse(refreshed=refreshed)


@router.get("/metrics", response_model=SyncMetricsResponse)
async def sync_metrics():
    """Sync counters and lock state."""
    return get_sync_metrics()
