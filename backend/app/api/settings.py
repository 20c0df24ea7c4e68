from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from adventure_core import ClusterConfig

from ..core.database import get_db
from ..schemas.settings import ClusterSettingsResponse, ClusterSettingsUpdate
from ..store import (
    get_cluster_config,
    get_cluster_settings,
    reset_cluster_config,
    save_cluster_config,
)

router = APIRouter()


def _settings_response(db: Session) -> ClusterSettingsResponse:
    config = get_cluster_config(db)
    row = get_cluster_settings(db)
    return ClusterSettingsResponse(
        time_window_hours=config.time_window_hours,
        distance_threshold_km=config.distance_threshold_km,
        min_photos=config.min_photos,
        is_default=row is None,
        updated_at=row.updated_at if row else None,
    )


@router.get("/cluster", response_model=ClusterSettingsResponse)
async def get_cluster_settings_endpoint(db: Session = Depends(get_db)):
    """Get the clustering thresholds used by the next sync."""
    return _settings_response(db)


@router.put("/cluster", response_model=ClusterSettingsResponse)
async def update_cluster_settings(
    update: ClusterSettingsUpdate,
    db: Session = Depends(get_db),
):
    """Save clustering thresholds. Takes effect on the next sync."""
    save_cluster_config(db, ClusterConfig(**update.model_dump()))
    return _settings_response(db)


@router.delete("/cluster", status_code=status.HTTP_204_NO_CONTENT)
async def reset_cluster_settings(db: Session = Depends(get_db)):
    """Reset clustering thresholds to the defaults."""
    reset_cluster_config(db)
