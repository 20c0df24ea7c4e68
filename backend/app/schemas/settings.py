from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class ClusterSettingsResponse(BaseModel):
    """Effective clustering thresholds."""

    time_window_hours: int
    distance_threshold_km: float
    min_photos: int
    is_default: bool
    updated_at: Optional[datetime] = None


class ClusterSettingsUpdate(BaseModel):
    """Clustering thresholds submitted from the settings screen."""

    time_window_hours: int = Field(gt=0, le=24 * 30)
    distance_threshold_km: float = Field(gt=0, le=20000)
    min_photos: int = Field(ge=1, le=1000)
