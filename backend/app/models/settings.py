from sqlmodel import SQLModel, Field
from datetime import datetime


class ClusterSettings(SQLModel, table=True):
    """User-edited clustering thresholds. Single row (id=1)."""

    __tablename__ = "cluster_settings"

    id: int = Field(default=1, primary_key=True)

    time_window_hours: int
    distance_threshold_km: float
    min_photos: int

    updated_at: datetime = Field(default_factory=datetime.utcnow)
