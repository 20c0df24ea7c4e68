"""
Typed entities shared by the clusterer, synthesizer and reconciler.

These are plain pydantic models with no persistence concerns; the backend
maps them to its own tables.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

DEFAULT_TIME_WINDOW_HOURS = 24
DEFAULT_DISTANCE_THRESHOLD_KM = 50.0
DEFAULT_MIN_PHOTOS = 5


class Coordinate(BaseModel):
    """A latitude/longitude pair in decimal degrees."""

    model_config = {"frozen": True}

    lat: float
    lng: float


class PlaceLabels(BaseModel):
    """Reverse-geocoded labels. Free-form, any language, any may be missing."""

    model_config = {"frozen": True}

    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None


class MediaRecord(BaseModel):
    """One geotagged photo or video as supplied by the photo source."""

    model_config = {"frozen": True}

    id: str
    captured_at: datetime
    coordinate: Optional[Coordinate] = None
    place: PlaceLabels = Field(default_factory=PlaceLabels)


class ClusterConfig(BaseModel):
    """User-tunable clustering thresholds."""

    model_config = {"frozen": True}

    # Whole hours; gaps are measured in truncated whole hours
    time_window_hours: int = Field(default=DEFAULT_TIME_WINDOW_HOURS, gt=0)
    distance_threshold_km: float = Field(default=DEFAULT_DISTANCE_THRESHOLD_KM, gt=0)
    min_photos: int = Field(default=DEFAULT_MIN_PHOTOS, ge=1)


class StopPoint(BaseModel):
    """A distinct place visited during a trip."""

    lat: float
    lng: float
    name: str
    photo_count: int


class Adventure(BaseModel):
    """A synthesized trip plus the user-owned fields attached to it."""

    id: str
    title: str
    location: str
    start_date: str
    end_date: str

    # Display media (live references to the photo source)
    cover_photo: str = ""
    photos: List[str] = Field(default_factory=list)

    # Statistics
    media_count: int = 0
    distance: int = 0  # km
    duration: int = 1  # days
    stops: int = 0

    # Geometry
    coordinates: Coordinate = Field(default_factory=lambda: Coordinate(lat=0.0, lng=0.0))
    route: List[Coordinate] = Field(default_factory=list)
    stop_points: List[StopPoint] = Field(default_factory=list)

    # User-owned, preserved across re-syncs
    narrative: str = ""
    ai_summary: str = ""
    highlights: List[str] = Field(default_factory=list)
    is_favorite: bool = False
    is_hidden: bool = False

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Raw media ids, so display URLs can be rebuilt without reclustering
    photo_ids: List[str] = Field(default_factory=list)
    cover_photo_id: Optional[str] = None
