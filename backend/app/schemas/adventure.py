from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from adventure_core import Adventure, ClusterConfig


class CoordinateSchema(BaseModel):
    lat: float
    lng: float


class StopPointSchema(BaseModel):
    lat: float
    lng: float
    name: str
    photo_count: int


class AdventureResponse(BaseModel):
    """Adventure response model."""

    id: str
    title: str
    location: str
    start_date: str
    end_date: str

    cover_photo: str
    photos: List[str]

    media_count: int
    distance: int  # km
    duration: int  # days
    stops: int

    coordinates: CoordinateSchema
    route: List[CoordinateSchema]
    stop_points: List[StopPointSchema]

    narrative: str
    ai_summary: str
    highlights: List[str]
    is_favorite: bool
    is_hidden: bool

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdventureUpdate(BaseModel):
    """User edits. Only fields that survive re-syncs can be changed."""

    narrative: Optional[str] = None
    ai_summary: Optional[str] = None
    highlights: Optional[List[str]] = Field(default=None, max_length=50)
    is_favorite: Optional[bool] = None
    is_hidden: Optional[bool] = None


class AdventureExport(BaseModel):
    """Full dump of the user's data. The same shape is accepted back on import."""

    exported_at: Optional[datetime] = None
    adventures: List[Adventure]
    cluster_settings: Optional[ClusterConfig] = None


class ImportResponse(BaseModel):
    imported: int
