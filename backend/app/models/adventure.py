from sqlmodel import SQLModel, Field, Column
from sqlalchemy import Text, JSON
from datetime import datetime
from typing import Optional, List, Dict, Any

from adventure_core import Adventure, Coordinate, StopPoint


class AdventureRecord(SQLModel, table=True):
    """A persisted trip, replaced wholesale on every successful sync."""

    __tablename__ = "adventure"

    id: str = Field(primary_key=True, max_length=100)

    # Display order within the set (newest first)
    position: int = Field(default=0, index=True)

    title: str = Field(max_length=200)
    location: str = Field(max_length=200, index=True)
    start_date: str = Field(max_length=20)
    end_date: str = Field(max_length=20)

    # Display media
    cover_photo: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    photos: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    # Statistics
    media_count: int = Field(default=0)
    distance: int = Field(default=0)
    duration: int = Field(default=1)
    stops: int = Field(default=0)

    # Geometry as JSON ({"lat", "lng"} objects)
    coordinates: Dict[str, float] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    route: List[Dict[str, float]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    stop_points: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    # User-owned fields
    narrative: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    ai_summary: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    highlights: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    is_favorite: bool = Field(default=False)
    is_hidden: bool = Field(default=False)

    # Timestamps
    created_at: Optional[datetime] = Field(default=None)
    updated_at: Optional[datetime] = Field(default=None)

    # Raw media ids for regenerating display URLs
    photo_ids: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    cover_photo_id: Optional[str] = Field(default=None, max_length=100)

    @classmethod
    def from_adventure(cls, adventure: Adventure, position: int = 0) -> "AdventureRecord":
        data = adventure.model_dump()
        return cls(position=position, **data)

    def to_adventure(self) -> Adventure:
        return Adventure(
            id=self.id,
            title=self.title,
            location=self.location,
            start_date=self.start_date,
            end_date=self.end_date,
            cover_photo=self.cover_photo or "",
            photos=list(self.photos or []),
            media_count=self.media_count,
            distance=self.distance,
            duration=self.duration,
            stops=self.stops,
            coordinates=Coordinate(**(self.coordinates or {"lat": 0.0, "lng": 0.0})),
            route=[Coordinate(**point) for point in self.route or []],
            stop_points=[StopPoint(**stop) for stop in self.stop_points or []],
            narrative=self.narrative or "",
            ai_summary=self.ai_summary or "",
            highlights=list(self.highlights or []),
            is_favorite=self.is_favorite,
            is_hidden=self.is_hidden,
            created_at=self.created_at,
            updated_at=self.updated_at,
            photo_ids=list(self.photo_ids or []),
            cover_photo_id=self.cover_photo_id,
        )
