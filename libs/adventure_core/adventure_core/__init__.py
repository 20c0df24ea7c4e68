# libs/adventure_core/adventure_core/__init__.py

from .models import (
    Adventure,
    ClusterConfig,
    Coordinate,
    MediaRecord,
    PlaceLabels,
    StopPoint,
)
from .geo import haversine_km
from .cluster import cluster_media
from .synth import synthesize_adventure, synthesize_adventures, refresh_display_media
from .reconcile import reconcile_adventures

__all__ = [
    "Adventure",
    "ClusterConfig",
    "Coordinate",
    "MediaRecord",
    "PlaceLabels",
    "StopPoint",
    "haversine_km",
    "cluster_media",
    "synthesize_adventure",
    "synthesize_adventures",
    "refresh_display_media",
    "reconcile_adventures",
]
