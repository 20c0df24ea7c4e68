import math
from collections import Counter
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .dates import format_display_date
from .geo import haversine_km
from .models import Adventure, Coordinate, MediaRecord, StopPoint

UNKNOWN_COUNTRY = "Unknown Location"
UNKNOWN_STOP = "Unknown"
MAX_DISPLAY_PHOTOS = 20
ROUTE_PRECISION = 3  # decimal places, roughly 100 m

ThumbnailResolver = Callable[[str], str]


def dominant_country(cluster: Sequence[MediaRecord]) -> str:
    """Most frequent country label; ties go to the one seen first."""
    countries = Counter(r.place.country for r in cluster if r.place.country)
    if not countries:
        return UNKNOWN_COUNTRY
    return countries.most_common(1)[0][0]


def distinct_cities(cluster: Sequence[MediaRecord], limit: int = 3) -> List[str]:
    """City labels in first-seen order, without repeats."""
    seen = dict.fromkeys(r.place.city for r in cluster if r.place.city)
    return list(seen)[:limit]


def adventure_title(cluster: Sequence[MediaRecord], country: str) -> str:
    """Name a trip after the cities it visits, or its country if none are known."""
    cities = distinct_cities(cluster)

    if len(cities) == 1:
        return f"{cities[0]} Adventure"
    if len(cities) == 2:
        return f"{cities[0]} & {cities[1]}"
    if len(cities) > 2:
        return f"{cities[0]} to {cities[-1]} Journey"

    return f"{country} Adventure"


def build_route(cluster: Sequence[MediaRecord]) -> List[Coordinate]:
    """
    Time-ordered path through the cluster with near-duplicate fixes removed.

    A position is skipped when its rounded (lat, lng) was already emitted
    anywhere earlier in the route. Kept points retain full precision.
    """
    route: List[Coordinate] = []
    emitted = set()

    for record in cluster:
        if record.coordinate is None:
            continue
        key = (
            round(record.coordinate.lat, ROUTE_PRECISION),
            round(record.coordinate.lng, ROUTE_PRECISION),
        )
        if key in emitted:
            continue
        emitted.add(key)
        route.append(record.coordinate)

    return route


def stop_label(record: MediaRecord) -> str:
    """Stop name for a record: city, then state, then Unknown."""
    return record.place.city or record.place.state or UNKNOWN_STOP


def build_stops(cluster: Sequence[MediaRecord]) -> List[StopPoint]:
    """
    One stop per distinct place label, ordered by first visit.

    The stop's position is that of the first record in the group that has
    coordinates; a group without any position yields no stop.
    """
    # name -> (first seen, coordinate, photo count)
    groups: Dict[str, Tuple[datetime, Optional[Coordinate], int]] = {}

    for record in cluster:
        name = stop_label(record)
        if name in groups:
            first_seen, coordinate, count = groups[name]
            if coordinate is None:
                coordinate = record.coordinate
            groups[name] = (first_seen, coordinate, count + 1)
        else:
            groups[name] = (record.captured_at, record.coordinate, 1)

    ordered = sorted(groups.items(), key=lambda item: item[1][0])

    return [
        StopPoint(lat=coordinate.lat, lng=coordinate.lng, name=name, photo_count=count)
        for name, (_, coordinate, count) in ordered
        if coordinate is not None
    ]


def route_distance_km(route: Sequence[Coordinate]) -> int:
    """Total path length in whole kilometers, halves rounded up."""
    total = sum(haversine_km(a, b) for a, b in zip(route, route[1:]))
    return int(math.floor(total + 0.5))


def duration_days(cluster: Sequence[MediaRecord]) -> int:
    """Inclusive day count between first and last capture, at least 1."""
    span = cluster[-1].captured_at - cluster[0].captured_at
    return max(1, span.days + 1)


def adventure_id(cluster: Sequence[MediaRecord], index: int) -> str:
    """Position-derived id, e.g. adventure_20240315_0."""
    return f"adventure_{cluster[0].captured_at:%Y%m%d}_{index}"


def synthesize_adventure(
    cluster: Sequence[MediaRecord],
    index: int,
    resolve_thumbnail_url: ThumbnailResolver,
) -> Adventure:
    """
    Turns one time-ordered cluster into a fully populated Adventure.

    Args:
        cluster: Non-empty list of records sorted ascending by capture time.
        index: 0-based position of the cluster among all accepted clusters.
        resolve_thumbnail_url: Maps a media id to a display URL.

    Returns:
        A new Adventure with empty user-owned fields.

    Raises:
        ValueError: If the cluster is empty.
    """
    if not cluster:
        raise ValueError("Cannot synthesize an adventure from an empty cluster")

    first, last = cluster[0], cluster[-1]
    country = dominant_country(cluster)
    route = build_route(cluster)
    stop_points = build_stops(cluster)
    photo_ids = [r.id for r in cluster[:MAX_DISPLAY_PHOTOS]]

    return Adventure(
        id=adventure_id(cluster, index),
        title=adventure_title(cluster, country),
        location=country,
        start_date=format_display_date(first.captured_at),
        end_date=format_display_date(last.captured_at),
        cover_photo=resolve_thumbnail_url(photo_ids[0]),
        photos=[resolve_thumbnail_url(media_id) for media_id in photo_ids],
        media_count=len(cluster),
        distance=route_distance_km(route),
        duration=duration_days(cluster),
        stops=len(stop_points),
        coordinates=route[0] if route else Coordinate(lat=0.0, lng=0.0),
        route=route,
        stop_points=stop_points,
        photo_ids=photo_ids,
        cover_photo_id=photo_ids[0],
    )


def synthesize_adventures(
    clusters: Sequence[Sequence[MediaRecord]],
    resolve_thumbnail_url: ThumbnailResolver,
) -> List[Adventure]:
    """Synthesize every cluster, using its position as the index."""
    return [
        synthesize_adventure(cluster, index, resolve_thumbnail_url)
        for index, cluster in enumerate(clusters)
    ]


def refresh_display_media(adventure: Adventure, resolve_thumbnail_url: ThumbnailResolver) -> Adventure:
    """Rebuild display URLs from the stored media ids (e.g. after a server move)."""
    if not adventure.photo_ids:
        return adventure

    cover_id = adventure.cover_photo_id or adventure.photo_ids[0]
    return adventure.model_copy(
        update={
            "photos": [resolve_thumbnail_url(media_id) for media_id in adventure.photo_ids],
            "cover_photo": resolve_thumbnail_url(cover_id),
        }
    )
