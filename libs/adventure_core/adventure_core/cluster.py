import logging
from typing import List, Optional, Sequence

from .geo import haversine_km
from .models import ClusterConfig, MediaRecord

logger = logging.getLogger(__name__)


def hours_between(earlier: MediaRecord, later: MediaRecord) -> int:
    """Whole hours from one capture to the next, fractional part dropped."""
    return int((later.captured_at - earlier.captured_at).total_seconds() // 3600)


def hop_distance_km(previous: MediaRecord, current: MediaRecord) -> float:
    """Distance between two consecutive records; 0 when either has no position."""
    if previous.coordinate is None or current.coordinate is None:
        return 0.0
    return haversine_km(previous.coordinate, current.coordinate)


def is_contiguous(previous: MediaRecord, current: MediaRecord, config: ClusterConfig) -> bool:
    """True when `current` continues the trip that `previous` belongs to."""
    return (
        hours_between(previous, current) <= config.time_window_hours
        and hop_distance_km(previous, current) <= config.distance_threshold_km
    )


def cluster_media(
    records: Sequence[MediaRecord],
    config: Optional[ClusterConfig] = None,
) -> List[List[MediaRecord]]:
    """
    Segments geotagged media into candidate trips using a single pass.

    Each record is compared only with the record immediately before it, so a
    trip may drift across many cities as long as every hop is short in both
    time and distance. A gap in either dimension closes the current cluster.

    Args:
        records: Media records with capture timestamps, in any order.
        config: Time window, distance threshold and minimum cluster size.
                Defaults to ClusterConfig().

    Returns:
        Clusters ordered by time, each sorted ascending by capture time and
        holding at least `config.min_photos` records. Smaller runs are dropped.
    """
    if config is None:
        config = ClusterConfig()

    if not records:
        return []

    ordered = sorted(records, key=lambda r: r.captured_at)

    clusters: List[List[MediaRecord]] = []
    current = [ordered[0]]

    for prev, nxt in zip(ordered, ordered[1:]):
        if is_contiguous(prev, nxt, config):
            current.append(nxt)
        else:
            if len(current) >= config.min_photos:
                clusters.append(current)
            current = [nxt]

    if len(current) >= config.min_photos:
        clusters.append(current)

    logger.info(
        f"Clustered {len(ordered)} records into {len(clusters)} trips "
        f"(window={config.time_window_hours}h, distance={config.distance_threshold_km}km, "
        f"min_photos={config.min_photos})"
    )

    return clusters
