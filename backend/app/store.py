"""
Persistence for the adventure engine: the adventure store, the cluster
configuration store and the sync status row.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlmodel import Session, select

from adventure_core import Adventure, ClusterConfig

from .core.config import settings
from .models.adventure import AdventureRecord
from .models.settings import ClusterSettings
from .models.sync_status import SyncStatus

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Adventure store
# ---------------------------------------------------------------------------

def load_persisted_adventures(session: Session) -> List[Adventure]:
    """Read the full adventure set in display order."""
    records = session.exec(
        select(AdventureRecord).order_by(AdventureRecord.position)
    ).all()
    return [record.to_adventure() for record in records]


def replace_adventure_set(session: Session, adventures: Sequence[Adventure]) -> None:
    """
    Replace every stored adventure with `adventures` in one transaction.

    Either the whole new set is committed or, on any error, the previous set
    stays as it was.
    """
    try:
        for record in session.exec(select(AdventureRecord)).all():
            session.delete(record)
        session.flush()

        for position, adventure in enumerate(adventures):
            session.add(AdventureRecord.from_adventure(adventure, position=position))

        session.commit()
        logger.info(f"Stored adventure set of {len(adventures)} adventures")
    except Exception as e:
        logger.error(f"Failed to replace adventure set: {e}")
        session.rollback()
        raise


# ---------------------------------------------------------------------------
# Configuration store
# ---------------------------------------------------------------------------

def default_cluster_config() -> ClusterConfig:
    return ClusterConfig(
        time_window_hours=settings.CLUSTER_TIME_WINDOW_HOURS,
        distance_threshold_km=settings.CLUSTER_DISTANCE_KM,
        min_photos=settings.CLUSTER_MIN_PHOTOS,
    )


def get_cluster_settings(session: Session) -> Optional[ClusterSettings]:
    return session.get(ClusterSettings, 1)


def get_cluster_config(session: Session) -> ClusterConfig:
    """The user's saved thresholds, or the environment defaults."""
    row = get_cluster_settings(session)
    if row is None:
        return default_cluster_config()
    return ClusterConfig(
        time_window_hours=row.time_window_hours,
        distance_threshold_km=row.distance_threshold_km,
        min_photos=row.min_photos,
    )


def save_cluster_config(session: Session, config: ClusterConfig) -> ClusterSettings:
    row = get_cluster_settings(session)
    if row is None:
        row = ClusterSettings(
            id=1,
            time_window_hours=config.time_window_hours,
            distance_threshold_km=config.distance_threshold_km,
            min_photos=config.min_photos,
        )
    else:
        row.time_window_hours = config.time_window_hours
        row.distance_threshold_km = config.distance_threshold_km
        row.min_photos = config.min_photos
        row.updated_at = datetime.utcnow()

    session.add(row)
    session.commit()
    session.refresh(row)
    logger.info(f"Saved cluster settings: {config}")
    return row


def reset_cluster_config(session: Session) -> None:
    row = get_cluster_settings(session)
    if row is not None:
        session.delete(row)
        session.commit()
        logger.info("Reset cluster settings to defaults")


# ---------------------------------------------------------------------------
# Sync status
# ---------------------------------------------------------------------------

def get_sync_status(session: Session) -> SyncStatus:
    """The status row, or an unsaved blank one if no sync ever ran."""
    return session.get(SyncStatus, 1) or SyncStatus(id=1)


def save_sync_status(session: Session, **fields) -> SyncStatus:
    status = get_sync_status(session)
    for name, value in fields.items():
        setattr(status, name, value)
    session.add(status)
    session.commit()
    session.refresh(status)
    return status


def clear_store(session: Session) -> None:
    """Delete every adventure, the saved cluster settings and the sync status."""
    try:
        for model in (AdventureRecord, ClusterSettings, SyncStatus):
            for row in session.exec(select(model)).all():
                session.delete(row)
        session.commit()
        logger.info("Cleared all stored data")
    except Exception as e:
        logger.error(f"Failed to clear stored data: {e}")
        session.rollback()
        raise
