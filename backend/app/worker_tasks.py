import logging
import time
from contextlib import contextmanager
from typing import Callable, Dict, Any, Iterator, List, Optional, Protocol, Sequence
from uuid import uuid4
from datetime import datetime

from sqlmodel import Session

from adventure_core import (
    Adventure,
    ClusterConfig,
    MediaRecord,
    cluster_media,
    reconcile_adventures,
    refresh_display_media,
    synthesize_adventures,
)

from .core.config import settings
from .core.database import get_engine
from .core.immich import ImmichClient, MediaSourceError
from .core.queues import get_redis, get_sync_queue
from .schemas.sync import SyncResult
from .store import (
    clear_store,
    get_cluster_config,
    load_persisted_adventures,
    replace_adventure_set,
    save_cluster_config,
    save_sync_status,
)

logger = logging.getLogger(__name__)

# Metrics tracking (can be extended with StatsD/Prometheus)
sync_metrics = {
    "total_syncs": 0,
    "total_sync_failures": 0,
    "total_adventures_created": 0,
    "total_adventures_updated": 0,
    "sync_rejected_busy": 0,
}

SYNC_LOCK_KEY = "sync:lock"


def _emit_metric(metric_name: str, value: int = 1, tags: Dict[str, str] = None) -> None:
    """Emit metrics to monitoring system (placeholder for StatsD/Prometheus)."""
    if not settings.ENABLE_SYNC_METRICS:
        return

    if tags is None:
        tags = {}

    # Update internal counters
    if metric_name in sync_metrics:
        sync_metrics[metric_name] += value

    logger.debug(f"Metric: {metric_name}={value} {tags}")


class SyncError(Exception):
    """A sync attempt failed; nothing was written to the adventure store."""


class SyncInProgressError(Exception):
    """Another sync currently holds the lock."""


class MediaSource(Protocol):
    def fetch_all_geotagged_media(self) -> List[MediaRecord]: ...


def sync_adventures(
    session: Session,
    media_source: MediaSource,
    resolve_thumbnail_url: Callable[[str], str],
    config: ClusterConfig,
) -> SyncResult:
    """
    Run one full sync: fetch -> cluster -> synthesize -> reconcile -> store.

    The whole known photo set is reprocessed every time. If the fetch fails
    the store is not touched at all.

    Args:
        session: Database session for the adventure store.
        media_source: Provides fetch_all_geotagged_media().
        resolve_thumbnail_url: Maps media ids to display URLs.
        config: Clustering thresholds.

    Returns:
        Counts describing what changed.

    Raises:
        SyncError: If the media source could not be read.
    """
    logger.info("Sync 1/4: Fetching geotagged media...")
    try:
        media = media_source.fetch_all_geotagged_media()
    except MediaSourceError as e:
        logger.error(f"Sync aborted, media fetch failed: {e}")
        raise SyncError(f"Failed to fetch media from the photo server: {e}") from e

    logger.info(f"Sync 2/4: Clustering {len(media)} records...")
    clusters = cluster_media(media, config)

    logger.info(f"Sync 3/4: Synthesizing {len(clusters)} adventures...")
    fresh = synthesize_adventures(clusters, resolve_thumbnail_url)

    logger.info("Sync 4/4: Reconciling with stored adventures...")
    existing = load_persisted_adventures(session)
    reconciled = reconcile_adventures(existing, fresh)
    replace_adventure_set(session, reconciled)

    # Nothing is deleted, so growth equals the number of appended trips
    created = len(reconciled) - len(existing)
    result = SyncResult(
        media_count=len(media),
        cluster_count=len(clusters),
        created=created,
        updated=len(fresh) - created,
        total=len(reconciled),
    )

    _emit_metric("total_adventures_created", result.created)
    _emit_metric("total_adventures_updated", result.updated)
    logger.info(
        f"Sync completed: {result.created} created, {result.updated} updated, "
        f"{result.total} adventures stored"
    )
    return result


def acquire_sync_lock(token: str) -> bool:
    """Take the sync lock. False if another sync holds it."""
    return bool(get_redis().set(SYNC_LOCK_KEY, token, nx=True, ex=settings.SYNC_LOCK_TTL))


def release_sync_lock(token: str) -> None:
    """Release the lock, but only if it is still ours."""
    redis_conn = get_redis()
    current = redis_conn.get(SYNC_LOCK_KEY)
    if isinstance(current, bytes):
        current = current.decode()
    if current == token:
        redis_conn.delete(SYNC_LOCK_KEY)


def is_sync_locked() -> bool:
    return bool(get_redis().exists(SYNC_LOCK_KEY))


@contextmanager
def exclusive_store_access(action: str) -> Iterator[None]:
    """
    Hold the sync lock while `action` rewrites the adventure store.

    Raises:
        SyncInProgressError: If a sync or another store rewrite holds the lock.
    """
    token = uuid4().hex
    if not acquire_sync_lock(token):
        _emit_metric("sync_rejected_busy")
        logger.info(f"{action} requested while a sync is in progress, rejecting")
        raise SyncInProgressError(f"Cannot {action.lower()} while a sync is in progress")
    try:
        yield
    finally:
        release_sync_lock(token)


def enqueue_sync() -> str:
    """
    Reserve the sync lock and queue a sync job.

    Returns:
        The rq job id.

    Raises:
        SyncInProgressError: If a sync is already queued or running.
    """
    token = uuid4().hex
    if not acquire_sync_lock(token):
        _emit_metric("sync_rejected_busy")
        logger.info("Sync requested while another is in progress, rejecting")
        raise SyncInProgressError("A sync is already in progress")

    try:
        job = get_sync_queue().enqueue(
            run_sync_job,
            lock_token=token,
            job_timeout=settings.SYNC_JOB_TIMEOUT,
        )
    except Exception:
        release_sync_lock(token)
        raise

    logger.info(f"Queued sync job {job.id}")
    return job.id


def run_sync_job(lock_token: Optional[str] = None, engine=None) -> bool:
    """
    rq entry point for a sync.

    Args:
        lock_token: Token of a lock already taken by enqueue_sync(). When None
                    the job takes the lock itself.
        engine: Database engine override; defaults to the shared engine.

    Returns:
        True if the sync succeeded, False otherwise.
    """
    token = lock_token or uuid4().hex
    if lock_token is None and not acquire_sync_lock(token):
        _emit_metric("sync_rejected_busy")
        logger.warning("Sync job skipped, another sync holds the lock")
        return False

    try:
        engine = engine or get_engine()
        if engine is None:
            logger.error("Sync job aborted, database is unavailable")
            _emit_metric("total_sync_failures")
            return False

        with Session(engine) as session:
            save_sync_status(session, is_syncing=True, started_at=datetime.utcnow())
            _emit_metric("total_syncs")
            start_time = time.time()

            client = ImmichClient.from_settings()
            try:
                result = sync_adventures(
                    session,
                    media_source=client,
                    resolve_thumbnail_url=client.thumbnail_url,
                    config=get_cluster_config(session),
                )
            except SyncError as e:
                _emit_metric("total_sync_failures")
                save_sync_status(session, is_syncing=False, last_error=str(e))
                return False
            except Exception as e:
                logger.error(f"Unexpected error during sync: {e}")
                _emit_metric("total_sync_failures")
                session.rollback()
                save_sync_status(session, is_syncing=False, last_error=f"Unexpected error: {e}")
                return False

            save_sync_status(
                session,
                is_syncing=False,
                last_sync_time=datetime.utcnow(),
                last_error=None,
                media_count=result.media_count,
                cluster_count=result.cluster_count,
                adventures_created=result.created,
                adventures_updated=result.updated,
                adventure_total=result.total,
            )
            logger.info(f"Sync took {time.time() - start_time:.2f}s")
            return True
    finally:
        release_sync_lock(token)


def refresh_media_urls(session: Session, resolve_thumbnail_url: Callable[[str], str]) -> int:
    """
    Rebuild display URLs of every stored adventure from its media ids.

    Returns:
        Number of adventures rewritten.

    Raises:
        SyncInProgressError: If a sync is writing the store.
    """
    with exclusive_store_access("Refresh media"):
        adventures = load_persisted_adventures(session)
        refreshed = [refresh_display_media(a, resolve_thumbnail_url) for a in adventures]
        replace_adventure_set(session, refreshed)

    logger.info(f"Refreshed display media for {len(refreshed)} adventures")
    return len(refreshed)


def import_adventures(
    session: Session,
    adventures: Sequence[Adventure],
    config: Optional[ClusterConfig] = None,
) -> int:
    """
    Restore a backup: replace the adventure set and, if given, the cluster settings.

    Returns:
        Number of adventures imported.

    Raises:
        ValueError: If two adventures share an id.
        SyncInProgressError: If a sync is writing the store.
    """
    ids = [a.id for a in adventures]
    if len(set(ids)) != len(ids):
        raise ValueError("Imported adventures contain duplicate ids")

    with exclusive_store_access("Import"):
        replace_adventure_set(session, adventures)
        if config is not None:
            save_cluster_config(session, config)

    logger.info(f"Imported {len(adventures)} adventures")
    return len(adventures)


def clear_all_data(session: Session) -> None:
    """
    Reset the app: drop adventures, cluster settings and sync status.

    Raises:
        SyncInProgressError: If a sync is writing the store.
    """
    with exclusive_store_access("Clear data"):
        clear_store(session)


def get_sync_metrics() -> Dict[str, Any]:
    """
    Get current sync counters and lock state.
    Useful for monitoring and debugging.
    """
    try:
        lock_held = is_sync_locked()
    except Exception as e:
        logger.error(f"Failed to read sync lock state: {e}")
        lock_held = False

    return {
        "internal_counters": sync_metrics.copy(),
        "lock_held": lock_held,
        "settings": {
            "SYNC_LOCK_TTL": settings.SYNC_LOCK_TTL,
            "SYNC_JOB_TIMEOUT": settings.SYNC_JOB_TIMEOUT,
            "CLUSTER_TIME_WINDOW_HOURS": settings.CLUSTER_TIME_WINDOW_HOURS,
            "CLUSTER_DISTANCE_KM": settings.CLUSTER_DISTANCE_KM,
            "CLUSTER_MIN_PHOTOS": settings.CLUSTER_MIN_PHOTOS,
        },
    }
