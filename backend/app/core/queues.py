import logging
from redis import Redis
from rq import Queue

from .config import settings

logger = logging.getLogger(__name__)

# Redis connection
redis_conn = Redis(
    host=settings.REDIS_HOST,
    port=settings.REDIS_PORT,
    db=settings.REDIS_DB,
    decode_responses=False,
)

# Dedicated queue for sync runs (one full recluster per job)
sync_queue = Queue("sync", connection=redis_conn)


def get_redis() -> Redis:
    """Get the shared Redis connection."""
    return redis_conn


def get_sync_queue() -> Queue:
    """Get the queue that sync jobs are enqueued on."""
    return sync_queue


def test_redis_connection() -> bool:
    """Test Redis connection."""
    try:
        redis_conn.ping()
        logger.info("Redis connection successful")
        return True
    except Exception as e:
        logger.error(f"Redis connection failed: {e}")
        return False
