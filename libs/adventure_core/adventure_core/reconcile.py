import logging
from datetime import date, datetime
from typing import List, Optional, Sequence, Set

from .dates import parse_display_date
from .models import Adventure

logger = logging.getLogger(__name__)

MEDIA_COUNT_TOLERANCE = 10


def is_same_trip(existing: Adventure, fresh: Adventure) -> bool:
    """
    Fuzzy identity test between a persisted and a freshly computed adventure.

    Ids are not compared: they encode cluster position, which shifts when an
    earlier trip gains or loses photos between syncs.
    """
    return (
        existing.location == fresh.location
        and existing.start_date == fresh.start_date
        and abs(existing.media_count - fresh.media_count) < MEDIA_COUNT_TOLERANCE
    )


def merge_adventure(existing: Adventure, fresh: Adventure, now: datetime) -> Adventure:
    """Fresh computed fields with the persisted identity and user edits kept."""
    return fresh.model_copy(
        update={
            "id": existing.id,
            "narrative": existing.narrative or fresh.narrative,
            "ai_summary": existing.ai_summary or fresh.ai_summary,
            "highlights": list(existing.highlights or fresh.highlights),
            "is_favorite": existing.is_favorite,
            "is_hidden": existing.is_hidden,
            "created_at": existing.created_at or fresh.created_at,
            "updated_at": now,
        }
    )


def _unique_id(candidate: str, taken: Set[str]) -> str:
    if candidate not in taken:
        return candidate
    suffix = 2
    while f"{candidate}_{suffix}" in taken:
        suffix += 1
    return f"{candidate}_{suffix}"


def _start_key(adventure: Adventure) -> date:
    return parse_display_date(adventure.start_date) or date.min


def reconcile_adventures(
    existing: Sequence[Adventure],
    fresh: Sequence[Adventure],
    now: Optional[datetime] = None,
) -> List[Adventure]:
    """
    Folds freshly computed adventures into the persisted set.

    A fresh adventure that matches a persisted one (see is_same_trip) replaces
    it in place, keeping the persisted id, user-written text and flags. Anything
    unmatched is appended as new. Persisted adventures with no fresh
    counterpart are kept untouched; nothing is ever deleted here.

    Args:
        existing: Adventures loaded from the store.
        fresh: Adventures synthesized by the current sync.
        now: Timestamp for created_at/updated_at stamps. Defaults to utcnow.

    Returns:
        The reconciled set, newest start date first.
    """
    if now is None:
        now = datetime.utcnow()

    result = list(existing)
    claimed: Set[int] = set()
    taken_ids = {a.id for a in existing}
    updated = 0
    created = 0

    for adventure in fresh:
        match = next(
            (
                i for i, candidate in enumerate(result)
                if i not in claimed and is_same_trip(candidate, adventure)
            ),
            None,
        )

        if match is not None:
            result[match] = merge_adventure(result[match], adventure, now)
            claimed.add(match)
            updated += 1
            continue

        # Ids are position-derived, so an unrelated persisted trip may own it
        new_id = _unique_id(adventure.id, taken_ids)
        taken_ids.add(new_id)
        result.append(
            adventure.model_copy(
                update={"id": new_id, "created_at": adventure.created_at or now}
            )
        )
        claimed.add(len(result) - 1)
        created += 1

    logger.info(
        f"Reconciled {len(fresh)} computed adventures against {len(existing)} stored: "
        f"{updated} updated, {created} created"
    )

    return sorted(result, key=_start_key, reverse=True)
