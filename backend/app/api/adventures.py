from typing import List, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlmodel import Session, select

from ..core.database import get_db
from ..models.adventure import AdventureRecord
from ..schemas.adventure import AdventureExport, AdventureResponse, AdventureUpdate, ImportResponse
from ..store import get_cluster_config, load_persisted_adventures
from ..worker_tasks import SyncInProgressError, import_adventures

router = APIRouter()


def _get_adventure_or_404(db: Session, adventure_id: str) -> AdventureRecord:
    adventure = db.get(AdventureRecord, adventure_id)
    if not adventure:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Adventure not found"
        )
    return adventure


@router.get("", response_model=List[AdventureResponse])
async def list_adventures(
    country: Optional[str] = Query(None, description="Substring of the country label"),
    min_distance: int = Query(0, ge=0, description="Minimum route length in km"),
    favorites_only: bool = Query(False),
    include_hidden: bool = Query(False),
    db: Session = Depends(get_db),
):
    """List adventures, newest first."""
    stmt = select(AdventureRecord).order_by(AdventureRecord.position)

    if min_distance > 0:
        stmt = stmt.where(AdventureRecord.distance >= min_distance)
    if favorites_only:
        stmt = stmt.where(AdventureRecord.is_favorite == True)  # noqa: E712
    if not include_hidden:
        stmt = stmt.where(AdventureRecord.is_hidden == False)  # noqa: E712

    adventures = db.exec(stmt).all()

    if country:
        needle = country.lower()
        adventures = [a for a in adventures if needle in a.location.lower()]

    return adventures


@router.get("/export", response_model=AdventureExport)
async def export_adventures(db: Session = Depends(get_db)):
    """Export every adventure and the clustering settings as JSON."""
    return AdventureExport(
        exported_at=datetime.utcnow(),
        adventures=load_persisted_adventures(db),
        cluster_settings=get_cluster_config(db),
    )


@router.post("/import", response_model=ImportResponse)
async def import_adventure_backup(
    backup: AdventureExport,
    db: Session = Depends(get_db),
):
    """Restore an export, replacing every stored adventure."""
    try:
        imported = import_adventures(db, backup.adventures, backup.cluster_settings)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SyncInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return ImportResponse(imported=imported)


@router.get("/{adventure_id}", response_model=AdventureResponse)
async def get_adventure(
    adventure_id: str,
    db: Session = Depends(get_db),
):
    """Get a specific adventure."""
    return _get_adventure_or_404(db, adventure_id)


@router.patch("/{adventure_id}", response_model=AdventureResponse)
async def update_adventure(
    adventure_id: str,
    update: AdventureUpdate,
    db: Session = Depends(get_db),
):
    """Edit the user-owned fields of an adventure (kept across re-syncs)."""
    adventure = _get_adventure_or_404(db, adventure_id)

    for field_name, value in update.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(adventure, field_name, list(value) if isinstance(value, list) else value)

    adventure.updated_at = datetime.utcnow()
    db.add(adventure)
    db.commit()
    db.refresh(adventure)

    return adventure


@router.delete("/{adventure_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_adventure(
    adventure_id: str,
    db: Session = Depends(get_db),
):
    """Delete an adventure. A later sync may recreate it from the photos."""
    adventure = _get_adventure_or_404(db, adventure_id)
    db.delete(adventure)
    db.commit()
