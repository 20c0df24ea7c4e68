from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from ..core.database import get_db
from ..worker_tasks import SyncInProgressError, clear_all_data

router = APIRouter()


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_data(db: Session = Depends(get_db)):
    """Delete all adventures, saved settings and sync history."""
    try:
        clear_all_data(db)
    except SyncInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
