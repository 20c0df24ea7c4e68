from sqlmodel import SQLModel, Field, Column
from sqlalchemy import Text
from datetime import datetime
from typing import Optional


class SyncStatus(SQLModel, table=True):
    """Outcome of the most recent sync. Single row (id=1)."""

    __tablename__ = "sync_status"

    id: int = Field(default=1, primary_key=True)

    is_syncing: bool = Field(default=False)
    started_at: Optional[datetime] = Field(default=None)
    last_sync_time: Optional[datetime] = Field(default=None)  # Last successful sync
    last_error: Optional[str] = Field(default=None, sa_column=Column(Text))

    # Counts from the last successful sync
    media_count: int = Field(default=0)
    cluster_count: int = Field(default=0)
    adventures_created: int = Field(default=0)
    adventures_updated: int = Field(default=0)
    adventure_total: int = Field(default=0)
