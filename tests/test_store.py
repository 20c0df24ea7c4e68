import pytest
from datetime import datetime
from sqlmodel import select

from adventure_core import Adventure, ClusterConfig, Coordinate, StopPoint

from backend.app.core.config import settings
from backend.app.models.adventure import AdventureRecord
from backend.app.store import (
    get_cluster_config,
    get_cluster_settings,
    get_sync_status,
    load_persisted_adventures,
    replace_adventure_set,
    reset_cluster_config,
    save_cluster_config,
    save_sync_status,
)


def adventure(adventure_id, start_date="Mar 15, 2024", **overrides) -> Adventure:
    fields = {
        "id": adventure_id,
        "title": "Tokyo Adventure",
        "location": "Japan",
        "start_date": start_date,
        "end_date": start_date,
        "cover_photo": "https://photos.example/a.jpg",
        "photos": ["https://photos.example/a.jpg"],
        "media_count": 6,
        "distance": 12,
        "stops": 1,
        "coordinates": Coordinate(lat=35.6, lng=139.6),
        "route": [Coordinate(lat=35.6, lng=139.6), Coordinate(lat=35.7, lng=139.7)],
        "stop_points": [StopPoint(lat=35.6, lng=139.6, name="Tokyo", photo_count=6)],
        "photo_ids": ["a"],
        "cover_photo_id": "a",
    }
    fields.update(overrides)
    return Adventure(**fields)


class TestAdventureStore:
    def test_empty_store(self, test_db):
        assert load_persisted_adventures(test_db) == []

    def test_round_trip_keeps_every_field(self, test_db):
        """Geometry, user fields and media ids survive storage."""
        original = adventure(
            "adventure_20240315_0",
            narrative="Ramen",
            highlights=["Shibuya", "Asakusa"],
            is_favorite=True,
            created_at=datetime(2024, 3, 20, 8, 0),
        )

        replace_adventure_set(test_db, [original])

        assert load_persisted_adventures(test_db) == [original]

    def test_replace_keeps_given_order(self, test_db):
        adventures = [adventure("c", "Dec 1, 2024"), adventure("a", "Jan 1, 2024"), adventure("b", "Jun 1, 2024")]

        replace_adventure_set(test_db, adventures)

        assert [a.id for a in load_persisted_adventures(test_db)] == ["c", "a", "b"]

    def test_replace_drops_previous_set(self, test_db):
        replace_adventure_set(test_db, [adventure("old"), adventure("kept")])
        replace_adventure_set(test_db, [adventure("kept", narrative="edited"), adventure("new")])

        stored = load_persisted_adventures(test_db)

        assert [a.id for a in stored] == ["kept", "new"]
        assert stored[0].narrative == "edited"

    def test_failed_replace_leaves_previous_set(self, test_db):
        """The replace is all or nothing."""
        replace_adventure_set(test_db, [adventure("first")])

        with pytest.raises(Exception):
            replace_adventure_set(test_db, [adventure("dup"), adventure("dup")])

        assert [a.id for a in load_persisted_adventures(test_db)] == ["first"]

    def test_record_positions(self, test_db):
        replace_adventure_set(test_db, [adventure("x"), adventure("y")])

        positions = {r.id: r.position for r in test_db.exec(select(AdventureRecord)).all()}

        assert positions == {"x": 0, "y": 1}


class TestClusterConfigStore:
    def test_defaults_from_settings(self, test_db):
        config = get_cluster_config(test_db)

        assert get_cluster_settings(test_db) is None
        assert config.time_window_hours == settings.CLUSTER_TIME_WINDOW_HOURS
        assert config.distance_threshold_km == settings.CLUSTER_DISTANCE_KM
        assert config.min_photos == settings.CLUSTER_MIN_PHOTOS

    def test_save_and_update(self, test_db):
        save_cluster_config(test_db, ClusterConfig(time_window_hours=12, distance_threshold_km=20, min_photos=3))
        save_cluster_config(test_db, ClusterConfig(time_window_hours=48, distance_threshold_km=100, min_photos=10))

        assert get_cluster_config(test_db) == ClusterConfig(
            time_window_hours=48, distance_threshold_km=100, min_photos=10
        )

    def test_reset(self, test_db):
        save_cluster_config(test_db, ClusterConfig(min_photos=2))
        reset_cluster_config(test_db)

        assert get_cluster_settings(test_db) is None
        assert get_cluster_config(test_db).min_photos == settings.CLUSTER_MIN_PHOTOS

    def test_reset_without_saved_settings(self, test_db):
        reset_cluster_config(test_db)
        assert get_cluster_settings(test_db) is None


class TestSyncStatusStore:
    def test_blank_status(self, test_db):
        status = get_sync_status(test_db)

        assert status.is_syncing is False
        assert status.last_sync_time is None

    def test_save_updates_single_row(self, test_db):
        save_sync_status(test_db, is_syncing=True)
        save_sync_status(test_db, is_syncing=False, adventure_total=4, last_error="boom")

        status = get_sync_status(test_db)

        assert status.id == 1
        assert status.is_syncing is False
        assert status.adventure_total == 4
        assert status.last_error == "boom"
