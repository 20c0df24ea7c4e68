import pytest
from datetime import datetime, timedelta

from adventure_core import (
    Adventure,
    cluster_media,
    reconcile_adventures,
    synthesize_adventures,
)
from adventure_core.reconcile import MEDIA_COUNT_TOLERANCE, is_same_trip

NOW = datetime(2024, 6, 1, 12, 0)
KYOTO = (35.0116, 135.7681)


def adventure(**overrides) -> Adventure:
    fields = {
        "id": "adventure_20240315_0",
        "title": "Tokyo Adventure",
        "location": "Japan",
        "start_date": "Mar 15, 2024",
        "end_date": "Mar 16, 2024",
        "media_count": 6,
    }
    fields.update(overrides)
    return Adventure(**fields)


@pytest.fixture
def pipeline(resolve):
    """fetch -> cluster -> synthesize -> reconcile over an in-memory store."""

    def run(records, existing):
        fresh = synthesize_adventures(cluster_media(records), resolve)
        return reconcile_adventures(existing, fresh, now=NOW)

    return run


class TestIsSameTrip:
    def test_match(self):
        assert is_same_trip(adventure(), adventure(id="other", media_count=7))

    def test_media_count_delta_must_be_below_tolerance(self):
        assert is_same_trip(adventure(), adventure(media_count=6 + MEDIA_COUNT_TOLERANCE - 1))
        assert not is_same_trip(adventure(), adventure(media_count=6 + MEDIA_COUNT_TOLERANCE))

    def test_different_location_or_start(self):
        assert not is_same_trip(adventure(), adventure(location="France"))
        assert not is_same_trip(adventure(), adventure(start_date="Mar 16, 2024"))


class TestReconcileAdventures:
    def test_preserves_user_edits(self):
        """Narrative, summary, highlights and flags survive a re-sync."""
        existing = adventure(
            narrative="X",
            ai_summary="Cherry blossoms",
            highlights=["Shibuya"],
            is_favorite=True,
            is_hidden=True,
            created_at=datetime(2024, 3, 20),
        )
        fresh = adventure(id="adventure_20240315_4", media_count=8, title="Tokyo & Yokohama")

        [merged] = reconcile_adventures([existing], [fresh], now=NOW)

        assert merged.id == existing.id
        assert merged.narrative == "X"
        assert merged.ai_summary == "Cherry blossoms"
        assert merged.highlights == ["Shibuya"]
        assert merged.is_favorite is True
        assert merged.is_hidden is True
        assert merged.created_at == datetime(2024, 3, 20)
        assert merged.updated_at == NOW
        # computed fields come from the fresh run
        assert merged.media_count == 8
        assert merged.title == "Tokyo & Yokohama"

    def test_appends_unmatched(self):
        existing = adventure()
        fresh = adventure(id="adventure_20240401_1", location="France", start_date="Apr 1, 2024")

        result = reconcile_adventures([existing], [fresh], now=NOW)

        assert [a.id for a in result] == ["adventure_20240401_1", "adventure_20240315_0"]
        assert result[0].created_at == NOW

    def test_never_deletes(self):
        """Persisted trips with no fresh counterpart are kept untouched."""
        existing = [adventure(narrative="keep me")]

        assert reconcile_adventures(existing, [], now=NOW) == existing

    def test_empty_everything(self):
        assert reconcile_adventures([], [], now=NOW) == []

    def test_id_collision_gets_suffix(self):
        """A new trip whose position-derived id is already taken is renamed."""
        existing = [adventure(), adventure(id="adventure_20240315_0_2", location="Spain")]
        fresh = adventure(location="France")

        result = reconcile_adventures(existing, [fresh], now=NOW)

        ids = [a.id for a in result]
        assert len(ids) == len(set(ids)) == 3
        assert "adventure_20240315_0_3" in ids

    def test_each_stored_trip_matched_once(self):
        """Two fresh trips that both match one stored trip do not merge into it."""
        existing = [adventure(narrative="mine")]
        fresh = [adventure(media_count=6), adventure(id="adventure_20240315_1", media_count=7)]

        result = reconcile_adventures(existing, fresh, now=NOW)

        assert len(result) == 2
        assert sum(1 for a in result if a.narrative == "mine") == 1

    def test_sorted_newest_first(self):
        existing = [
            adventure(id="a", start_date="Jan 2, 2023", location="A"),
            adventure(id="b", start_date="Dec 25, 2024", location="B"),
            adventure(id="c", start_date="not a date", location="C"),
            adventure(id="d", start_date="Mar 1, 2024", location="D"),
        ]

        result = reconcile_adventures(existing, [], now=NOW)

        assert [a.id for a in result] == ["b", "d", "a", "c"]

    def test_default_now(self):
        [created] = reconcile_adventures([], [adventure()])
        assert created.created_at is not None


class TestReconcilePipeline:
    def test_appended_photo_updates_in_place(self, trip, pipeline):
        """A new photo on a synced trip updates it instead of duplicating it."""
        records = trip("tokyo", datetime(2024, 3, 15, 9, 0), 6)
        first = pipeline(records, [])
        assert len(first) == 1
        assert first[0].media_count == 6

        edited = [first[0].model_copy(update={"narrative": "Ramen every night", "is_favorite": True})]
        extra = trip("tokyo-late", records[-1].captured_at + timedelta(minutes=30), 1)

        second = pipeline(records + extra, edited)

        assert len(second) == 1
        assert second[0].id == first[0].id
        assert second[0].media_count == 7
        assert second[0].narrative == "Ramen every night"
        assert second[0].is_favorite is True

    def test_identity_stable_across_runs(self, trip, pipeline):
        """Two syncs with no new photos keep ids and user fields."""
        records = (
            trip("tokyo", datetime(2024, 3, 15, 9, 0), 6)
            + trip("kyoto", datetime(2024, 3, 18, 9, 0), 5, position=KYOTO, city="Kyoto")
            + trip("paris", datetime(2024, 7, 1, 9, 0), 8, position=(48.8566, 2.3522),
                   city="Paris", country="France")
        )
        first = pipeline(records, [])
        first = [a.model_copy(update={"narrative": f"story {a.id}"}) for a in first]

        second = pipeline(records, first)

        assert len(second) == len(first) == 3
        for before, after in zip(first, second):
            assert after.id == before.id
            assert after.narrative == before.narrative
            assert after.is_favorite == before.is_favorite

    def test_earlier_trip_shift_does_not_rename(self, trip, pipeline):
        """A new trip before a synced one shifts indices but keeps stored ids."""
        paris = trip("paris", datetime(2024, 7, 1, 9, 0), 5, position=(48.8566, 2.3522),
                     city="Paris", country="France")
        first = pipeline(paris, [])
        assert first[0].id == "adventure_20240701_0"

        tokyo = trip("tokyo", datetime(2024, 3, 15, 9, 0), 6)
        second = pipeline(tokyo + paris, first)

        assert [a.id for a in second] == ["adventure_20240701_0", "adventure_20240315_0"]
