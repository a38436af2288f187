"""
Unit tests for the rating recompute workflow.
"""

import os
import tempfile
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from reelscore.models.review import Review
from reelscore.rating.recalculator import RatingRecalculator
from reelscore.registry.entity_registry import EntityRegistry
from reelscore.utils.storage import StorageManager

FIXED_TIME = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def workspace():
    """Registry, storage and recalculator in a temporary data root."""
    with tempfile.TemporaryDirectory() as tmpdir:
        registry = EntityRegistry(os.path.join(tmpdir, "entity_registry.json"))
        storage = StorageManager(tmpdir)
        recalculator = RatingRecalculator(registry, storage, clock=lambda: FIXED_TIME)
        yield registry, storage, recalculator


def _add_reviews(storage, entity_id, ratings):
    reviews = [
        Review(
            review_id=f"{entity_id}-r{i}",
            entity_id=entity_id,
            user_id=f"user-{i}",
            rating=rating,
            title="Title",
            content="Content",
            created_at=f"2024-06-01T00:00:{i:02d}+00:00"
        ).to_dict()
        for i, rating in enumerate(ratings)
    ]
    storage.save_reviews(entity_id, reviews)


def test_update_entity_rating_blends(workspace):
    registry, storage, recalculator = workspace
    entity_id = registry.add_entity("Heat", "movie", admin_rating=8.0)
    _add_reviews(storage, entity_id, [6] * 10)

    snapshot = recalculator.update_entity_rating(entity_id)

    assert snapshot.user_rating_count == 10
    assert snapshot.user_rating_average == 6.0
    assert snapshot.dynamic_rating == 7.0

    entity = registry.get_entity(entity_id)
    assert entity.dynamic_rating == 7.0
    assert entity.user_rating_count == 10
    assert entity.last_rating_update == FIXED_TIME.isoformat()


def test_update_entity_rating_persists_registry(workspace):
    registry, storage, recalculator = workspace
    entity_id = registry.add_entity("Heat", "movie", admin_rating=8.0)
    _add_reviews(storage, entity_id, [9, 10])

    recalculator.update_entity_rating(entity_id)

    reloaded = EntityRegistry(registry.registry_path)
    assert reloaded.get_entity(entity_id).user_rating_average == 9.5


def test_legacy_rating_fallback(workspace):
    registry, storage, recalculator = workspace
    entity_id = registry.add_entity("Alien", "movie", legacy_rating=7.5)

    snapshot = recalculator.update_entity_rating(entity_id)

    assert snapshot.admin_rating == 7.5
    assert snapshot.user_rating_average is None
    assert snapshot.user_rating_count == 0
    assert snapshot.dynamic_rating == 7.5
    assert registry.get_entity(entity_id).admin_rating == 7.5


def test_zero_admin_rating_uses_user_average(workspace):
    registry, storage, recalculator = workspace
    entity_id = registry.add_entity("Brazil", "movie", admin_rating=0)
    _add_reviews(storage, entity_id, [6, 7])

    snapshot = recalculator.update_entity_rating(entity_id)

    assert snapshot.dynamic_rating == 6.5


def test_missing_entity_raises(workspace):
    _, _, recalculator = workspace

    with pytest.raises(ValueError, match="Entity not found"):
        recalculator.update_entity_rating("does-not-exist")


def test_recompute_is_idempotent(workspace):
    registry, storage, recalculator = workspace
    entity_id = registry.add_entity("Heat", "movie", admin_rating=8.3)
    _add_reviews(storage, entity_id, [4, 7, 9])

    recalculator.update_entity_rating(entity_id)
    first = registry.get_entity(entity_id).to_dict()

    recalculator.update_entity_rating(entity_id)
    second = registry.get_entity(entity_id).to_dict()

    assert first == second


def test_set_admin_rating_recomputes(workspace):
    registry, storage, recalculator = workspace
    entity_id = registry.add_entity("Heat", "movie")
    _add_reviews(storage, entity_id, [6] * 10)

    recalculator.update_entity_rating(entity_id)
    assert registry.get_entity(entity_id).dynamic_rating == 6.0

    snapshot = recalculator.set_admin_rating(entity_id, 8.0)
    assert snapshot.dynamic_rating == 7.0


def test_recalculate_all_orders_movies_before_people(workspace):
    registry, storage, recalculator = workspace
    registry.add_entity("Al Pacino", "person", admin_rating=9.0)
    registry.add_entity("Zodiac", "movie", admin_rating=8.0)
    registry.add_entity("Amelie", "movie", admin_rating=7.0)

    report = recalculator.recalculate_all()

    assert report.success
    assert report.total_entities == 3
    assert report.updated_count == 3
    assert [r.name for r in report.results] == ["Amelie", "Zodiac", "Al Pacino"]


def test_recalculate_all_single_kind(workspace):
    registry, storage, recalculator = workspace
    registry.add_entity("Al Pacino", "person", admin_rating=9.0)
    registry.add_entity("Zodiac", "movie", admin_rating=8.0)

    report = recalculator.recalculate_all(kind="person")

    assert report.total_entities == 1
    assert report.results[0].name == "Al Pacino"


def test_bulk_continues_past_deleted_entity(workspace):
    """One entity vanishes mid-batch: N-1 updated, one error, no exception."""
    registry, storage, recalculator = workspace
    ids = {}
    for name in ["Movie A", "Movie B", "Movie C", "Movie D", "Movie E"]:
        ids[name] = registry.add_entity(name, "movie", admin_rating=7.0)
        _add_reviews(storage, ids[name], [8, 9])

    original_load = storage.load_reviews
    calls = []

    def load_and_delete(entity_id):
        if not calls:
            registry.remove_entity(ids["Movie C"])
        calls.append(entity_id)
        return original_load(entity_id)

    with patch.object(storage, "load_reviews", side_effect=load_and_delete):
        report = recalculator.recalculate_all(kind="movie")

    assert report.total_entities == 5
    assert report.updated_count == 4
    assert len(report.errors) == 1
    assert "Movie C" in report.errors[0]
    assert not report.success
    assert ids["Movie C"] not in [r.entity_id for r in report.results]


def test_bulk_writes_report(workspace):
    registry, storage, recalculator = workspace
    registry.add_entity("Heat", "movie", admin_rating=8.0)

    recalculator.recalculate_all()

    reports = os.listdir(storage.reports_dir)
    assert len(reports) == 1
    assert reports[0].startswith("recalculation_")

    saved = storage.load_report(reports[0][:-len(".json")])
    assert saved["updated_count"] == 1
    assert saved["errors"] == []
    assert saved["results"][0]["dynamic_rating"] == 8.0
    assert storage.load_report("missing") is None


def test_bulk_rejects_unknown_kind(workspace):
    registry, storage, recalculator = workspace
    registry.add_entity("Heat", "movie", admin_rating=8.0)

    with pytest.raises(ValueError, match="Invalid kind"):
        recalculator.recalculate_all(kind="song")

    with pytest.raises(ValueError, match="Invalid kind"):
        recalculator.migrate_ratings(kind="movies")

    assert os.listdir(storage.reports_dir) == []


def test_migrate_skips_already_migrated(workspace):
    registry, storage, recalculator = workspace
    migrated_id = registry.add_entity("Heat", "movie", admin_rating=8.0)
    registry.update_rating_fields(migrated_id, dynamic_rating=8.0)
    legacy_id = registry.add_entity("Alien", "movie", legacy_rating=7.0)
    _add_reviews(storage, legacy_id, [9] * 10)

    report = recalculator.migrate_ratings()

    assert report.operation == "migration"
    assert report.skipped_count == 1
    assert report.updated_count == 1

    legacy = registry.get_entity(legacy_id)
    assert legacy.admin_rating == 7.0
    assert legacy.dynamic_rating == 8.0


def test_rating_breakdown(workspace):
    registry, storage, recalculator = workspace
    entity_id = registry.add_entity("Heat", "movie", admin_rating=8.0)
    _add_reviews(storage, entity_id, [6] * 10)
    recalculator.update_entity_rating(entity_id)

    breakdown = recalculator.get_rating_breakdown(entity_id)

    assert breakdown["dynamic_rating"] == 7.0
    assert breakdown["display_rating"] == 7.0
    assert breakdown["rating_tier"] == "medium"
    assert breakdown["user_rating_count"] == 10
    assert recalculator.get_rating_breakdown("unknown") is None


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
