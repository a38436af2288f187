"""
Rating Recalculator.

Recomputes derived rating fields for one entity after a review write,
and for every entity in bulk (admin recalculation and legacy migration).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from reelscore.models.entity import RatableEntity
from reelscore.rating.aggregator import compute_dynamic_rating, summarize_ratings
from reelscore.registry.entity_registry import EntityRegistry
from reelscore.utils.storage import StorageManager
import config.settings as settings

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RatingSnapshot:
    """Derived rating fields for one entity, as persisted."""
    entity_id: str
    name: str
    admin_rating: Optional[float]
    user_rating_average: Optional[float]
    user_rating_count: int
    dynamic_rating: Optional[float]

    def to_dict(self) -> dict:
        return {
            "entity_id": self.entity_id,
            "name": self.name,
            "admin_rating": self.admin_rating,
            "user_rating_average": self.user_rating_average,
            "user_rating_count": self.user_rating_count,
            "dynamic_rating": self.dynamic_rating
        }


@dataclass
class RecalculationReport:
    """
    Outcome of a bulk run.
    Failures are collected in `errors` instead of aborting the batch.
    """
    operation: str  # "recalculation" or "migration"
    kind: Optional[str] = None  # None means every kind
    total_entities: int = 0
    updated_count: int = 0
    skipped_count: int = 0
    results: List[RatingSnapshot] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    started_at: str = ""
    finished_at: str = ""

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "kind": self.kind,
            "success": self.success,
            "total_entities": self.total_entities,
            "updated_count": self.updated_count,
            "skipped_count": self.skipped_count,
            "results": [r.to_dict() for r in self.results],
            "errors": self.errors,
            "started_at": self.started_at,
            "finished_at": self.finished_at
        }


class RatingRecalculator:
    """
    Keeps each entity's derived rating fields in sync with its reviews.

    Single-entity flow:
    1. Load entity → 2. Load reviews → 3. Count + average
    → 4. Resolve admin rating → 5. Blend → 6. Persist all fields at once
    """

    def __init__(
        self,
        registry: EntityRegistry,
        storage: StorageManager,
        clock: Callable[[], datetime] = _utc_now
    ):
        """
        Initialize recalculator.

        Args:
            registry: Entity registry holding the rating fields
            storage: Storage manager for reviews and reports
            clock: Source of the last_rating_update timestamp
        """
        self.registry = registry
        self.storage = storage
        self.clock = clock

    def update_entity_rating(self, entity_id: str, persist: bool = True) -> RatingSnapshot:
        """
        Recompute and store the rating fields of one entity.

        Args:
            entity_id: Target entity UUID
            persist: Save the registry afterwards. Bulk runs save once at the end.

        Returns:
            Snapshot of the persisted fields

        Raises:
            ValueError: If the entity doesn't exist
        """
        entity = self.registry.get_entity(entity_id)
        if not entity:
            raise ValueError(f"Entity not found: {entity_id}")

        reviews = self.storage.load_reviews(entity_id)
        user_rating_count, user_rating_average = summarize_ratings(
            r["rating"] for r in reviews
        )

        admin_rating = entity.resolved_admin_rating()
        dynamic_rating = compute_dynamic_rating(
            admin_rating,
            user_rating_average,
            user_rating_count
        )

        self.registry.update_rating_fields(
            entity_id,
            admin_rating=admin_rating,
            user_rating_average=user_rating_average,
            user_rating_count=user_rating_count,
            dynamic_rating=dynamic_rating,
            last_rating_update=self.clock().isoformat()
        )

        if persist:
            self.registry.save()

        logger.debug(
            f"Rating for {entity_id} ('{entity.name}'): admin={admin_rating}, "
            f"users={user_rating_average} x{user_rating_count} -> {dynamic_rating}"
        )

        return RatingSnapshot(
            entity_id=entity_id,
            name=entity.name,
            admin_rating=admin_rating,
            user_rating_average=user_rating_average,
            user_rating_count=user_rating_count,
            dynamic_rating=dynamic_rating
        )

    def set_admin_rating(self, entity_id: str, admin_rating: Optional[float]) -> RatingSnapshot:
        """Change the admin baseline and recompute the blend."""
        self.registry.set_admin_rating(entity_id, admin_rating)
        return self.update_entity_rating(entity_id)

    def recalculate_all(self, kind: Optional[str] = None) -> RecalculationReport:
        """
        Recompute every entity of `kind` (movies then people when None).

        Returns:
            Report with per-entity results and collected errors
        """
        return self._run_batch("recalculation", kind, skip_migrated=False)

    def migrate_ratings(self, kind: Optional[str] = None) -> RecalculationReport:
        """
        Populate rating fields on entities that predate them.

        Entities with both admin_rating and dynamic_rating already set are skipped.
        """
        return self._run_batch("migration", kind, skip_migrated=True)

    def get_rating_breakdown(self, entity_id: str) -> Optional[Dict]:
        """Stored rating fields plus display values, or None for unknown entities."""
        entity = self.registry.get_entity(entity_id)
        if not entity:
            return None

        return {
            "entity_id": entity.entity_id,
            "name": entity.name,
            "kind": entity.kind,
            "admin_rating": entity.resolved_admin_rating(),
            "user_rating_average": entity.user_rating_average,
            "user_rating_count": entity.user_rating_count or 0,
            "dynamic_rating": entity.dynamic_rating,
            "display_rating": entity.display_rating(),
            "rating_tier": entity.rating_tier(),
            "last_rating_update": entity.last_rating_update
        }

    def _run_batch(
        self,
        operation: str,
        kind: Optional[str],
        skip_migrated: bool
    ) -> RecalculationReport:
        if kind is not None and kind not in settings.ENTITY_KINDS:
            raise ValueError(
                f"Invalid kind: {kind}. Must be one of {', '.join(settings.ENTITY_KINDS)}"
            )

        kinds = [kind] if kind else list(settings.ENTITY_KINDS)
        report = RecalculationReport(
            operation=operation,
            kind=kind,
            started_at=self.clock().isoformat()
        )

        # Snapshot ids up front; entities may disappear mid-batch
        batch: List[RatableEntity] = []
        for k in kinds:
            batch.extend(self.registry.get_all_entities(kind=k))
        report.total_entities = len(batch)

        logger.info(f"Starting {operation} for {len(batch)} entities ({', '.join(kinds)})")

        for entity in batch:
            if skip_migrated and self._is_migrated(entity):
                report.skipped_count += 1
                continue

            try:
                snapshot = self.update_entity_rating(entity.entity_id, persist=False)
            except Exception as e:
                message = f"Error updating rating for {entity.entity_id} ({entity.name}): {e}"
                logger.error(message)
                report.errors.append(message)
                if settings.CONTINUE_ON_ENTITY_FAILURE:
                    continue
                raise

            report.updated_count += 1
            report.results.append(snapshot)

            if report.updated_count % 10 == 0:
                logger.info(f"{operation.capitalize()}: {report.updated_count} entities updated...")

        try:
            self.registry.save()
        except Exception as e:
            logger.error(f"CRITICAL: Failed to save registry after {operation}: {e}")
            if settings.CRASH_ON_REGISTRY_ERROR:
                raise

        report.finished_at = self.clock().isoformat()
        self.storage.save_report(
            report.to_dict(),
            f"{operation}_{self.clock().strftime('%Y%m%dT%H%M%S%fZ')}"
        )

        logger.info(
            f"{operation.capitalize()} complete: {report.updated_count}/{report.total_entities} updated, "
            f"{report.skipped_count} skipped, {len(report.errors)} errors"
        )

        return report

    @staticmethod
    def _is_migrated(entity: RatableEntity) -> bool:
        return entity.admin_rating is not None and entity.dynamic_rating is not None
