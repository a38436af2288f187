"""
Entity Registry - Single source of truth for ratable entities.

Manages movie/person records, their rating fields, and persistence.
"""

import json
import os
import shutil
import logging
from typing import List, Optional, Dict
from datetime import datetime, timezone
import uuid

from reelscore.models.entity import RatableEntity

logger = logging.getLogger(__name__)

# Fields owned by the rating recalculator
RATING_FIELDS = (
    "admin_rating",
    "user_rating_average",
    "user_rating_count",
    "dynamic_rating",
    "last_rating_update",
)


class EntityRegistry:
    """
    Stores every ratable entity keyed by entity_id.

    Rating fields are written only through update_rating_fields(), which
    applies all derived values to one record in a single step.
    """

    def __init__(self, registry_path: str):
        """
        Initialize registry from disk or create new empty registry.

        Args:
            registry_path: Path to entity_registry.json file
        """
        self.registry_path = registry_path
        self.entities: Dict[str, RatableEntity] = {}  # entity_id -> RatableEntity
        self.version = "1.0.0"
        self.last_updated = datetime.now(timezone.utc).isoformat()

        if os.path.exists(registry_path):
            self._load()
        else:
            logger.info(f"No existing registry found at {registry_path}, initializing empty registry")

    def _load(self) -> None:
        """Load registry from disk."""
        try:
            with open(self.registry_path, 'r') as f:
                data = json.load(f)

            self.version = data.get("version", "1.0.0")
            self.last_updated = data.get("last_updated", self.last_updated)

            self.entities = {}
            for entity_data in data.get("entities", []):
                entity = RatableEntity.from_dict(entity_data)
                self.entities[entity.entity_id] = entity

            logger.info(f"Loaded {len(self.entities)} entities from registry")

        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse registry JSON: {e}")
            self._try_restore_from_backup()
        except Exception as e:
            logger.error(f"Failed to load registry: {e}")
            self._try_restore_from_backup()

    def _try_restore_from_backup(self) -> None:
        """Attempt to restore from backup file if main registry is corrupted."""
        backup_path = f"{self.registry_path}.backup"
        if not os.path.exists(backup_path):
            logger.warning("No backup file found. Starting with empty registry.")
            self.entities = {}
            return

        logger.warning(f"Attempting to restore from backup: {backup_path}")
        try:
            with open(backup_path, 'r') as f:
                data = json.load(f)
            self.entities = {
                entity.entity_id: entity
                for entity in (RatableEntity.from_dict(d) for d in data.get("entities", []))
            }
            shutil.copy(backup_path, self.registry_path)
            logger.info(f"Restored {len(self.entities)} entities from backup")
        except Exception as e:
            logger.error(f"Backup restoration failed: {e}. Starting with empty registry.")
            self.entities = {}

    def add_entity(
        self,
        name: str,
        kind: str,
        admin_rating: Optional[float] = None,
        legacy_rating: Optional[float] = None
    ) -> str:
        """
        Register a new movie/show or person.

        Args:
            name: Title or person name
            kind: "movie" or "person"
            admin_rating: Optional admin baseline
            legacy_rating: Optional pre-migration rating

        Returns:
            entity_id (UUID) of the new entity

        Raises:
            ValueError: If name is blank or kind is invalid
        """
        if not name or not name.strip():
            raise ValueError("Entity name cannot be empty")

        entity_id = str(uuid.uuid4())
        entity = RatableEntity(
            entity_id=entity_id,
            name=name.strip(),
            kind=kind,
            admin_rating=admin_rating,
            legacy_rating=legacy_rating
        )

        self.entities[entity_id] = entity
        logger.info(f"Registered {kind}: {entity_id} - '{entity.name}'")

        return entity_id

    def get_entity(self, entity_id: str) -> Optional[RatableEntity]:
        """Retrieve entity by ID. Returns None if not found."""
        return self.entities.get(entity_id)

    def remove_entity(self, entity_id: str) -> None:
        if entity_id not in self.entities:
            raise ValueError(f"Entity not found: {entity_id}")

        entity = self.entities.pop(entity_id)
        logger.info(f"Removed {entity.kind}: {entity_id} - '{entity.name}'")

    def set_admin_rating(self, entity_id: str, admin_rating: Optional[float]) -> None:
        """
        Set the admin baseline for an entity.

        Args:
            entity_id: Target entity UUID
            admin_rating: New baseline, or None to clear it

        Raises:
            ValueError: If entity_id doesn't exist
        """
        entity = self.get_entity(entity_id)
        if not entity:
            raise ValueError(f"Entity not found: {entity_id}")

        entity.admin_rating = admin_rating
        logger.info(f"Set admin rating {admin_rating} on {entity_id}")

    def update_rating_fields(self, entity_id: str, **fields) -> RatableEntity:
        """
        Apply derived rating fields to one entity in a single step.

        Args:
            entity_id: Target entity UUID
            **fields: Any of RATING_FIELDS

        Returns:
            The updated entity

        Raises:
            ValueError: If entity_id doesn't exist or a field is not a rating field
        """
        entity = self.get_entity(entity_id)
        if not entity:
            raise ValueError(f"Entity not found: {entity_id}")

        unknown = set(fields) - set(RATING_FIELDS)
        if unknown:
            raise ValueError(f"Not rating fields: {', '.join(sorted(unknown))}")

        for field_name, value in fields.items():
            setattr(entity, field_name, value)

        logger.debug(f"Updated rating fields on {entity_id}: {fields}")
        return entity

    def get_all_entities(self, kind: Optional[str] = None) -> List[RatableEntity]:
        """Return entities, optionally filtered by kind, sorted by name."""
        entities = [
            e for e in self.entities.values()
            if kind is None or e.kind == kind
        ]
        entities.sort(key=lambda e: e.name.lower())
        return entities

    def save(self) -> None:
        """
        Persist registry to disk with atomic write pattern.
        Creates backup before write.
        """
        self.last_updated = datetime.now(timezone.utc).isoformat()

        if os.path.exists(self.registry_path):
            backup_path = f"{self.registry_path}.backup"
            shutil.copy(self.registry_path, backup_path)
            logger.debug(f"Created backup: {backup_path}")

        data = {
            "version": self.version,
            "last_updated": self.last_updated,
            "entities": [entity.to_dict() for entity in self.entities.values()]
        }

        directory = os.path.dirname(self.registry_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        # Atomic write: write to temp file, then rename
        temp_path = f"{self.registry_path}.tmp"
        try:
            with open(temp_path, 'w') as f:
                json.dump(data, f, indent=2)

            os.replace(temp_path, self.registry_path)
            logger.info(f"Registry saved: {len(self.entities)} entities")

        except Exception as e:
            logger.error(f"Failed to save registry: {e}")
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise
