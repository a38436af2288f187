"""
Storage utility.

File I/O helpers for per-entity reviews and recalculation reports.
"""

import json
import os
import logging
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class StorageManager:
    """
    Manages file I/O for all data persistence except the entity registry.

    Handles:
    - Reviews (data/reviews/<entity_id>.json)
    - Recalculation reports (data/reports/<name>.json)
    """

    def __init__(self, data_root: str):
        """
        Initialize storage manager.

        Args:
            data_root: Root data directory (e.g., /path/to/data)
        """
        self.data_root = data_root
        self.reviews_dir = os.path.join(data_root, "reviews")
        self.reports_dir = os.path.join(data_root, "reports")

        os.makedirs(self.reviews_dir, exist_ok=True)
        os.makedirs(self.reports_dir, exist_ok=True)

        logger.info(f"Initialized StorageManager with data_root={data_root}")

    def save_reviews(self, entity_id: str, reviews: List[Dict]) -> None:
        """
        Replace the stored reviews of one entity.

        Args:
            entity_id: Owning entity UUID
            reviews: List of review dicts
        """
        filepath = os.path.join(self.reviews_dir, f"{entity_id}.json")

        try:
            with open(filepath, 'w') as f:
                json.dump(reviews, f, indent=2)
            logger.debug(f"Saved {len(reviews)} reviews to {filepath}")
        except Exception as e:
            logger.error(f"Failed to save reviews for {entity_id}: {e}")
            raise

    def load_reviews(self, entity_id: str) -> List[Dict]:
        """
        Load the reviews of one entity.

        Args:
            entity_id: Owning entity UUID

        Returns:
            List of review dicts, empty if the entity has never been reviewed

        Raises:
            json.JSONDecodeError: If the review file is corrupted
        """
        filepath = os.path.join(self.reviews_dir, f"{entity_id}.json")

        if not os.path.exists(filepath):
            logger.debug(f"No reviews found for {entity_id}")
            return []

        try:
            with open(filepath, 'r') as f:
                reviews = json.load(f)
            logger.debug(f"Loaded {len(reviews)} reviews from {filepath}")
            return reviews
        except Exception as e:
            logger.error(f"Failed to load reviews for {entity_id}: {e}")
            raise

    def get_reviewed_entity_ids(self) -> List[str]:
        """
        Get all entity ids that have a review file.

        Returns:
            Sorted list of entity ids
        """
        entity_ids = []
        for filename in os.listdir(self.reviews_dir):
            if filename.endswith('.json'):
                entity_ids.append(filename[:-len('.json')])

        return sorted(entity_ids)

    def save_report(self, report: Dict, name: str) -> str:
        """
        Save a recalculation or migration report.

        Args:
            report: Report dict
            name: File stem (e.g., recalculation_20240601T120000Z)

        Returns:
            Path to the written file
        """
        filepath = os.path.join(self.reports_dir, f"{name}.json")

        try:
            with open(filepath, 'w') as f:
                json.dump(report, f, indent=2)
            logger.info(f"Saved report to {filepath}")
            return filepath
        except Exception as e:
            logger.error(f"Failed to save report {name}: {e}")
            raise

    def load_report(self, name: str) -> Optional[Dict]:
        """Load a saved report, or None if it doesn't exist."""
        filepath = os.path.join(self.reports_dir, f"{name}.json")

        if not os.path.exists(filepath):
            logger.debug(f"No report found for {name}")
            return None

        try:
            with open(filepath, 'r') as f:
                return json.load(f)
        except Exception as e:
            logger.error(f"Failed to load report {name}: {e}")
            raise
