"""
Rating Analytics.

Compares admin baselines with user averages across the catalog.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Dict, Optional

import pandas as pd

from reelscore.registry.entity_registry import EntityRegistry
import config.settings as settings

logger = logging.getLogger(__name__)

COLUMNS = [
    "entity_id",
    "name",
    "kind",
    "admin_rating",
    "user_rating_average",
    "user_rating_count",
    "dynamic_rating",
    "rating_difference",
]


class RatingAnalytics:
    """
    Builds a divergence table for entities that have a dynamic rating.
    """

    def __init__(self, registry: EntityRegistry):
        self.registry = registry

    def build_frame(self, kind: Optional[str] = None) -> pd.DataFrame:
        """
        One row per rated entity.

        rating_difference is |admin - user average| when both exist, else 0.
        """
        rows = []
        for entity in self.registry.get_all_entities(kind=kind):
            if entity.dynamic_rating is None:
                continue

            admin_rating = entity.resolved_admin_rating()
            user_average = entity.user_rating_average
            if admin_rating and user_average:
                difference = abs(admin_rating - user_average)
            else:
                difference = 0.0

            rows.append({
                "entity_id": entity.entity_id,
                "name": entity.name,
                "kind": entity.kind,
                "admin_rating": admin_rating,
                "user_rating_average": user_average,
                "user_rating_count": entity.user_rating_count or 0,
                "dynamic_rating": entity.dynamic_rating,
                "rating_difference": difference,
            })

        return pd.DataFrame(rows, columns=COLUMNS)

    def build_report(
        self,
        kind: Optional[str] = None,
        top_n: int = settings.ANALYTICS_TOP_N
    ) -> Dict:
        """
        Summarize rating divergence.

        Args:
            kind: Restrict to "movie" or "person"
            top_n: Size of the biggest_differences and most_reviewed lists

        Returns:
            Report dict with totals and the top-n lists
        """
        df = self.build_frame(kind)

        if df.empty:
            logger.warning("No rated entities found, analytics report is empty")
            return {
                "total_entities": 0,
                "entities_with_user_reviews": 0,
                "average_user_rating_count": 0.0,
                "biggest_differences": [],
                "most_reviewed": [],
            }

        biggest = df.sort_values("rating_difference", ascending=False, kind="stable").head(top_n)
        most_reviewed = df.sort_values("user_rating_count", ascending=False, kind="stable").head(top_n)

        report = {
            "total_entities": int(len(df)),
            "entities_with_user_reviews": int((df["user_rating_count"] > 0).sum()),
            "average_user_rating_count": float(df["user_rating_count"].mean()),
            "biggest_differences": self._records(biggest),
            "most_reviewed": self._records(most_reviewed),
        }

        logger.info(
            f"Analytics: {report['total_entities']} rated entities, "
            f"{report['entities_with_user_reviews']} with user reviews"
        )
        return report

    def export_csv(self, output_dir: str, kind: Optional[str] = None) -> str:
        """
        Write the divergence table to CSV.

        Returns:
            Path to the CSV file
        """
        df = self.build_frame(kind).sort_values(
            "rating_difference", ascending=False, kind="stable"
        )

        os.makedirs(output_dir, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        output_path = os.path.join(output_dir, f"rating_analytics_{timestamp}.csv")
        df.to_csv(output_path, index=False)

        logger.info(f"Rating analytics saved to {output_path} ({len(df)} entities)")
        return output_path

    @staticmethod
    def _records(df: pd.DataFrame) -> list:
        # NaN -> None so the records stay JSON-serializable
        return df.astype(object).where(df.notna(), None).to_dict(orient="records")
