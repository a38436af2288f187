"""
Ratable entity data model.

Represents a movie/show or a person whose display rating blends
the admin baseline with user reviews.
"""

from dataclasses import dataclass
from typing import Optional

import config.settings as settings


@dataclass
class RatableEntity:
    """
    A movie/show or person record eligible for rating aggregation.

    The admin fields are curated by content administrators. The user_* fields,
    dynamic_rating and last_rating_update are derived by the recalculator.
    """
    entity_id: str
    name: str
    kind: str  # "movie" or "person"
    admin_rating: Optional[float] = None
    legacy_rating: Optional[float] = None  # Pre-migration single rating field
    user_rating_average: Optional[float] = None
    user_rating_count: int = 0
    dynamic_rating: Optional[float] = None
    last_rating_update: Optional[str] = None  # ISO-8601 UTC

    def __post_init__(self):
        if self.kind not in settings.ENTITY_KINDS:
            raise ValueError(
                f"Invalid kind: {self.kind}. Must be one of {', '.join(settings.ENTITY_KINDS)}"
            )

    def resolved_admin_rating(self) -> Optional[float]:
        """
        Admin baseline with legacy fallback.

        The explicit admin rating wins; otherwise the legacy rating field is used.
        A rating of 0 counts as unset, same as None.
        """
        return self.admin_rating or self.legacy_rating

    def display_rating(self) -> Optional[float]:
        """Rating shown to users: dynamic, then admin, then legacy."""
        return self.dynamic_rating or self.admin_rating or self.legacy_rating or None

    def rating_tier(self) -> Optional[str]:
        rating = self.display_rating()
        if rating is None:
            return None
        if rating >= settings.HIGH_RATING_THRESHOLD:
            return "high"
        if rating >= settings.MEDIUM_RATING_THRESHOLD:
            return "medium"
        return "low"

    @classmethod
    def from_dict(cls, data: dict) -> "RatableEntity":
        """Create RatableEntity from JSON dict."""
        return cls(
            entity_id=data["entity_id"],
            name=data["name"],
            kind=data["kind"],
            admin_rating=data.get("admin_rating"),
            legacy_rating=data.get("legacy_rating"),
            user_rating_average=data.get("user_rating_average"),
            user_rating_count=data.get("user_rating_count", 0),
            dynamic_rating=data.get("dynamic_rating"),
            last_rating_update=data.get("last_rating_update")
        )

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "entity_id": self.entity_id,
            "name": self.name,
            "kind": self.kind,
            "admin_rating": self.admin_rating,
            "legacy_rating": self.legacy_rating,
            "user_rating_average": self.user_rating_average,
            "user_rating_count": self.user_rating_count,
            "dynamic_rating": self.dynamic_rating,
            "last_rating_update": self.last_rating_update
        }
