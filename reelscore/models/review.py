"""
Review data model.

Represents a single user review of a movie/show or person.
"""

from dataclasses import dataclass

import config.settings as settings


@dataclass
class Review:
    """
    User review of a ratable entity.
    One review per (user, entity) pair, enforced by the review service.
    """
    review_id: str  # Unique identifier for the review
    entity_id: str  # Owning movie/show or person
    user_id: str  # Author
    rating: float  # 1-10 score
    title: str = ""
    content: str = ""
    created_at: str = ""  # ISO-8601 UTC

    def __post_init__(self):
        # Validate rating
        if not (settings.MIN_REVIEW_RATING <= self.rating <= settings.MAX_REVIEW_RATING):
            raise ValueError(
                f"Invalid rating: {self.rating}. "
                f"Must be {settings.MIN_REVIEW_RATING}-{settings.MAX_REVIEW_RATING}"
            )

    @classmethod
    def from_dict(cls, data: dict) -> "Review":
        return cls(
            review_id=data["review_id"],
            entity_id=data["entity_id"],
            user_id=data["user_id"],
            rating=data["rating"],
            title=data.get("title", ""),
            content=data.get("content", ""),
            created_at=data.get("created_at", "")
        )

    def to_dict(self) -> dict:
        return {
            "review_id": self.review_id,
            "entity_id": self.entity_id,
            "user_id": self.user_id,
            "rating": self.rating,
            "title": self.title,
            "content": self.content,
            "created_at": self.created_at
        }
