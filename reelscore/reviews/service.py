"""
Review Service.

Creates, edits and deletes user reviews. Every write ends with a
synchronous recompute of the owning entity's rating.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
import uuid

from reelscore.models.review import Review
from reelscore.rating.recalculator import RatingRecalculator, RatingSnapshot
from reelscore.registry.entity_registry import EntityRegistry
from reelscore.utils.storage import StorageManager
import config.settings as settings

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Writer for the review store.

    Enforces one review per (user, entity) and the 1-10 rating range,
    then hands off to the recalculator.
    """

    def __init__(
        self,
        registry: EntityRegistry,
        storage: StorageManager,
        recalculator: RatingRecalculator
    ):
        self.registry = registry
        self.storage = storage
        self.recalculator = recalculator

    def add_review(
        self,
        entity_id: str,
        user_id: str,
        title: str,
        content: str,
        rating: float
    ) -> str:
        """
        Add a review and recompute the entity's rating.

        Args:
            entity_id: Reviewed movie/show or person
            user_id: Author
            title: Review headline
            content: Review body
            rating: Score from 1 to 10

        Returns:
            review_id of the new review

        Raises:
            ValueError: On invalid input, unknown entity, or a second review by the same user
        """
        self._validate(title, content, rating)

        if not self.registry.get_entity(entity_id):
            raise ValueError(f"Entity not found: {entity_id}")

        reviews = self.storage.load_reviews(entity_id)
        if any(r["user_id"] == user_id for r in reviews):
            raise ValueError("You have already reviewed this item")

        review = Review(
            review_id=str(uuid.uuid4()),
            entity_id=entity_id,
            user_id=user_id,
            rating=rating,
            title=title.strip(),
            content=content.strip(),
            created_at=datetime.now(timezone.utc).isoformat()
        )
        reviews.append(review.to_dict())
        self.storage.save_reviews(entity_id, reviews)

        logger.info(f"User {user_id} reviewed {entity_id} with {rating}")
        self._recompute(entity_id)

        return review.review_id

    def edit_review(
        self,
        review_id: str,
        user_id: str,
        title: str,
        content: str,
        rating: float
    ) -> RatingSnapshot:
        """
        Edit a review (author only) and recompute.

        Raises:
            ValueError: On invalid input, unknown review, or a non-author editor
        """
        self._validate(title, content, rating)

        entity_id, reviews, index = self._find_review(review_id)
        if reviews[index]["user_id"] != user_id:
            raise ValueError("You can only edit your own reviews")

        reviews[index].update({
            "title": title.strip(),
            "content": content.strip(),
            "rating": rating,
        })
        self.storage.save_reviews(entity_id, reviews)

        logger.info(f"Review {review_id} edited by {user_id}")
        return self._recompute(entity_id)

    def delete_review(self, review_id: str, user_id: str) -> RatingSnapshot:
        """
        Delete a review (author only) and recompute.

        Raises:
            ValueError: If the review doesn't exist or user_id isn't the author
        """
        entity_id, reviews, index = self._find_review(review_id)
        if reviews[index]["user_id"] != user_id:
            raise ValueError("You can only delete your own reviews")

        return self._remove(entity_id, reviews, index)

    def admin_delete_review(self, review_id: str) -> RatingSnapshot:
        """Delete any review (moderation) and recompute."""
        entity_id, reviews, index = self._find_review(review_id)
        logger.warning(f"Moderator removing review {review_id} on {entity_id}")
        return self._remove(entity_id, reviews, index)

    def get_reviews(
        self,
        entity_id: str,
        page: int = 1,
        limit: int = settings.DEFAULT_PAGE_SIZE
    ) -> Dict:
        """
        Page through an entity's reviews, newest first.

        Returns:
            Dict with reviews, total_count, current_page, total_pages, has_more
        """
        page = max(1, page)
        limit = max(1, limit)

        if not self.registry.get_entity(entity_id):
            logger.warning(f"Reviews requested for unknown entity {entity_id}")
            return {
                "reviews": [],
                "total_count": 0,
                "current_page": page,
                "total_pages": 0,
                "has_more": False,
            }

        reviews = [Review.from_dict(r) for r in self.storage.load_reviews(entity_id)]
        reviews.sort(key=lambda r: r.created_at, reverse=True)

        total_count = len(reviews)
        total_pages = math.ceil(total_count / limit)
        offset = (page - 1) * limit

        return {
            "reviews": reviews[offset:offset + limit],
            "total_count": total_count,
            "current_page": page,
            "total_pages": total_pages,
            "has_more": page < total_pages,
        }

    def _remove(self, entity_id: str, reviews: List[Dict], index: int) -> RatingSnapshot:
        removed = reviews.pop(index)
        self.storage.save_reviews(entity_id, reviews)
        logger.info(f"Review {removed['review_id']} deleted from {entity_id}")
        return self._recompute(entity_id)

    def _recompute(self, entity_id: str) -> RatingSnapshot:
        return self.recalculator.update_entity_rating(entity_id)

    def _find_review(self, review_id: str) -> Tuple[str, List[Dict], int]:
        """
        Locate a review across entities: (entity_id, that entity's reviews, index).

        Raises before any write if the owning entity is gone, so review
        files left behind by a removed entity are never modified.
        """
        for entity_id in self.storage.get_reviewed_entity_ids():
            reviews = self.storage.load_reviews(entity_id)
            for index, review in enumerate(reviews):
                if review["review_id"] != review_id:
                    continue
                if not self.registry.get_entity(entity_id):
                    raise ValueError(f"Entity not found: {entity_id}")
                return entity_id, reviews, index

        raise ValueError(f"Review not found: {review_id}")

    @staticmethod
    def _validate(title: str, content: str, rating: Optional[float]) -> None:
        if not title or not title.strip():
            raise ValueError("Review title cannot be empty")

        if not content or not content.strip():
            raise ValueError("Review content cannot be empty")

        if len(title) > settings.MAX_TITLE_LENGTH:
            raise ValueError(f"Review title is too long (max {settings.MAX_TITLE_LENGTH} characters)")

        if len(content) > settings.MAX_CONTENT_LENGTH:
            raise ValueError(f"Review is too long (max {settings.MAX_CONTENT_LENGTH} characters)")

        if rating is None or not (settings.MIN_REVIEW_RATING <= rating <= settings.MAX_REVIEW_RATING):
            raise ValueError(
                f"Rating must be between {settings.MIN_REVIEW_RATING} and {settings.MAX_REVIEW_RATING}"
            )
