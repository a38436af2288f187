"""
Rating Aggregator.

Hybrid with Decay: blends the admin baseline with the user review average.
The admin's weight shrinks as reviews accumulate, down to a fixed floor.

    admin_influence = max(0.3, 1 / (1 + user_rating_count / 10))
    dynamic_rating  = admin_influence * admin + (1 - admin_influence) * user_average
"""

import math
from typing import Iterable, Optional, Tuple

import config.settings as settings


def round_half_up(value: float, decimals: int = settings.RATING_DECIMALS) -> float:
    """
    Round to a fixed number of decimals with halves going up.

    Python's built-in round() uses banker's rounding (6.25 -> 6.2);
    ratings always round halves toward +inf (6.25 -> 6.3).
    """
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def admin_influence(
    user_rating_count: int,
    floor: float = settings.ADMIN_INFLUENCE_FLOOR,
    scale: float = settings.INFLUENCE_DECAY_SCALE
) -> float:
    """
    Weight of the admin rating in the blend.

    1.0 at zero reviews, 0.5 at `scale` reviews, never below `floor`.
    """
    return max(floor, 1 / (1 + user_rating_count / scale))


def compute_dynamic_rating(
    admin_rating: Optional[float],
    user_rating_average: Optional[float],
    user_rating_count: int
) -> Optional[float]:
    """
    Compute the display rating for an entity.

    Args:
        admin_rating: Admin baseline. None and 0 both mean "not set".
        user_rating_average: Mean of review ratings, already rounded to 1 decimal
        user_rating_count: Number of reviews behind the average

    Returns:
        None if neither input is set. The admin rating (unrounded) if there are
        no usable user ratings. The user average (unrounded) if there is no admin
        rating. Otherwise the blend, rounded half-up to 1 decimal.
    """
    if not admin_rating and not user_rating_average:
        return None

    if admin_rating and (not user_rating_average or user_rating_count == 0):
        return admin_rating

    if not admin_rating:
        return user_rating_average

    influence = admin_influence(user_rating_count)
    blended = influence * admin_rating + (1 - influence) * user_rating_average

    return round_half_up(blended)


def summarize_ratings(ratings: Iterable[float]) -> Tuple[int, Optional[float]]:
    """
    Count and average a set of review ratings.

    Returns:
        (count, average) with the average rounded half-up to 1 decimal,
        or (0, None) when there are no ratings
    """
    ratings = list(ratings)
    count = len(ratings)
    if count == 0:
        return 0, None

    return count, round_half_up(sum(ratings) / count)
