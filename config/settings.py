"""
Configuration settings for ReelScore.

Centralized configuration for rating aggregation, the review service,
and the bulk recalculation workflow.
"""

import os
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_ROOT = Path(os.getenv("REELSCORE_DATA_ROOT", str(PROJECT_ROOT / "data")))
OUTPUT_ROOT = Path(os.getenv("REELSCORE_OUTPUT_ROOT", str(PROJECT_ROOT / "output")))
REGISTRY_FILENAME = "entity_registry.json"

# Entity kinds, in bulk recalculation order
ENTITY_KINDS = ("movie", "person")

# Hybrid with Decay
ADMIN_INFLUENCE_FLOOR = 0.3  # Admin never drops below 30% of the blend
INFLUENCE_DECAY_SCALE = 10  # Review count at which admin influence is 0.5
RATING_DECIMALS = 1

# Review validation
MIN_REVIEW_RATING = 1
MAX_REVIEW_RATING = 10
MAX_TITLE_LENGTH = 200
MAX_CONTENT_LENGTH = 2000
DEFAULT_PAGE_SIZE = 10

# Display tiers
HIGH_RATING_THRESHOLD = 8
MEDIUM_RATING_THRESHOLD = 6

# Analytics
ANALYTICS_TOP_N = 10

# Bulk recalculation
CONTINUE_ON_ENTITY_FAILURE = True  # Record the error and move on
CRASH_ON_REGISTRY_ERROR = True

# Logging
LOG_LEVEL = os.getenv("REELSCORE_LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
