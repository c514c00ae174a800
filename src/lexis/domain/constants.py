"""Centralized constants for the Lexis scheduler.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Ease factor ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
FORGOT_EASE_PENALTY = 0.2
STRUGGLED_EASE_PENALTY = 0.15
PERFECT_EASE_BONUS = 0.1

# ---------- Intervals (days) ----------
FIRST_SUCCESS_INTERVAL = 1.0
LAPSE_INTERVAL = 1.0
STRUGGLED_GROWTH = 1.2
LEARNED_INTERVAL_THRESHOLD = 7.0
MAX_INTERVAL = 36500.0  # about a century
MIN_SUCCESS_INTERVAL = 0.01  # smallest interval a success can produce
PRECISION = 2  # decimals kept on interval and ease

# ---------- Windows (days) ----------
WEEK_DAYS = 7
MONTH_DAYS = 30

# ---------- Sessions ----------
DEFAULT_SESSION_LIMIT = 20

# ---------- Memory stability ----------
STABILITY_WEIGHT_INTERVAL = 0.5
STABILITY_WEIGHT_SUCCESS_RATE = 0.3
STABILITY_WEIGHT_REVIEW_COUNT = 0.1
STABILITY_WEIGHT_EASE_FACTOR = 0.1

INTERVAL_SCORE_BASE = 20
INTERVAL_SCORE_MAX = 95
REVIEW_BONUS_PER_REVIEW = 2
REVIEW_BONUS_MAX = 10
EASE_SCORE_CEILING = 2.5
EASE_SCORE_SCALE = 20

# Upper bounds of each stability level, checked in order
STABILITY_THRESHOLDS = (20, 40, 60, 80)

# ---------- Mastery breakdown ----------
MASTERY_EASE_WEIGHT = 30
MASTERY_INTERVAL_WEIGHT = 40
MASTERY_REVIEW_WEIGHT = 30
MASTERY_INTERVAL_HORIZON = 30  # days
MASTERY_REVIEW_HORIZON = 5  # reviews
MASTERY_THRESHOLDS = (20, 40, 60, 80)
