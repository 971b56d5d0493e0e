"""Centralized constants for the mnemos scheduling core.

All magic numbers and tuning defaults live here so the config structs
and every layer import from a single source of truth.
"""

# ---------- Quality scale ----------
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3

QUALITY_FACTORS = {
    0: 0.0,  # Total blackout
    1: 0.6,  # Wrong
    2: 0.7,  # Hard, wrong
    3: 0.8,  # Correct with effort
    4: 1.0,  # Correct
    5: 1.3,  # Easy
}

# ---------- Item defaults ----------
INITIAL_EASE_FACTOR = 2.5
INITIAL_INTERVAL = 1
FIRST_SUCCESS_INTERVAL = 1  # days, before the quality factor
SECOND_SUCCESS_INTERVAL = 6

# ---------- Limits ----------
MIN_EASE_FACTOR = 1.3
MAX_EASE_FACTOR = 4.0
MIN_INTERVAL = 1
MAX_INTERVAL = 365  # days
LEECH_THRESHOLD = 8  # lapses
GRADUATION_INTERVAL = 21  # days
FUZZ_RANGE = (0.95, 1.05)

# ---------- Context modifiers ----------
MORNING_BONUS = 1.1
NIGHT_PENALTY = 0.9
DAILY_STREAK_DAYS = 7
DAILY_STREAK_BONUS = 1.2
FREQUENT_STREAK_DAYS = 3
FREQUENT_STREAK_BONUS = 1.1
AFTER_CORRECT_BONUS = 1.05
AFTER_WRONG_PENALTY = 0.95
MAX_SUBJECT_DIFFICULTY = 10.0

# ---------- Forgetting curve ----------
STABILITY_MULTIPLIER = 1.5
MASTERY_INTERVAL_DAYS = 30
MASTERY_STREAK = 10
DEFAULT_FORECAST_DAYS = 30

# ---------- Ability estimation (2PL IRT) ----------
ABILITY_WINDOW_DAYS = 30
ABILITY_MAX_RECORDS = 100
NEWTON_ITERATIONS = 10
NEWTON_LEARNING_RATE = 0.1
THETA_BOUND = 3.0
DEFAULT_DIFFICULTY = 0.5
DEFAULT_DISCRIMINATION = 1.0
CONFIDENCE_RECORDS = 10
TREND_WINDOW = 5
TREND_MARGIN = 0.1

# ---------- Session composition ----------
OVERDUE_BASE_PRIORITY = 100
OVERDUE_DAILY_PRIORITY = 10
LEECH_PRIORITY = 50
LOW_RETENTION_THRESHOLD = 0.8
LOW_RETENTION_PRIORITY = 30
NEW_ITEM_PRIORITY = 20
DEFAULT_ITEM_MINUTES = 1.0
DEFAULT_SESSION_MINUTES = 30
DIFFICULTY_BAND = 0.3
