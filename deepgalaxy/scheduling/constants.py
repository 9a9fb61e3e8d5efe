"""
Scheduler Constants and Parameters

All tunable values of the SM-2 core and its statistical correction layer
in one place.
"""

from enum import IntEnum


# ---- UI Grades ----

class UiGrade(IntEnum):
    """Four-button grade shown after the answer is revealed."""
    FORGOT = 1  # Did not remember at all
    HARD = 2    # Vague, recalled with difficulty
    GOOD = 3    # Mostly remembered
    EASY = 4    # Perfect recall


# UI grade -> SM-2 quality. Quality 2 is never produced by the buttons.
QUALITY_BY_UI_GRADE = {
    UiGrade.FORGOT: 1,
    UiGrade.HARD: 3,
    UiGrade.GOOD: 4,
    UiGrade.EASY: 5,
}

MIN_QUALITY = 1
MAX_QUALITY = 5
PASSING_QUALITY = 3  # q < 3 is a lapse


# ---- SM-2 ----

INITIAL_EASE_FACTOR = 2.5
EF_FLOOR = 1.3
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
LAPSE_INTERVAL_DAYS = 1


# ---- Review Ledger ----

FORGET_WINDOW_DAYS = 30   # Trailing window for the learner's forgetting rate
RECENT_WINDOW_DAYS = 7    # Window for the dashboard success rate


# ---- Retention Model ----

MIN_STRENGTH = 0.1           # Floor for the I x EF memory-strength proxy
MAX_RETENTION_SCORE = 100.0
NEW_CARD_PRIORITY = 100.0    # Sentinel priority for cards with n == 0

PRIORITY_WEIGHTS = {
    "forget_risk": 0.5,
    "retention_gap": 0.3,
    "ease_penalty": 0.1,
    "overdue": 0.1,
}


# ---- Due Set ----

DUE_PRIORITY_THRESHOLD = 0.6


# ---- Finalizer Corrections ----

HIGH_FORGET_RATE = 0.35
LOW_FORGET_RATE = 0.15
EASE_MULTIPLIER_HIGH_FORGET = 0.9
EASE_MULTIPLIER_LOW_FORGET = 1.1

LOW_RETENTION_SCORE = 40.0
HIGH_RETENTION_SCORE = 80.0
RETENTION_MULTIPLIER_LOW = 0.8
RETENTION_MULTIPLIER_HIGH = 1.2


# ---- Dashboard ----

STRUGGLING_EASE_FACTOR = 1.5  # Cards below this EF count as struggling
