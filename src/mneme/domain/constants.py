"""Centralized constants for the mneme scheduler.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Learning steps (minutes) ----------
DEFAULT_LEARNING_STEPS = (1, 10)
DEFAULT_RELEARNING_STEPS = (10,)

# ---------- Intervals (days) ----------
DEFAULT_GRADUATING_INTERVAL = 1
DEFAULT_EASY_INTERVAL = 4

# ---------- Ease ----------
DEFAULT_STARTING_EASE = 2.5
DEFAULT_MIN_EASE = 1.3
EASE_PENALTY_AGAIN = 0.20
EASE_PENALTY_HARD = 0.15
EASE_BONUS_EASY = 0.15
EASE_PRECISION = 2

# ---------- Interval multipliers ----------
DEFAULT_HARD_INTERVAL_FACTOR = 1.2
DEFAULT_EASY_BONUS = 1.3
DEFAULT_INTERVAL_MODIFIER = 1.0

# ---------- Fuzz ----------
DEFAULT_USE_FUZZ = True
FUZZ_MIN_INTERVAL = 3  # days; shorter intervals are never fuzzed
FUZZ_RATIO = 0.05

# ---------- Time ----------
MINUTES_PER_DAY = 1440

# ---------- Review queues ----------
DEFAULT_CRAM_LIMIT = 50
