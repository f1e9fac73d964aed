"""Application-wide constants and game-balance defaults.

This module centralizes every magic number used by the drill engine so that
balancing the game never requires touching formula code. The values are
grouped into :class:`closer.balance.GameBalance`, which is what the services
actually consume.
"""

MS_PER_DAY = 24 * 60 * 60 * 1000
"""Milliseconds in one day."""

# Retention model
MIN_STAGE = 1
"""Lowest memory stage (new card)."""

MAX_STAGE = 5
"""Highest memory stage (graduated card)."""

STAGE_INTERVAL_GROWTH = 2.5
"""Factor applied to the previous interval after a correct answer."""

GRADUATED_INTERVAL_MS = 365 * MS_PER_DAY
"""Interval used once a card reaches the top stage (one year)."""

MISS_INTERVAL_MS = MS_PER_DAY // 2
"""Interval after a miss (half a day)."""

BASELINE_STRENGTH = 0.5
"""Memory strength after a miss."""

UNSEEN_STRENGTH = 0.0
"""Memory strength assumed for a card that has never been reviewed."""

STRENGTH_INCREMENT = 0.5
"""Memory strength gained per correct answer."""

MAX_STRENGTH = 10.0
"""Upper bound for memory strength."""

FAST_STAGE_JUMP = 2
"""Stages gained by a fast correct answer."""

NORMAL_STAGE_JUMP = 1
"""Stages gained by a correct answer that was not fast."""

FAST_ANSWER_MS = {"vocabulary": 2500, "grammar": 5000}
"""Response time (ms) below which a correct answer counts as fast, per card type."""

# Stage ladder
STAGE_BASE_INTERVAL_MS = MS_PER_DAY // 2
"""Base unit multiplied by the per-stage factor."""

STAGE_MULTIPLIERS = {1: 0.5, 2: 1.0, 3: 2.5, 4: 7.0, 5: 30.0}
"""Per-stage multiplier of STAGE_BASE_INTERVAL_MS."""

STAGE_LABELS = {
    1: "New",
    2: "Visiting",
    3: "Settling",
    4: "Brain asset",
    5: "Hall of fame",
}
"""Display label for each memory stage."""

# Scoring
RARITY_BASE_POINTS = {
    "COMMON": 1000,
    "UNCOMMON": 1200,
    "RARE": 1500,
    "EPIC": 2000,
    "LEGENDARY": 3000,
}
"""Base points awarded per rarity tier (at most 3x spread)."""

DIFFICULTY_RARITY = {"900": "RARE", "700": "UNCOMMON"}
"""Difficulty label to rarity. Anything else is COMMON."""

COMBO_DIVISOR = 10
"""comboMultiplier = 1 + combo / COMBO_DIVISOR."""

SPEED_BONUS_MAX = 0.5
"""Extra multiplier for answering with the whole time budget left."""

RANK_S_MIN_SCORE = 1_000_000
RANK_S_MIN_COMBO = 50
RANK_A_MIN_SCORE = 500_000
RANK_A_MIN_CORRECT_RATE = 0.9
RANK_B_MIN_SCORE = 100_000

# Survival clock
INITIAL_SURVIVAL_SEC = 30.0
"""Countdown budget at session start."""

MAX_SURVIVAL_SEC = 60.0
"""Countdown budget ceiling."""

CORRECT_ADD_SEC = 2.0
"""Seconds added for every correct answer."""

COMBO_BONUS_SEC = 3.0
"""Extra seconds granted every COMBO_BONUS_INTERVAL consecutive correct answers."""

COMBO_BONUS_INTERVAL = 5

WRONG_PENALTY_SEC = 5.0
"""Seconds removed for a wrong answer."""

SKIP_PENALTY_SEC = 3.0
"""Seconds removed for a skip or timeout."""

FEVER_ENTRY_COMBO = 15
"""Combo at which fever starts (and every multiple of it while running)."""

FEVER_DURATION_SEC = 10.0

FEVER_BAR_DURATION_MS = 1500
"""Per-question bar duration while in fever."""

RANK_TIME_TO_EDGE_SEC = {"ROOKIE": 30, "ACE": 60, "LEGEND": 120}
"""Per-question bar duration (seconds) for each survival rank."""

SPEED_STEPS = ((10, 1.5), (5, 1.2))
"""(minimum combo, bar speed multiplier), highest first."""

DOUBLE_SCORE_COMBO = 10
"""Combo from which each survival correct answer scores double."""

# Flashcard mode timeouts
QUESTION_TIMEOUT_MS = {"vocabulary": 5000, "grammar": 10000}
"""Time to answer before auto-timeout in flashcard mode, per card type."""

# Selection
WEAK_MIN_SAMPLES = 3
"""Minimum attempts before a category can be flagged as weak."""

WEAK_ACCURACY_THRESHOLD = 0.6
"""Accuracy strictly below this marks a category as weak."""

WEAK_MAX_CATEGORIES = 5
"""Maximum number of weak categories returned."""

REVIEW_FALLBACK_SIZE = 5
"""Cards served when nothing is due for review."""

DEFAULT_CATEGORY = "other"
"""Category used for answers logged without one."""

# Leaderboard and question fetch limits
RANKING_DEFAULT_LIMIT = 20
RANKING_MIN_LIMIT = 10
RANKING_MAX_LIMIT = 100

QUESTIONS_DEFAULT_LIMIT = 20
QUESTIONS_MIN_LIMIT = 10
QUESTIONS_MAX_LIMIT = 50

# Free play quota
FREE_TRIAL_DAYS = 7
"""Days after first use during which play is unlimited."""

DAILY_FREE_PLAYS = 1
"""Free plays per day once the trial period is over."""

# Word registration
VOCAB_MAX_MEANINGS = 3
"""Meanings kept per registered word; extras are dropped."""

ANONYMOUS_LEARNER_ID = "anon"
"""Learner id sent by signed-out clients. It never owns registered words."""

# Rate Limiting
ANSWER_SUBMISSION_RATE_LIMIT = "120/minute"
"""Maximum number of answer submissions allowed per minute per client."""

RUN_SUBMISSION_RATE_LIMIT = "10/minute"
"""Maximum number of run submissions allowed per minute per client."""

# Logging
DEFAULT_LOG_LEVEL = "INFO"
"""Default logging level for the application."""
