"""
Default Engine Thresholds.

Values mirror the official theory exam format (2025): 50 questions, 30
text-only and 20 picture questions, 44 correct (88%) to pass. These are
defaults only; the engine reads every threshold from EngineConfig.
"""

# ============================================================================
# Exam structure
# ============================================================================
EXAM_TOTAL_QUESTIONS = 50
EXAM_NON_VISUAL_QUESTIONS = 30
EXAM_VISUAL_QUESTIONS = 20
EXAM_PASS_PERCENTAGE = 88  # 44/50
EXAM_DURATION_SECONDS = 1800

# ============================================================================
# Weak-area analysis
# ============================================================================
WEAK_SCORE_THRESHOLD = 60.0  # average or mastery below this = weak
RECENT_HALF_WEIGHT = 1.5
OLDER_HALF_WEIGHT = 1.0
CONSISTENCY_URGENCY_CAP = 20.0
VARIANCE_DIVISOR = 10.0
IMPROVEMENT_DELTA_THRESHOLD = 10.0  # mastery points between halves
IMPROVING_URGENCY_FACTOR = 0.7
DECLINING_URGENCY_FACTOR = 1.3
DEFAULT_WEAK_MASTERY = 50.0  # used when a matched topic has no mastery value

# ============================================================================
# Recent performance
# ============================================================================
RECENT_WINDOW_DAYS = 7
RECENT_ATTEMPT_FALLBACK = 5  # last N attempts when the window is empty
RECENT_TREND_THRESHOLD = 5.0
NEW_LEARNER_TIER = 3
MIN_TIER = 1
MAX_TIER = 10
INCONSISTENT_VARIANCE = 300.0

# (minimum average, tier), checked top-down
TIER_BANDS = (
    (90.0, 9),
    (80.0, 7),
    (70.0, 5),
    (60.0, 4),
    (50.0, 3),
)
TIER_FLOOR = 2

# ============================================================================
# Exposure (anti-repetition)
# ============================================================================
MIN_DAYS_SINCE_SEEN = 7
MAX_TIMES_SHOWN = 3

# ============================================================================
# Assembly
# ============================================================================
FOCUS_TOPIC_COUNT = 3
# (maximum weak topic count, share of the exam drawn from weak topics)
WEAK_SHARE_BANDS = (
    (0, 0.0),
    (1, 0.7),
    (3, 0.6),
)
WEAK_SHARE_FLOOR = 0.5  # four or more weak topics

# ============================================================================
# Recommendation
# ============================================================================
SKIP_LIMIT = 3  # bypassed this many times = ineligible as a weak-area pick
CRITICAL_SCORE = 30.0
SEVERE_SCORE = 45.0

# ============================================================================
# Readiness (mock exam unlock)
# ============================================================================
UNLOCK_MIN_ATTEMPTS = 15
UNLOCK_MIN_AVERAGE = 75
UNLOCK_MIN_SINGLE_SCORE = 70
UNLOCK_MIN_STUDY_HOURS = 3.0
QUESTIONS_PER_STUDY_HOUR = 40  # 1.5 minutes per question
MOCK_EXAM_PASS_PERCENTAGE = 70
