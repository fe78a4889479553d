"""Shared constants for tradeflow workflows."""

DURATION_DAYS = {
    "3_days": 3,
    "7_days": 7,
    "2_weeks": 14,
    "3_weeks": 21,
    "4_weeks": 28,
}

DEFAULT_DURATION_DAYS = 7
MAX_ACTIVE_DAYS = 28

# Key under which whole-step validation failures are reported.
STEP_ERROR_KEY = "__step__"

DEFAULT_SNAPSHOT_NAMESPACE = "tradeflow"
DEFAULT_ASSET_BUCKET = "job-photos"
