"""Constants for reputation-weighted review pools."""

# Vote admission
MIN_SCORE = 0
MAX_SCORE = 100
MIN_REPUTATION_THRESHOLD = 10
MAX_FEEDBACK_LEN = 500
MAX_FEEDBACK_ENTRIES = 100  # Per-pool feedback journal capacity

# Quorum required before voting can be closed (fixed, not the pool's required_votes)
MIN_VOTES_REQUIRED = 3

# Windows, in ticks after a pool's end_tick
DISPUTE_WINDOW = 144
RESOLUTION_GRACE = 144  # Extra wait before non-owners may force resolution

MAX_REASON_LEN = 500
DEFAULT_VOTING_FEE = 100

# Event history retained by the in-memory bus
MAX_EVENT_HISTORY = 1000
