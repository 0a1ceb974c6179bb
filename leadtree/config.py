"""
Centralized configuration — all env vars and lead-tree constants.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Redis (locks + RQ queue) ──────────────────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# ── PostgreSQL ────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# ── Slack notifications ──────────────────────────────────────────────────────
SLACK_WEBHOOK_URL = os.getenv('SLACK_WEBHOOK_URL')

# ── Side effects ─────────────────────────────────────────────────────────────
# Run event/reward jobs in-process instead of enqueueing them (local dev)
LEAD_EVENTS_INLINE = os.getenv('LEAD_EVENTS_INLINE', '').lower() in ('1', 'true', 'yes')
INVITATION_REWARD_POINTS = int(os.getenv('INVITATION_REWARD_POINTS', '10'))

# ── Redirect ─────────────────────────────────────────────────────────────────
REDIRECT_STATUS = os.getenv('REDIRECT_STATUS', 'redirected')
REDIRECT_LOCK_TIMEOUT = int(os.getenv('REDIRECT_LOCK_TIMEOUT', '10'))   # lock expiry, seconds
REDIRECT_LOCK_WAIT = int(os.getenv('REDIRECT_LOCK_WAIT', '5'))          # max wait to acquire

# ── Lead tree ────────────────────────────────────────────────────────────────
# Recursion bound for ancestor/descendant queries; stops runaway CTEs on cyclic edges
MAX_TREE_DEPTH = int(os.getenv('MAX_TREE_DEPTH', '100'))
LEAD_HASH_LENGTH = int(os.getenv('LEAD_HASH_LENGTH', '8'))

# Display tags handed out to new leads
LEAD_COLORS = [
    '#005c69',
    '#f65c4e',
    '#3c4858',
    '#f2a541',
    '#5b8e7d',
    '#8c5e96',
    '#2f6fb3',
    '#c9474f',
]

# ── Event types ──────────────────────────────────────────────────────────────
EVENT_VIEWED_PROFILE = 'viewed-profile'
EVENT_INVITED_FRIEND = 'invited-friend'

EVENT_TYPES = [
    EVENT_VIEWED_PROFILE,
    EVENT_INVITED_FRIEND,
]

REWARD_KIND_INVITATION = 'invitation'
