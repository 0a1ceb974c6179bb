"""
Shared client instances — Redis.

redis.from_url() does not connect until the first command, so importing this
module is always safe (even when Redis is unreachable during tests).
"""
import redis

from leadtree.config import REDIS_URL

# ── Redis ─────────────────────────────────────────────────────────────────────
# Redirect locks.
redis_client = redis.from_url(REDIS_URL, decode_responses=True)

# RQ pickles job payloads and needs raw bytes back, so it gets its own
# connection without decode_responses.
rq_connection = redis.from_url(REDIS_URL)
