"""
Identifier helpers — UUIDs, shareable lead hashes, display colours.
"""
import hashlib
import random
import uuid

from leadtree.config import LEAD_HASH_LENGTH, LEAD_COLORS

_ALPHABET = '0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ'


def new_id() -> str:
    return str(uuid.uuid4())


def short_hash(seed: str, length: int = None) -> str:
    """
    Short, URL-safe code derived from a seed string.

    SHA-256 of the seed rendered in base62 and truncated. Seeded from a fresh
    UUID, 8 characters give ~47 bits, enough to treat collisions as negligible.
    """
    length = length or LEAD_HASH_LENGTH
    n = int.from_bytes(hashlib.sha256(seed.encode()).digest(), 'big')
    chars = []
    while n and len(chars) < length:
        n, rem = divmod(n, len(_ALPHABET))
        chars.append(_ALPHABET[rem])
    return ''.join(chars).rjust(length, '0')


def new_hash() -> str:
    return short_hash(new_id())


def random_color() -> str:
    return random.choice(LEAD_COLORS)
