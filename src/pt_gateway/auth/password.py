"""Password hashing with the ``bcrypt`` library (>=4.0), no passlib.

bcrypt only looks at the first 72 bytes of a password and recent releases
reject longer input outright, so both hashing and verification work on the
same 72-byte prefix.
"""

import bcrypt

_BCRYPT_ROUNDS = 12
_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_MAX_BYTES]


def hash_password(plain: str) -> str:
    """Hash a plain-text password. Returns a utf-8 hash string."""
    return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=_BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
