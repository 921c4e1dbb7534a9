"""bcrypt password hashing for user accounts.

bcrypt only reads the first 72 bytes of a secret and bcrypt>=5 raises instead
of silently truncating, so both hashing and verification cut the UTF-8 encoded
password to 72 bytes themselves. A multi-byte character split at the boundary
is harmless: the same bytes are produced on every call.
"""

import bcrypt

_BCRYPT_MAX_BYTES = 72
_ROUNDS = 12


def _secret_bytes(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(_secret_bytes(plain), bcrypt.gensalt(rounds=_ROUNDS)).decode("ascii")


def verify_password(plain: str, password_hash: str) -> bool:
    """True when `plain` matches; a corrupt stored hash is a mismatch, not a 500."""
    try:
        return bcrypt.checkpw(_secret_bytes(plain), password_hash.encode("ascii"))
    except (ValueError, UnicodeEncodeError):
        return False
