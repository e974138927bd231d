"""
Room password digests.

A room is protected by the SHA-256 hex digest of its password. Digest equality
is the only join check: there is no salt and no per-user secret.
"""

import hashlib
import hmac


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def digest_matches(password_hash: str, expected_hash: str) -> bool:
    return hmac.compare_digest(password_hash.lower(), expected_hash.lower())
