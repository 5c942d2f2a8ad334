"""
auth/credentials.py -- Salted password digests (bcrypt, direct usage).

A credential is a {hash, salt} pair. The salt is a fresh bcrypt.gensalt()
value per user (16 random bytes plus the cost factor); the hash is
bcrypt.hashpw(password, salt), which is deterministic for a given salt, so
verification recomputes it and compares in constant time.

Using bcrypt directly rather than passlib: passlib's wrap-bug detection trips
over bcrypt 4.x, and bcrypt 5 raises on inputs above 72 bytes. We refuse such
passwords at creation and report them as non-matching at verification.

Stored format: salt is a 29-char bcrypt salt ("$2b$12$" plus 22 chars) and
hash is the 60-char bcrypt output. Records holding a hex digest of
password + salt with a 16-hex-char salt, as older user exports do, cannot
be verified here: verify_credential() raises ValueError on such a salt.
Those users need a fresh credential from create_credential().

Nothing in this module logs, and plaintext never leaves the call frame.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import hmac

import bcrypt

from auth.models import Credential

DEFAULT_ROUNDS = 12
MAX_PASSWORD_BYTES = 72


def create_credential(plain: str, rounds: int = DEFAULT_ROUNDS) -> Credential:
    """Hash a new password under a freshly generated salt.

    Raises ValueError for an empty password or one bcrypt cannot digest in
    full (more than 72 bytes once UTF-8 encoded).
    """
    if not plain:
        raise ValueError("Password must not be empty.")
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    salt = bcrypt.gensalt(rounds=rounds)
    digest = bcrypt.hashpw(encoded, salt)
    return Credential(hash=digest.decode("utf-8"), salt=salt.decode("utf-8"))


def verify_credential(plain: str, stored_hash: str, stored_salt: str) -> bool:
    """Return True if plain reproduces stored_hash under stored_salt.

    A wrong password is a False, never an exception. Missing inputs raise
    ValueError; a salt bcrypt cannot parse raises bcrypt's ValueError.
    """
    if plain is None or stored_hash is None or stored_salt is None:
        raise ValueError("plain, stored_hash and stored_salt are all required.")
    encoded = plain.encode("utf-8")
    if not encoded or len(encoded) > MAX_PASSWORD_BYTES:
        # create_credential() never accepts these, so they cannot match.
        return False
    digest = bcrypt.hashpw(encoded, stored_salt.encode("utf-8"))
    return hmac.compare_digest(digest, stored_hash.encode("utf-8"))
