"""
auth/tokens.py -- Bearer token issue and verification (JWT via python-jose).

Security design decisions:
  JWT: HS256, signed with the secret handed to TokenService at construction.
       Claims are sub (username), role, iat and exp as integer epoch seconds.
       The service holds no per-token state: verification is a function of the
       token and the secret only.

  Verification order: structure, then signature, then claims, then expiry.
       The JWS layer is used directly (jws.verify) so the signature is checked
       before any claim is trusted, and so expiry is judged against our own
       injectable clock rather than the library's.

  Failures raise a subclass of AuthError. The access layer converts every one
       of them into "no identity"; route handlers never see them.

Known limitation: tokens cannot be revoked. A role change or deletion takes
effect for tokens issued afterwards; earlier tokens stay valid until exp.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable

from jose import jws, jwt
from jose.exceptions import JWSError, JWTError

from auth.models import Identity, Role

_ALGORITHM = "HS256"


class AuthError(Exception):
    """Base class for token verification failures."""


class MalformedToken(AuthError):
    """The token cannot be parsed, or its claims are missing or invalid."""


class InvalidSignature(AuthError):
    """The signature does not match: tampered, or signed with another key."""


class TokenExpired(AuthError):
    """The token is past its exp claim."""


class TokenService:
    """Issues and verifies signed, time-bounded bearer tokens.

    Usage:
        tokens = TokenService(settings.secret_key, settings.token_expire_seconds)
        token = tokens.issue("alice", Role.doctor)
        identity = tokens.verify(token)
    """

    def __init__(
        self,
        secret_key: str,
        expire_seconds: int = 86400,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret_key:
            raise ValueError("TokenService requires a signing secret.")
        if expire_seconds <= 0:
            raise ValueError("expire_seconds must be positive.")
        self._secret_key = secret_key
        self.expire_seconds = expire_seconds
        self._clock = clock

    def _now(self) -> int:
        return int(self._clock())

    def issue(self, username: str, role: Role | str) -> str:
        """Return a signed token for username carrying role."""
        issued_at = self._now()
        payload = {
            "sub": username,
            "role": Role(role).value,
            "iat": issued_at,
            "exp": issued_at + self.expire_seconds,
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> Identity:
        """Return the Identity carried by token, or raise an AuthError subclass.

        A token is still valid at exactly its exp second and expired one
        second later.
        """
        if not isinstance(token, str) or not token:
            raise MalformedToken("Token is empty.")
        try:
            jwt.get_unverified_header(token)
        except JWTError as exc:
            raise MalformedToken("Token structure is invalid.") from exc

        try:
            payload = jws.verify(token, self._secret_key, algorithms=[_ALGORITHM])
        except JWSError as exc:
            raise InvalidSignature("Token signature verification failed.") from exc

        try:
            claims = json.loads(payload)
            username = claims["sub"]
            role = Role(claims["role"])
            expires_at = int(claims["exp"])
        except (ValueError, KeyError, TypeError) as exc:
            raise MalformedToken("Token claims are invalid.") from exc
        if not isinstance(username, str) or not username:
            raise MalformedToken("Token subject is invalid.")

        if self._now() > expires_at:
            raise TokenExpired("Token has expired.")
        return Identity(username=username, role=role)
