"""
auth/access.py -- The two stages of access control, as pure functions.

  decode_identity()  -- Authorization header -> Identity | None. Runs on every
                        request. Token failures degrade to None; they are never
                        raised past this function.
  evaluate()         -- (identity, policy, subject) -> Decision. Runs only on
                        routes that declare a policy.

Neither stage touches a request object, so both are unit-testable without an
HTTP pipeline. auth/dependencies.py and the decode middleware in api/main.py
are the thin adapters that feed them.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from enum import Enum

from auth.models import Identity, Policy, RoleSet, SelfOnly
from auth.tokens import AuthError, TokenService

logger = logging.getLogger("hospitalrecords.auth")

_BEARER_PREFIX = "bearer "


class Decision(str, Enum):
    allow = "allow"
    unauthorized = "unauthorized"
    forbidden = "forbidden"


def extract_bearer(authorization: str | None) -> str | None:
    """Return the token from an 'Authorization: Bearer <token>' value, if any."""
    if not authorization or not authorization.lower().startswith(_BEARER_PREFIX):
        return None
    token = authorization[len(_BEARER_PREFIX) :].strip()
    return token or None


def decode_identity(authorization: str | None, tokens: TokenService) -> Identity | None:
    """Decode stage: attach an identity when the header carries a valid token."""
    token = extract_bearer(authorization)
    if token is None:
        return None
    try:
        return tokens.verify(token)
    except AuthError as exc:
        # Class name only -- the token itself is a credential.
        logger.debug("Token rejected: %s", type(exc).__name__)
        return None


def evaluate(identity: Identity | None, policy: Policy, subject: str | None = None) -> Decision:
    """Authenticate stage: decide whether identity satisfies policy.

    subject is the identifying path parameter for SelfOnly policies. Owners
    always pass a SelfOnly check; other callers pass only through an override
    role.
    """
    if identity is None:
        return Decision.unauthorized
    if isinstance(policy, RoleSet):
        return Decision.allow if identity.role in policy.allowed else Decision.forbidden
    if isinstance(policy, SelfOnly):
        if subject is not None and subject == identity.username:
            return Decision.allow
        if identity.role in policy.override:
            return Decision.allow
        return Decision.forbidden
    raise TypeError(f"Unsupported access policy: {policy!r}")
