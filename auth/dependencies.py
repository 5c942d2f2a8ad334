"""
auth/dependencies.py -- FastAPI Depends() adapter for route access policies.

The decode middleware in api/main.py stores the caller (or None) on
request.state.identity for every request. require(policy) builds a dependency
that feeds that identity, the declared policy and the path's subject into
auth.access.evaluate() and turns the decision into an HTTP outcome:

  unauthorized -> 401 {"status": 401, "error": ...}
  forbidden    -> 403 {"status": 403, "error": ...}
  allow        -> the Identity, passed to the handler

Usage:
    @router.get("/users/{username}")
    async def route(caller: Identity = Depends(require(SelfOnly.of(Role.admin)))): ...

Layer rule: may import from fastapi (this module is part of the FastAPI
dependency injection system); no imports from api/ or core/.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import HTTPException, Request

from auth.access import Decision, evaluate
from auth.models import Identity, Policy


def current_identity(request: Request) -> Identity | None:
    """Return the identity attached by the decode stage, or None."""
    return getattr(request.state, "identity", None)


def require(policy: Policy, subject_param: str = "username") -> Callable[[Request], Identity]:
    """Build a dependency enforcing policy. subject_param names the path parameter
    a SelfOnly policy compares against the caller's username."""

    def dependency(request: Request) -> Identity:
        identity = current_identity(request)
        decision = evaluate(identity, policy, request.path_params.get(subject_param))
        if decision is Decision.unauthorized:
            raise HTTPException(
                status_code=401,
                detail={"status": 401, "error": "Authentication required."},
            )
        if decision is Decision.forbidden:
            raise HTTPException(
                status_code=403,
                detail={"status": 403, "error": "You are not allowed to access this resource."},
            )
        return identity

    return dependency
