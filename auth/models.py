"""
auth/models.py -- Domain types for authentication and access control.

Pattern: Data class (pure data containers). Stores, services and routes do the
work; these types only own shape and construction-time validation.

Role and the policy variants are closed types: an unknown role string or an
empty allowed-roles set fails when the policy object is built (i.e. when the
route module is imported), never silently at request time.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class Role(str, Enum):
    admin = "admin"
    doctor = "doctor"
    viewer = "viewer"


def _to_roles(roles: Iterable[Role | str]) -> frozenset[Role]:
    # Role(value) raises ValueError for anything outside the enum.
    return frozenset(Role(r) for r in roles)


@dataclass(frozen=True)
class Identity:
    """The caller identity decoded from a verified token."""

    username: str
    role: Role


@dataclass(frozen=True)
class Credential:
    """A salted one-way password digest. The plaintext is never kept."""

    hash: str
    salt: str


@dataclass
class User:
    """A directory record. username is the immutable primary key.

    credential is set once at creation; there is no rotation path.
    """

    username: str
    name: str
    role: Role
    credential: Credential
    created_at: str | None = None

    def summary(self) -> dict:
        return {"name": self.name, "role": self.role.value}

    def public(self) -> dict:
        return {"name": self.name, "username": self.username, "role": self.role.value}


# ---------------------------------------------------------------------------
# Access policies
#
# A route declares at most one of these. Routes without a policy are open:
# the decode stage still runs for them but nothing checks its result.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RoleSet:
    """Caller's role must be one of ``allowed``."""

    allowed: frozenset[Role]

    def __post_init__(self) -> None:
        roles = _to_roles(self.allowed)
        if not roles:
            raise ValueError("RoleSet policy needs at least one role.")
        object.__setattr__(self, "allowed", roles)

    @classmethod
    def of(cls, *roles: Role | str) -> RoleSet:
        return cls(frozenset(roles))


@dataclass(frozen=True)
class SelfOnly:
    """Caller must be the subject named in the path, or hold an override role.

    Overrides are additive: an empty override set means owner-only access,
    whatever the caller's role.
    """

    override: frozenset[Role] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "override", _to_roles(self.override))

    @classmethod
    def of(cls, *override: Role | str) -> SelfOnly:
        return cls(frozenset(override))


Policy = Union[RoleSet, SelfOnly]
