"""
auth/directory.py -- User Directory: validated CRUD over UserStore.

Every domain failure comes back as a Result, never as an exception, so the
route layer can map Status to an HTTP code 1:1 without try/except. Storage
errors other than a duplicate key still propagate -- they are bugs or outages,
not outcomes.

Login (authenticate) also lives here because it needs both the store and the
credential functions. It always runs bcrypt, against a dummy credential when
the username is unknown, so response time does not reveal which usernames
exist.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy.exc import IntegrityError

from auth.credentials import DEFAULT_ROUNDS, MAX_PASSWORD_BYTES, create_credential, verify_credential
from auth.models import Role, User
from auth.store import UserStore

logger = logging.getLogger("hospitalrecords.directory")

_REQUIRED_FIELDS = ("name", "username", "password", "role")
_MUTABLE_FIELDS = ("name", "role")


class Status(str, Enum):
    ok = "ok"
    created = "created"
    updated = "updated"
    deleted = "deleted"
    not_found = "not_found"
    conflict = "conflict"
    invalid_input = "invalid_input"


@dataclass(frozen=True)
class Result:
    status: Status
    data: Any = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status in (Status.ok, Status.created, Status.updated, Status.deleted)


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _has_whitespace(value: str) -> bool:
    return any(ch.isspace() for ch in value)


def _parse_role(value: Any) -> Role | None:
    try:
        return Role(value)
    except ValueError:
        return None


class UserDirectory:
    """Manages user records: list, get, create, update, delete, authenticate."""

    def __init__(self, store: UserStore, bcrypt_rounds: int = DEFAULT_ROUNDS) -> None:
        self.store = store
        self.bcrypt_rounds = bcrypt_rounds
        # Computed once so the first unknown-username login is not measurably
        # faster than later ones.
        self._dummy = create_credential("hospitalrecords_timing_dummy", rounds=bcrypt_rounds)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_users(self) -> list[dict]:
        """Return the non-sensitive {name, role} projection of every user."""
        return [u.summary() for u in self.store.list_users()]

    def get_user(self, username: str) -> Result:
        user = self.store.get_by_username(username)
        if user is None:
            return Result(Status.not_found, message="User not found")
        return Result(Status.ok, data=user.public())

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_user(self, data: dict) -> Result:
        """Validate data and store a new user with a fresh credential.

        data must carry non-empty name, username, password and role; username
        may not contain whitespace and role must be one of Role.
        """
        if not isinstance(data, dict) or not all(_is_text(data.get(f)) for f in _REQUIRED_FIELDS):
            return Result(Status.invalid_input, message="Incomplete parameters")
        username = data["username"]
        if _has_whitespace(username):
            return Result(Status.invalid_input, message="Incomplete parameters")
        role = _parse_role(data["role"])
        if role is None:
            return Result(Status.invalid_input, message=f"Unknown role: {data['role']}")
        if len(data["password"].encode("utf-8")) > MAX_PASSWORD_BYTES:
            return Result(Status.invalid_input, message=f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        if self.store.get_by_username(username) is not None:
            return Result(Status.conflict, message="User already exists")

        user = User(
            username=username,
            name=data["name"],
            role=role,
            credential=create_credential(data["password"], rounds=self.bcrypt_rounds),
        )
        try:
            self.store.create_user(user)
        except IntegrityError:
            # Lost a race against a concurrent create of the same username.
            return Result(Status.conflict, message="User already exists")
        logger.info("User created: %s (%s)", username, role.value)
        return Result(Status.created, data=user.public(), message="User created")

    def update_user(self, username: str, patch: dict) -> Result:
        """Apply name and/or role from patch. Other keys are ignored.

        Role changes affect tokens issued from now on; tokens already issued
        keep the role they were signed with until they expire.
        """
        if self.store.get_by_username(username) is None:
            return Result(Status.not_found, message="User not found")
        if not isinstance(patch, dict):
            return Result(Status.invalid_input, message="Invalid request")

        fields: dict[str, Any] = {}
        for key in _MUTABLE_FIELDS:
            if key not in patch:
                continue
            value = patch[key]
            if key == "role":
                value = _parse_role(value)
                if value is None:
                    return Result(Status.invalid_input, message=f"Unknown role: {patch['role']}")
            elif not _is_text(value):
                return Result(Status.invalid_input, message="Incomplete parameters")
            fields[key] = value

        if not self.store.update_user(username, **fields):
            # Deleted between the existence check and the update.
            return Result(Status.not_found, message="User not found")
        if "role" in fields:
            logger.info("User %s role changed to %s", username, fields["role"].value)
        updated = self.store.get_by_username(username)
        if updated is None:
            return Result(Status.not_found, message="User not found")
        return Result(Status.updated, data=updated.public(), message="User updated")

    def delete_user(self, username: str) -> Result:
        if not self.store.delete_user(username):
            return Result(Status.not_found, message="User not found")
        logger.info("User deleted: %s", username)
        return Result(Status.deleted, message="User deleted")

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def authenticate(self, username: str, password: str) -> User | None:
        """Return the User if password matches, None otherwise.

        Always runs bcrypt whether or not the user exists. Do not add an early
        return before the verify call.
        """
        user = self.store.get_by_username(username)
        if user is None:
            verify_credential(password, self._dummy.hash, self._dummy.salt)
            return None
        if not verify_credential(password, user.credential.hash, user.credential.salt):
            return None
        return user
