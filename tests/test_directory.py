"""Unit tests for auth/directory.py and auth/store.py.

Uses a private in-memory UserStore per test (see conftest.store).
"""

import pytest
from sqlalchemy.exc import IntegrityError

from auth.directory import Status, UserDirectory
from auth.models import Credential, Role, User
from auth.store import UserStore


def _data(**overrides) -> dict:
    data = {"name": "Alice Liddell", "username": "alice", "password": "alice-pass", "role": "viewer"}
    data.update(overrides)
    return data


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


class TestCreate:
    def test_create_and_get(self, directory: UserDirectory) -> None:
        result = directory.create_user(_data())
        assert result.status is Status.created
        assert directory.get_user("alice").data == {"name": "Alice Liddell", "username": "alice", "role": "viewer"}

    def test_password_stored_as_credential_only(self, directory: UserDirectory, store: UserStore) -> None:
        directory.create_user(_data())
        user = store.get_by_username("alice")
        assert user.credential.hash != "alice-pass"
        assert "alice-pass" not in user.credential.hash

    def test_duplicate_username_conflicts(self, directory: UserDirectory) -> None:
        directory.create_user(_data())
        result = directory.create_user(_data(name="Someone Else", password="other-pass"))
        assert result.status is Status.conflict
        # Original record untouched.
        assert directory.get_user("alice").data["name"] == "Alice Liddell"
        assert directory.authenticate("alice", "alice-pass") is not None

    def test_usernames_are_case_sensitive(self, directory: UserDirectory) -> None:
        assert directory.create_user(_data()).status is Status.created
        assert directory.create_user(_data(username="Alice")).status is Status.created

    @pytest.mark.parametrize("missing", ["name", "username", "password", "role"])
    def test_missing_field_is_invalid(self, directory: UserDirectory, missing: str) -> None:
        data = _data()
        del data[missing]
        result = directory.create_user(data)
        assert result.status is Status.invalid_input
        assert result.message == "Incomplete parameters"

    @pytest.mark.parametrize("username", ["ali ce", "alice\t", " alice", "al\nice"])
    def test_whitespace_username_is_invalid(self, directory: UserDirectory, username: str) -> None:
        assert directory.create_user(_data(username=username)).status is Status.invalid_input

    def test_empty_values_are_invalid(self, directory: UserDirectory) -> None:
        assert directory.create_user(_data(name="")).status is Status.invalid_input
        assert directory.create_user(_data(password="")).status is Status.invalid_input

    def test_unknown_role_is_invalid(self, directory: UserDirectory) -> None:
        result = directory.create_user(_data(role="surgeon"))
        assert result.status is Status.invalid_input
        assert directory.get_user("alice").status is Status.not_found

    def test_overlong_password_is_invalid(self, directory: UserDirectory) -> None:
        assert directory.create_user(_data(password="x" * 73)).status is Status.invalid_input

    def test_non_dict_is_invalid(self, directory: UserDirectory) -> None:
        assert directory.create_user(["alice"]).status is Status.invalid_input


# ---------------------------------------------------------------------------
# read
# ---------------------------------------------------------------------------


class TestRead:
    def test_get_unknown_user(self, directory: UserDirectory) -> None:
        assert directory.get_user("nobody").status is Status.not_found

    def test_list_returns_name_and_role_only(self, directory: UserDirectory) -> None:
        directory.create_user(_data())
        directory.create_user(_data(username="drbob", name="Dr Bob", role="doctor"))
        assert directory.list_users() == [
            {"name": "Alice Liddell", "role": "viewer"},
            {"name": "Dr Bob", "role": "doctor"},
        ]

    def test_list_empty(self, directory: UserDirectory) -> None:
        assert directory.list_users() == []


# ---------------------------------------------------------------------------
# update / delete
# ---------------------------------------------------------------------------


class TestUpdate:
    def test_update_name_and_role(self, directory: UserDirectory) -> None:
        directory.create_user(_data())
        result = directory.update_user("alice", {"name": "Alice L.", "role": "doctor"})
        assert result.status is Status.updated
        assert result.data == {"name": "Alice L.", "username": "alice", "role": "doctor"}

    def test_unknown_fields_ignored(self, directory: UserDirectory) -> None:
        directory.create_user(_data())
        result = directory.update_user("alice", {"username": "mallory", "password": "new", "nickname": "al"})
        assert result.status is Status.updated
        assert result.data["username"] == "alice"
        assert directory.authenticate("alice", "alice-pass") is not None
        assert directory.get_user("mallory").status is Status.not_found

    def test_update_unknown_user(self, directory: UserDirectory) -> None:
        assert directory.update_user("nobody", {"name": "X"}).status is Status.not_found

    def test_update_invalid_role(self, directory: UserDirectory) -> None:
        directory.create_user(_data())
        assert directory.update_user("alice", {"role": "surgeon"}).status is Status.invalid_input
        assert directory.get_user("alice").data["role"] == "viewer"

    def test_update_empty_name(self, directory: UserDirectory) -> None:
        directory.create_user(_data())
        assert directory.update_user("alice", {"name": "  "}).status is Status.invalid_input


class TestDelete:
    def test_delete_is_permanent(self, directory: UserDirectory) -> None:
        directory.create_user(_data())
        assert directory.delete_user("alice").status is Status.deleted
        assert directory.get_user("alice").status is Status.not_found
        assert directory.authenticate("alice", "alice-pass") is None

    def test_delete_unknown_user(self, directory: UserDirectory) -> None:
        assert directory.delete_user("nobody").status is Status.not_found

    def test_username_reusable_after_delete(self, directory: UserDirectory) -> None:
        directory.create_user(_data())
        directory.delete_user("alice")
        assert directory.create_user(_data()).status is Status.created


# ---------------------------------------------------------------------------
# authenticate
# ---------------------------------------------------------------------------


class TestAuthenticate:
    def test_correct_password(self, directory: UserDirectory) -> None:
        directory.create_user(_data())
        user = directory.authenticate("alice", "alice-pass")
        assert user is not None
        assert user.role is Role.viewer

    def test_wrong_password(self, directory: UserDirectory) -> None:
        directory.create_user(_data())
        assert directory.authenticate("alice", "alice-pasS") is None

    def test_unknown_user(self, directory: UserDirectory) -> None:
        assert directory.authenticate("nobody", "whatever") is None


# ---------------------------------------------------------------------------
# store guards
# ---------------------------------------------------------------------------


class TestStore:
    def _user(self, username: str = "alice") -> User:
        return User(username=username, name="A", role=Role.viewer, credential=Credential(hash="h", salt="s"))

    def test_duplicate_insert_raises_integrity_error(self, store: UserStore) -> None:
        store.create_user(self._user())
        with pytest.raises(IntegrityError):
            store.create_user(self._user())

    def test_update_rejects_immutable_columns(self, store: UserStore) -> None:
        store.create_user(self._user())
        with pytest.raises(ValueError):
            store.update_user("alice", password_hash="x")

    def test_ping_and_has_users(self, store: UserStore) -> None:
        assert store.ping() is True
        assert store.has_users() is False
        store.create_user(self._user())
        assert store.has_users() is True
