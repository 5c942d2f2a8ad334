"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper. The directory and
route code never touch SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  username is the primary key, so uniqueness is enforced by the database:
  a duplicate insert raises sqlalchemy.exc.IntegrityError even when two
  requests race past the directory's existence check. SQLite's default
  BINARY collation keeps the key case-sensitive.

DB path: auth/hospital_records.db unless DATABASE_URL says otherwise.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine

from auth.models import Credential, Role, User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("username", String(255), primary_key=True),
    Column("name", Text, nullable=False),
    Column("role", String(30), nullable=False),
    Column("password_hash", String(60), nullable=False),
    Column("password_salt", String(29), nullable=False),
    Column("created_at", String(32), nullable=False),
)

# Only these columns may change after insert. username and the credential
# pair are fixed for the lifetime of the record.
_MUTABLE_COLUMNS = frozenset({"name", "role"})


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore()
        store.create_user(User(username="admin", name="Administrator", role=Role.admin, credential=cred))
        user = store.get_by_username("admin")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def has_users(self) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT COUNT(*) FROM users")).scalar()
        return (result or 0) > 0

    def create_user(self, user: User) -> None:
        """Insert a new user.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        """
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    username=user.username,
                    name=user.name,
                    role=Role(user.role).value,
                    password_hash=user.credential.hash,
                    password_salt=user.credential.salt,
                    created_at=_now_iso(),
                )
            )
            conn.commit()

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all users ordered by username."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.username)).fetchall()
        return [_row_to_user(r) for r in rows]

    def update_user(self, username: str, **fields) -> bool:
        """Update mutable fields (name, role) on an existing user.

        Unknown field names raise ValueError -- column names must come from a
        fixed whitelist, never from request data. Returns True if a row was
        updated, False if username was not found.
        """
        unknown = set(fields) - _MUTABLE_COLUMNS
        if unknown:
            raise ValueError(f"Immutable or unknown user fields: {sorted(unknown)!r}")
        if not fields:
            return self.get_by_username(username) is not None
        if "role" in fields:
            fields["role"] = Role(fields["role"]).value
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.username == username).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def delete_user(self, username: str) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.username == username))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        username=row.username,
        name=row.name,
        role=Role(row.role),
        credential=Credential(hash=row.password_hash, salt=row.password_salt),
        created_at=row.created_at,
    )
