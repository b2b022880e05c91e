"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Route and service code never touches SQL directly.

This is the user-record collaborator of the credential core: the login path
reads it through get_by_username(), protected handlers through get_by_id().
The issuer and verifier never see it.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Usernames are unique at the SQL level; create_user() surfaces a duplicate as
  sqlalchemy.exc.IntegrityError for the caller to translate.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine

from auth.models import User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),  # UUID, assigned in create_user()
    Column("username", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("display_name", String(255), nullable=False, server_default=""),
    Column("bio", Text, nullable=False, server_default=""),
    Column("qr_code_identifier", String(36), unique=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Column("is_active", Boolean, nullable=False, server_default="1"),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked by writers.

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
        store = UserStore("sqlite:///socialauth.db")
        user_id = store.create_user(User(username="alice", hashed_password=stored))
        user = store.get_by_username("alice")
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

    def create_user(self, user: User) -> str:
        """Insert a new user and return its UUID.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        """
        user_id = user.id or str(uuid.uuid4())
        now = _now_iso()
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=user_id,
                    username=user.username,
                    password_hash=user.hashed_password,
                    display_name=user.display_name or user.username,
                    bio=user.bio,
                    qr_code_identifier=user.qr_code_identifier or str(uuid.uuid4()),
                    created_at=now,
                    updated_at=now,
                    is_active=user.is_active,
                )
            )
            conn.commit()
        return user_id

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by UUID. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def set_active(self, user_id: str, active: bool) -> bool:
        """Activate or deactivate a user. Returns False if user_id was not found.

        Deactivation blocks new logins only. Credentials already issued stay
        valid until they expire.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(is_active=active, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        hashed_password=row.password_hash,
        display_name=row.display_name,
        bio=row.bio,
        qr_code_identifier=row.qr_code_identifier,
        created_at=row.created_at,
        updated_at=row.updated_at,
        is_active=bool(row.is_active),
    )
