"""
tests/conftest.py -- Shared test fixtures for socialauth.

This module provides:
  - auth_config / passwords / clock: the building blocks for unit tests of the
    issuer, verifier and password authenticator
  - user_store / authenticator: an in-memory UserStore wired into an
    Authenticator
  - api_client: TestClient over create_app() with an isolated database and a
    registered user "alice"

Design: the API fixture uses a named shared-memory SQLite URI (not plain
:memory:) because TestClient runs sync work in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

bcrypt runs with 4 rounds (its minimum) everywhere so the suite stays fast.
"""

from __future__ import annotations

from collections.abc import Generator
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import create_app
from auth.config import AuthConfig
from auth.passwords import PasswordAuthenticator
from auth.service import Authenticator
from auth.store import UserStore
from auth.tokens import CredentialIssuer, CredentialVerifier
from core.config import Settings

TEST_SECRET = "test-signing-secret-0123456789abcdef"
ALICE_PASSWORD = "correcthorsebatterystaple"


class FixedClock:
    """Callable clock pinned to a settable instant."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set_unix(self, seconds: int) -> None:
        self.now = datetime.fromtimestamp(seconds, tz=timezone.utc)

    def advance(self, seconds: int) -> None:
        self.now = self.now + timedelta(seconds=seconds)


# ---------------------------------------------------------------------------
# Unit-level building blocks
# ---------------------------------------------------------------------------


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig(secret=TEST_SECRET.encode(), ttl=timedelta(hours=72))


@pytest.fixture(scope="session")
def passwords() -> PasswordAuthenticator:
    return PasswordAuthenticator(rounds=4)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def issuer(auth_config: AuthConfig, clock: FixedClock) -> CredentialIssuer:
    return CredentialIssuer(auth_config, clock=clock)


@pytest.fixture
def verifier(auth_config: AuthConfig, clock: FixedClock) -> CredentialVerifier:
    return CredentialVerifier(auth_config, clock=clock)


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def authenticator(
    user_store: UserStore,
    passwords: PasswordAuthenticator,
    issuer: CredentialIssuer,
    verifier: CredentialVerifier,
) -> Authenticator:
    return Authenticator(store=user_store, passwords=passwords, issuer=issuer, verifier=verifier)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def make_test_settings(db_suffix: str, **overrides) -> Settings:
    """Settings for an isolated named shared-memory database."""
    values = {
        "jwt_secret_key": TEST_SECRET,
        "database_url": f"sqlite:///file:test_auth_{db_suffix}?mode=memory&cache=shared&uri=true",
        "bcrypt_rounds": 4,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
def _reset_rate_limits() -> None:
    """Every test starts with empty rate-limit counters."""
    limiter.reset()


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, FastAPI], None, None]:
    """Yield (client, app) with a registered, active user "alice".

    One app and database per test module; the module name keeps databases
    from different modules apart.
    """
    app = create_app(make_test_settings(request.module.__name__.replace(".", "_")))
    with TestClient(app, raise_server_exceptions=True) as client:
        app.state.authenticator.register("alice", ALICE_PASSWORD, "Alice")
        yield client, app
