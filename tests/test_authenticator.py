"""Unit tests for auth/service.py -- Authenticator and bearer header parsing.

Covers:
- the register -> login -> authorize scenario end to end
- identical InvalidCredentials for unknown user and wrong password
- bcrypt runs even when the username is unknown (timing equalization)
- deactivated users cannot log in, but their issued credentials stay valid
- Authorization header parsing: missing, wrong scheme, extra parts, casing
- registration: hashing, display-name default, duplicate usernames
"""

import logging
from unittest.mock import patch

import pytest

from auth.errors import (
    AuthError,
    InvalidCredentials,
    MalformedCredential,
    MissingAuthorization,
    PasswordPolicyError,
    UsernameTaken,
)
from auth.models import User
from auth.service import Authenticator, authorize_headers, parse_bearer

PASSWORD = "correcthorsebatterystaple"


@pytest.fixture
def alice(authenticator: Authenticator) -> User:
    return authenticator.register("alice", PASSWORD)


class TestEndToEnd:
    def test_login_then_authorize(self, authenticator: Authenticator, alice: User) -> None:
        token = authenticator.login("alice", PASSWORD)
        principal = authenticator.authorize({"Authorization": f"Bearer {token}"})
        assert principal.username == "alice"
        assert principal.user_id == alice.id

    def test_wrong_password(self, authenticator: Authenticator, alice: User) -> None:
        with pytest.raises(InvalidCredentials):
            authenticator.login("alice", "wrongpass")

    def test_garbage_credential(self, authenticator: Authenticator, alice: User) -> None:
        with pytest.raises(MalformedCredential):
            authenticator.authorize({"Authorization": "Bearer garbage"})

    def test_credential_expires(self, authenticator: Authenticator, alice: User, clock) -> None:
        token = authenticator.login("alice", PASSWORD)
        clock.advance(72 * 3600)
        with pytest.raises(AuthError):
            authenticator.authorize({"Authorization": f"Bearer {token}"})


class TestLogin:
    def test_unknown_user_and_wrong_password_look_the_same(self, authenticator: Authenticator, alice: User) -> None:
        with pytest.raises(InvalidCredentials) as unknown:
            authenticator.login("bob", PASSWORD)
        with pytest.raises(InvalidCredentials) as wrong:
            authenticator.login("alice", "wrongpass")
        assert str(unknown.value) == str(wrong.value)
        assert unknown.value.code == wrong.value.code == "bad_credentials"

    def test_unknown_user_still_runs_bcrypt(self, authenticator: Authenticator) -> None:
        with patch.object(authenticator.passwords, "equalize", wraps=authenticator.passwords.equalize) as spy:
            with pytest.raises(InvalidCredentials):
                authenticator.login("nobody", PASSWORD)
        spy.assert_called_once_with(PASSWORD)

    def test_username_is_case_sensitive(self, authenticator: Authenticator, alice: User) -> None:
        with pytest.raises(InvalidCredentials):
            authenticator.login("Alice", PASSWORD)

    def test_inactive_user_cannot_log_in(self, authenticator: Authenticator, alice: User) -> None:
        authenticator.store.set_active(alice.id, False)
        with pytest.raises(InvalidCredentials):
            authenticator.login("alice", PASSWORD)

    def test_credential_outlives_deactivation(self, authenticator: Authenticator, alice: User) -> None:
        token = authenticator.login("alice", PASSWORD)
        authenticator.store.set_active(alice.id, False)
        principal = authenticator.authorize({"Authorization": f"Bearer {token}"})
        assert principal.user_id == alice.id

    def test_authenticate_returns_user(self, authenticator: Authenticator, alice: User) -> None:
        user = authenticator.authenticate("alice", PASSWORD)
        assert user.id == alice.id

    def test_login_issues_through_the_facade(self, authenticator: Authenticator, alice: User) -> None:
        with patch.object(authenticator, "issue", wraps=authenticator.issue) as spy:
            token = authenticator.login("alice", PASSWORD)
        spy.assert_called_once()
        assert spy.call_args.args[0].id == alice.id
        assert authenticator.verifier.verify(token).user_id == alice.id

    def test_issue_logs_the_user(self, authenticator: Authenticator, alice: User, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="socialauth.auth"):
            token = authenticator.issue(alice)
        assert "Issued credential for 'alice'" in caplog.text
        assert token not in caplog.text


class TestRegister:
    def test_register_hashes_password(self, authenticator: Authenticator, alice: User) -> None:
        assert alice.hashed_password != PASSWORD
        assert authenticator.passwords.verify(PASSWORD, alice.hashed_password)

    def test_display_name_defaults_to_username(self, alice: User) -> None:
        assert alice.display_name == "alice"

    def test_display_name_kept(self, authenticator: Authenticator) -> None:
        user = authenticator.register("bob", PASSWORD, "Bob B.")
        assert user.display_name == "Bob B."

    def test_duplicate_username(self, authenticator: Authenticator, alice: User) -> None:
        with pytest.raises(UsernameTaken):
            authenticator.register("alice", "another-password")

    def test_empty_password_refused(self, authenticator: Authenticator) -> None:
        with pytest.raises(PasswordPolicyError):
            authenticator.register("carol", "")
        assert authenticator.store.get_by_username("carol") is None

    def test_ids_are_uuids(self, alice: User) -> None:
        assert len(alice.id) == 36
        assert alice.id.count("-") == 4


class TestBearerParsing:
    def test_extracts_credential(self) -> None:
        assert parse_bearer("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_scheme_is_case_insensitive(self) -> None:
        assert parse_bearer("bearer abc.def.ghi") == "abc.def.ghi"
        assert parse_bearer("BEARER abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize(
        "value",
        [None, "", "Bearer", "Bearer ", "Basic dXNlcjpwYXNz", "abc.def.ghi", "Bearer a b", "Bearer  abc"],
    )
    def test_rejects_bad_header(self, value) -> None:
        with pytest.raises(MissingAuthorization):
            parse_bearer(value)

    def test_missing_header(self, verifier) -> None:
        with pytest.raises(MissingAuthorization):
            authorize_headers(verifier, {})

    def test_lowercase_header_key(self, issuer, verifier) -> None:
        token = issuer.issue(User(id="3f0c8a9e-6a8b-4a39-9d8e-2a4d2f0b7c11", username="alice"))
        assert authorize_headers(verifier, {"authorization": f"Bearer {token}"}).username == "alice"
