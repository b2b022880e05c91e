"""Tests for main.py -- the socialauth operator CLI.

Covers:
- issue -> verify round trip with the secret taken from JWT_SECRET_KEY
- verify reports the error class on stderr and exits 1
- a missing secret exits 2 before anything is signed
- hash-password reads stdin and honours --rounds
"""

import io
import json

import pytest

from main import main

TEST_SECRET = "cli-test-signing-secret-0123456789abcdef"
USER_ID = "3f0c8a9e-6a8b-4a39-9d8e-2a4d2f0b7c11"


@pytest.fixture
def env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    monkeypatch.setenv("JWT_SECRET_KEY", TEST_SECRET)
    monkeypatch.delenv("TOKEN_TTL_SECONDS", raising=False)
    monkeypatch.delenv("BCRYPT_ROUNDS", raising=False)
    return monkeypatch


def test_issue_then_verify(env, capsys: pytest.CaptureFixture) -> None:
    assert main(["issue", "--user-id", USER_ID, "--username", "alice"]) == 0
    token = capsys.readouterr().out.strip()
    assert token.count(".") == 2

    assert main(["verify", token]) == 0
    principal = json.loads(capsys.readouterr().out)
    assert principal["user_id"] == USER_ID
    assert principal["username"] == "alice"
    assert principal["expires_at"] - principal["issued_at"] == 72 * 3600


def test_issue_respects_ttl(env, capsys: pytest.CaptureFixture) -> None:
    env.setenv("TOKEN_TTL_SECONDS", "60")
    main(["issue", "--user-id", USER_ID, "--username", "alice"])
    token = capsys.readouterr().out.strip()
    main(["verify", token])
    principal = json.loads(capsys.readouterr().out)
    assert principal["expires_at"] - principal["issued_at"] == 60


def test_issue_rejects_non_uuid(env, capsys: pytest.CaptureFixture) -> None:
    assert main(["issue", "--user-id", "42", "--username", "alice"]) == 1
    assert "UUID" in capsys.readouterr().err


def test_verify_garbage(env, capsys: pytest.CaptureFixture) -> None:
    assert main(["verify", "not-a-credential"]) == 1
    assert "MalformedCredential" in capsys.readouterr().err


def test_verify_with_other_secret(env, capsys: pytest.CaptureFixture) -> None:
    main(["issue", "--user-id", USER_ID, "--username", "alice"])
    token = capsys.readouterr().out.strip()
    env.setenv("JWT_SECRET_KEY", "a-completely-different-secret-value")
    assert main(["verify", token]) == 1
    assert "BadSignature" in capsys.readouterr().err


def test_missing_secret_exits_2(monkeypatch: pytest.MonkeyPatch, tmp_path, capsys: pytest.CaptureFixture) -> None:
    monkeypatch.chdir(tmp_path)  # no stray .env
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
    assert main(["issue", "--user-id", USER_ID, "--username", "alice"]) == 2
    assert capsys.readouterr().out == ""


def test_hash_password_from_stdin(env, capsys: pytest.CaptureFixture) -> None:
    env.setattr("sys.stdin", io.StringIO("hunter22\n"))
    assert main(["hash-password", "--rounds", "4"]) == 0
    stored = capsys.readouterr().out.strip()
    assert stored.startswith("$2b$04$")
    assert len(stored) == 60


def test_hash_password_refuses_empty(env, capsys: pytest.CaptureFixture) -> None:
    env.setattr("sys.stdin", io.StringIO("\n"))
    assert main(["hash-password", "--rounds", "4"]) == 1
    assert capsys.readouterr().out == ""
