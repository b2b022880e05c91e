#!/usr/bin/env python3
"""
socialauth -- operator CLI for the credential service.

Usage:
  python main.py hash-password                 # prompts for the password
  echo -n 'secret' | python main.py hash-password
  python main.py issue --user-id 3f0c...-... --username alice
  python main.py verify eyJhbGciOi...

Environment variables:
  JWT_SECRET_KEY     Required for issue/verify. Same value as the API servers.
  TOKEN_TTL_SECONDS  Credential lifetime for issue (default 259200 = 72 hours).
  BCRYPT_ROUNDS      bcrypt cost factor for hash-password (default 12).
"""

import argparse
import getpass
import json
import logging
import sys
from dataclasses import asdict
from typing import Optional

from pydantic import ValidationError

from auth.config import AuthConfig
from auth.errors import PasswordPolicyError, SigningConfigurationError, VerificationError
from auth.models import User
from auth.passwords import PasswordAuthenticator
from auth.tokens import CredentialIssuer, CredentialVerifier
from core.config import load_settings

logger = logging.getLogger("socialauth.cli")


def _read_password() -> str:
    """Prompt on a terminal; otherwise read one line from stdin."""
    if sys.stdin.isatty():
        first = getpass.getpass("Password: ")
        if getpass.getpass("Repeat password: ") != first:
            print("  [!] Passwords do not match.", file=sys.stderr)
            sys.exit(1)
        return first
    return sys.stdin.readline().rstrip("\n")


def _cmd_hash_password(args: argparse.Namespace) -> int:
    settings = load_settings()
    rounds = args.rounds or settings.bcrypt_rounds
    try:
        print(PasswordAuthenticator(rounds=rounds).hash(_read_password()))
    except PasswordPolicyError as e:
        print(f"  [!] {e}", file=sys.stderr)
        return 1
    return 0


def _cmd_issue(args: argparse.Namespace) -> int:
    config = AuthConfig.from_settings(load_settings())
    try:
        token = CredentialIssuer(config).issue(User(id=args.user_id, username=args.username))
    except ValidationError:
        print("  [!] --user-id must be a UUID and --username must not be empty.", file=sys.stderr)
        return 1
    print(token)
    return 0


def _cmd_verify(args: argparse.Namespace) -> int:
    config = AuthConfig.from_settings(load_settings())
    try:
        principal = CredentialVerifier(config).verify(args.token.strip())
    except VerificationError as e:
        print(f"  [!] {type(e).__name__}: {e}", file=sys.stderr)
        return 1
    print(json.dumps(asdict(principal), indent=2))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="socialauth",
        description="Hash passwords, issue and verify bearer credentials.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py hash-password
  JWT_SECRET_KEY=... python main.py issue --user-id 3f0c8a9e-... --username alice
  JWT_SECRET_KEY=... python main.py verify "$TOKEN"
        """,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_hash = sub.add_parser("hash-password", help="Print a bcrypt hash for a password read from stdin")
    p_hash.add_argument(
        "--rounds",
        type=int,
        metavar="N",
        help="bcrypt cost factor (default: BCRYPT_ROUNDS, 12)",
    )
    p_hash.set_defaults(func=_cmd_hash_password)

    p_issue = sub.add_parser("issue", help="Issue a credential for a user without a password check")
    p_issue.add_argument("--user-id", required=True, help="User UUID")
    p_issue.add_argument("--username", required=True, help="Username (handle)")
    p_issue.set_defaults(func=_cmd_issue)

    p_verify = sub.add_parser("verify", help="Verify a credential and print its principal as JSON")
    p_verify.add_argument("token", metavar="CREDENTIAL")
    p_verify.set_defaults(func=_cmd_verify)

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s %(message)s")
    try:
        return args.func(args)
    except SigningConfigurationError as e:
        print(f"  [!] {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
