#!/usr/bin/env python3
"""
PawConnect -- command-line client for the rescue/adoption coordination platform.

Shares the persisted session with the web shell: log in here, and `uvicorn
asgi:app` started afterwards opens on your dashboard (and vice versa).

Usage:
  python main.py login admin@pawconnect.org.np
  python main.py register new@example.org --name "Sita Rai" --role adopter
  python main.py whoami
  python main.py open /dashboard/verifications
  python main.py profile --name "Sita R." --phone 9800000000
  python main.py profile --change-password
  python main.py forgot-password sita@example.org
  python main.py reset-password sita@example.org 123456
  python main.py logout

Passwords are only ever read from an interactive prompt (getpass), never
from the command line, so they stay out of shell history and the process list.

Environment variables:
  API_URL        Auth API base URL (default http://localhost:5000/api)
  API_TIMEOUT    Seconds to wait for the Auth API (default: no limit)
  STORAGE_URL    SQLAlchemy URL of the local storage database
"""

from __future__ import annotations

import argparse
import base64
import getpass
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Optional

from auth.client import AuthApiClient, AuthApiError
from auth.guards import Outcome, evaluate
from auth.landing import dashboard_link, role_label
from auth.models import VERIFIED_ROLES, Role, VerificationRequired
from auth.session import SessionManager
from auth.storage import LocalStorage, SessionStorage
from core.config import get_settings
from web.sitemap import resolve


def _read_password(prompt: str = "Password: ") -> str:
    return getpass.getpass(prompt)


def _read_document(path: Optional[str]) -> Optional[str]:
    """Return the verification document at path as a base64 data URL."""
    if not path:
        return None
    file_path = Path(path).resolve()
    if not file_path.is_file():
        raise FileNotFoundError(path)
    mime = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
    encoded = base64.b64encode(file_path.read_bytes()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


# ---------------------------------------------------------------------------
# Commands -- each returns a process exit code
# ---------------------------------------------------------------------------


def cmd_login(manager: SessionManager, client: AuthApiClient, args: argparse.Namespace) -> int:
    password = _read_password()
    if not manager.login(args.email, password):
        print("  [!] Login failed. Check your email and password, or try again later.")
        return 1
    user = manager.state.user
    print(f"  Logged in as {user.name} ({role_label(user.role)}). Dashboard: {dashboard_link(user)}")
    return 0


def cmd_register(manager: SessionManager, client: AuthApiClient, args: argparse.Namespace) -> int:
    role = Role(args.role)
    try:
        document = _read_document(args.document)
    except FileNotFoundError:
        print(f"  [!] '{args.document}' is not a readable file.")
        return 1
    if role in VERIFIED_ROLES and document is None:
        print(f"  [!] A verification document (--document) is required for {role_label(role)} accounts.")
        return 1
    password = _read_password()
    result = manager.register(
        args.email,
        password,
        args.name,
        role,
        phone=args.phone,
        organization=args.organization,
        verification_document=document,
    )
    if isinstance(result, VerificationRequired):
        print(f"  {result.message}")
        return 0
    if not result:
        print("  [!] Registration failed. The email may already be registered. Please try again.")
        return 1
    user = manager.state.user
    print(f"  Welcome, {user.name}! Dashboard: {dashboard_link(user)}")
    return 0


def cmd_logout(manager: SessionManager, client: AuthApiClient, args: argparse.Namespace) -> int:
    manager.logout()
    print("  Logged out.")
    return 0


def cmd_whoami(manager: SessionManager, client: AuthApiClient, args: argparse.Namespace) -> int:
    user = manager.state.user
    if user is None:
        print("  Not logged in.")
        return 1
    print(f"  {user.name} <{user.email}>")
    print(f"  Role:      {role_label(user.role)}")
    if user.organization:
        print(f"  Org:       {user.organization}")
    if user.phone:
        print(f"  Phone:     {user.phone}")
    print(f"  Dashboard: {dashboard_link(user)}")
    return 0


def cmd_open(manager: SessionManager, client: AuthApiClient, args: argparse.Namespace) -> int:
    """Show what the web shell would do for PATH with the current session."""
    route = resolve(args.path)
    if route is None:
        print(f"  [!] No page at {args.path}.")
        return 1
    decision = evaluate(route.guards, manager.state)
    if decision.outcome is Outcome.REDIRECT:
        print(f"  {args.path} -> redirect to {decision.location}")
        return 2
    if decision.outcome is Outcome.PENDING:
        print(f"  {args.path} -> pending")
        return 2
    print(f"  {args.path} -> {route.title}")
    return 0


def cmd_profile(manager: SessionManager, client: AuthApiClient, args: argparse.Namespace) -> int:
    changes = {
        key: value
        for key, value in {
            "name": args.name,
            "phone": args.phone,
            "organization": args.organization,
            "avatar": args.avatar,
        }.items()
        if value
    }
    if args.change_password:
        changes["current_password"] = _read_password("Current password: ")
        new_password = _read_password("New password: ")
        if new_password != _read_password("Confirm new password: "):
            print("  [!] New passwords do not match.")
            return 1
        changes["new_password"] = new_password
    try:
        user = manager.update_profile(**changes) if changes else manager.refresh_profile()
    except AuthApiError as e:
        print(f"  [!] {e.message}")
        return 1
    print(f"  Profile saved: {user.name} <{user.email}>")
    return 0


def cmd_forgot_password(manager: SessionManager, client: AuthApiClient, args: argparse.Namespace) -> int:
    try:
        print(f"  {client.forgot_password(args.email)}")
    except AuthApiError as e:
        print(f"  [!] {e.message}")
        return 1
    return 0


def cmd_reset_password(manager: SessionManager, client: AuthApiClient, args: argparse.Namespace) -> int:
    new_password = _read_password("New password: ")
    if new_password != _read_password("Confirm new password: "):
        print("  [!] New passwords do not match.")
        return 1
    try:
        print(f"  {client.reset_password(args.email, args.otp, new_password)}")
    except AuthApiError as e:
        print(f"  [!] {e.message}")
        return 1
    return 0


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pawconnect",
        description="PawConnect rescue and adoption client.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log session activity to stderr")
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    p = sub.add_parser("login", help="Log in and remember the session")
    p.add_argument("email")
    p.set_defaults(func=cmd_login)

    p = sub.add_parser("register", help="Create an account")
    p.add_argument("email")
    p.add_argument("--name", required=True)
    p.add_argument(
        "--role",
        choices=[r.value for r in (Role.ADOPTER, Role.VOLUNTEER, Role.VETERINARIAN, Role.NGO_ADMIN)],
        default=Role.ADOPTER.value,
    )
    p.add_argument("--phone")
    p.add_argument("--organization")
    p.add_argument("--document", metavar="PATH", help="Verification document for NGO admins and veterinarians")
    p.set_defaults(func=cmd_register)

    p = sub.add_parser("logout", help="Forget the stored session")
    p.set_defaults(func=cmd_logout)

    p = sub.add_parser("whoami", help="Show the current identity")
    p.set_defaults(func=cmd_whoami)

    p = sub.add_parser("open", help="Check whether a page is reachable with the current session")
    p.add_argument("path", metavar="PATH")
    p.set_defaults(func=cmd_open)

    p = sub.add_parser("profile", help="Show or update your profile")
    p.add_argument("--name")
    p.add_argument("--phone")
    p.add_argument("--organization")
    p.add_argument("--avatar", metavar="URL")
    p.add_argument("--change-password", action="store_true")
    p.set_defaults(func=cmd_profile)

    p = sub.add_parser("forgot-password", help="Email a password reset OTP")
    p.add_argument("email")
    p.set_defaults(func=cmd_forgot_password)

    p = sub.add_parser("reset-password", help="Reset your password with an emailed OTP")
    p.add_argument("email")
    p.add_argument("otp")
    p.set_defaults(func=cmd_reset_password)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)-5s %(name)s %(message)s",
    )

    settings = get_settings()
    storage = LocalStorage(settings.storage_url)
    client = AuthApiClient(settings.api_url, timeout=settings.api_timeout)
    manager = SessionManager(client, SessionStorage(storage))
    try:
        manager.init()
        return args.func(manager, client, args)
    finally:
        client.close()
        storage.close()


if __name__ == "__main__":
    sys.exit(main())
