"""
auth/landing.py -- Role Route Map and role display lookups.

Every table here is keyed by Role and checked for exhaustiveness when the
module is imported. Adding a member to Role without extending these tables
stops the process at startup with a RuntimeError naming the missing roles,
instead of silently falling through to a default at request time.

Consumers:
  - auth/guards.py: AuthRedirect target and the RouteGuard "forbidden" fallback
  - web/ and the CLI: "go to my dashboard" links and role titles
"""

from __future__ import annotations

from typing import Optional

from auth.models import Role, User

LOGIN_PATH = "/login"
HOME_PATH = "/"

_LANDING_PATHS: dict[Role, Optional[str]] = {
    Role.SUPERADMIN: "/dashboard",
    Role.NGO_ADMIN: "/dashboard",
    Role.VOLUNTEER: "/volunteer",
    Role.VETERINARIAN: "/vet",
    Role.ADOPTER: "/adopter",
    Role.PUBLIC: None,
}

_ROLE_LABELS: dict[Role, str] = {
    Role.SUPERADMIN: "Superadmin",
    Role.NGO_ADMIN: "NGO Admin",
    Role.VOLUNTEER: "Volunteer",
    Role.VETERINARIAN: "Veterinarian",
    Role.ADOPTER: "Adopter",
    Role.PUBLIC: "User",
}

_DASHBOARD_LABELS: dict[Role, Optional[str]] = {
    Role.SUPERADMIN: "Admin Dashboard",
    Role.NGO_ADMIN: "NGO Dashboard",
    Role.VOLUNTEER: "Volunteer Dashboard",
    Role.VETERINARIAN: "Vet Dashboard",
    Role.ADOPTER: "My Applications",
    Role.PUBLIC: None,
}


def _check_exhaustive(table: dict, name: str) -> None:
    missing = set(Role) - set(table)
    if missing:
        names = ", ".join(sorted(r.value for r in missing))
        raise RuntimeError(f"{name} has no entry for role(s): {names}")


_check_exhaustive(_LANDING_PATHS, "_LANDING_PATHS")
_check_exhaustive(_ROLE_LABELS, "_ROLE_LABELS")
_check_exhaustive(_DASHBOARD_LABELS, "_DASHBOARD_LABELS")


def landing_path(role: Role) -> Optional[str]:
    """Return the canonical landing path for role, or None when it has none."""
    return _LANDING_PATHS[role]


def role_label(role: Role) -> str:
    """Return the human-readable title for role (e.g. "NGO Admin")."""
    return _ROLE_LABELS[role]


def dashboard_label(role: Role) -> Optional[str]:
    """Return the navbar label of role's dashboard link, or None if it has no dashboard."""
    return _DASHBOARD_LABELS[role]


def dashboard_link(user: Optional[User]) -> str:
    """Return where a "go to my dashboard" link should point.

    Anonymous visitors are sent to the login page; identities without a
    landing path go home.
    """
    if user is None:
        return LOGIN_PATH
    return landing_path(user.role) or HOME_PATH
