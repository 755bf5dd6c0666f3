"""
web/navigation.py -- Navbar and dashboard sidebar links, filtered by role.

Only presentation data lives here. Access control is enforced by the guard
chains in web/sitemap.py whether or not a link is shown.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from auth.landing import dashboard_label, dashboard_link
from auth.models import Role, User


@dataclass(frozen=True)
class NavItem:
    label: str
    href: str
    roles: frozenset[Role]


PUBLIC_LINKS: list[tuple[str, str]] = [
    ("/", "Home"),
    ("/adopt", "Adopt"),
    ("/report", "Report a Dog"),
    ("/about", "About"),
]

_ADMINS = frozenset({Role.SUPERADMIN, Role.NGO_ADMIN})

SIDEBAR_ITEMS: list[NavItem] = [
    NavItem("Overview", "/dashboard", _ADMINS),
    NavItem("NGOs", "/dashboard/ngos", frozenset({Role.SUPERADMIN})),
    NavItem("Verifications", "/dashboard/verifications", frozenset({Role.SUPERADMIN})),
    NavItem("Rescue Cases", "/dashboard/rescues", _ADMINS),
    NavItem("Dogs", "/dashboard/dogs", _ADMINS),
    NavItem("Adoptions", "/dashboard/adoptions", _ADMINS),
    NavItem("Volunteers", "/dashboard/volunteers", _ADMINS),
    NavItem("Team", "/dashboard/team", frozenset({Role.NGO_ADMIN})),
    NavItem("My Tasks", "/volunteer", frozenset({Role.VOLUNTEER})),
    NavItem("Rescue Map", "/volunteer/map", frozenset({Role.VOLUNTEER})),
    NavItem("Overview", "/vet", frozenset({Role.VETERINARIAN})),
    NavItem("Patients", "/vet/patients", frozenset({Role.VETERINARIAN})),
    NavItem("Medical Records", "/vet/records", frozenset({Role.VETERINARIAN})),
    NavItem("My Applications", "/adopter", frozenset({Role.ADOPTER})),
    NavItem("Browse Dogs", "/adopt", frozenset({Role.ADOPTER})),
]


def nav_items_for(role: Role) -> list[NavItem]:
    return [item for item in SIDEBAR_ITEMS if role in item.roles]


def navbar_context(user: Optional[User]) -> dict:
    """Template context for the top navbar: public links plus the dashboard link."""
    return {
        "public_links": PUBLIC_LINKS,
        "dashboard_href": dashboard_link(user),
        "dashboard_label": (dashboard_label(user.role) if user else None) or "Dashboard",
        "sidebar": nav_items_for(user.role) if user else [],
    }
