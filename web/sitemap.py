"""
web/sitemap.py -- Route tree of the PawConnect client with its guard chains.

Sections are declared once with their guard; sub-routes inherit the section
guard and may append a narrower one. A page's `guards` tuple is therefore
ordered outermost-first, which is the order auth.guards.evaluate() expects.

Dashboard layout:
  /dashboard           {superadmin, ngo_admin}
    /verifications       + {superadmin}
    /ngos                + {superadmin}
  /volunteer           {volunteer}
  /vet                 {veterinarian}
  /adopter             {adopter}
  /profile             any authenticated identity
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from auth.guards import AuthRedirect, Check, RouteGuard
from auth.models import Role


@dataclass(frozen=True)
class PageRoute:
    path: str  # FastAPI path syntax, e.g. "/dogs/{dog_id}"
    page: str  # template-independent page identifier
    title: str
    guards: tuple[Check, ...] = ()
    template: str = "page.html"


ADMIN_SECTION = RouteGuard({Role.SUPERADMIN, Role.NGO_ADMIN})
SUPERADMIN_ONLY = RouteGuard({Role.SUPERADMIN})
VOLUNTEER_SECTION = RouteGuard({Role.VOLUNTEER})
VET_SECTION = RouteGuard({Role.VETERINARIAN})
ADOPTER_SECTION = RouteGuard({Role.ADOPTER})
AUTHENTICATED = RouteGuard()


def _section(
    prefix: str,
    guard: RouteGuard,
    children: list[tuple[str, str, str, tuple[Check, ...]]],
) -> list[PageRoute]:
    """Expand (sub_path, page, title, extra_guards) children under prefix, all behind guard."""
    routes = []
    for sub_path, page, title, extra in children:
        path = prefix if not sub_path else f"{prefix}/{sub_path}"
        routes.append(PageRoute(path=path, page=page, title=title, guards=(guard, *extra)))
    return routes


PAGES: list[PageRoute] = [
    # Public
    PageRoute("/", "landing", "Welcome", guards=(AuthRedirect(),)),
    PageRoute("/adopt", "adoption_gallery", "Adopt a Dog"),
    PageRoute("/dogs/{dog_id}", "dog_profile", "Dog Profile"),
    PageRoute("/report", "report_dog", "Report a Dog"),
    PageRoute("/about", "about", "About"),
    PageRoute("/login", "login", "Login", template="login.html"),
    PageRoute("/register", "register", "Register", template="register.html"),
    PageRoute("/forgot-password", "forgot_password", "Forgot Password", template="forgot_password.html"),
    PageRoute("/reset-password", "reset_password", "Reset Password", template="reset_password.html"),
    # Authenticated
    PageRoute("/profile", "profile", "My Profile", guards=(AUTHENTICATED,), template="profile.html"),
    *_section(
        "/dashboard",
        ADMIN_SECTION,
        [
            ("", "dashboard", "Dashboard", ()),
            ("volunteers", "volunteers_management", "Volunteers", ()),
            ("rescues", "rescue_cases", "Rescue Cases", ()),
            ("dogs", "dogs_management", "Dogs", ()),
            ("adoptions", "adoptions_management", "Adoptions", ()),
            ("team", "team", "Team", ()),
            ("verifications", "verification_management", "Verifications", (SUPERADMIN_ONLY,)),
            ("ngos", "ngo_management", "NGOs", (SUPERADMIN_ONLY,)),
        ],
    ),
    *_section(
        "/volunteer",
        VOLUNTEER_SECTION,
        [
            ("", "volunteer_dashboard", "My Tasks", ()),
            ("map", "rescue_map", "Rescue Map", ()),
        ],
    ),
    *_section(
        "/vet",
        VET_SECTION,
        [
            ("", "vet_dashboard", "Overview", ()),
            ("patients", "vet_patients", "Patients", ()),
            ("records", "vet_medical_records", "Medical Records", ()),
        ],
    ),
    *_section(
        "/adopter",
        ADOPTER_SECTION,
        [
            ("", "adopter_dashboard", "My Applications", ()),
        ],
    ),
]

# The /dashboard index serves two different pages depending on who is looking.
_DASHBOARD_PAGES: dict[Role, str] = {
    Role.SUPERADMIN: "superadmin_dashboard",
    Role.NGO_ADMIN: "ngo_dashboard",
}


def dashboard_page_for(role: Role) -> str:
    """Return the page shown at /dashboard for role (NGO dashboard as fallback)."""
    return _DASHBOARD_PAGES.get(role, "ngo_dashboard")


def _compile(path: str) -> re.Pattern:
    pattern = re.sub(r"\{[a-z_]+\}", r"[^/]+", path)
    return re.compile(f"^{pattern}/?$" if path != "/" else "^/$")


_COMPILED: list[tuple[re.Pattern, PageRoute]] = [(_compile(r.path), r) for r in PAGES]


def resolve(path: str) -> Optional[PageRoute]:
    """Return the PageRoute matching a concrete path, or None (not found).

    Query strings and fragments are ignored.
    """
    path = path.split("?", 1)[0].split("#", 1)[0] or "/"
    for pattern, route in _COMPILED:
        if pattern.match(path):
            return route
    return None
