"""
auth/guards.py -- Route Guard and Auth Redirect decisions.

Both are pure functions of a SessionState snapshot. A page route carries a
chain of checks in enclosing order (outer section first, inner sub-route
last); evaluate() runs them in that order and stops at the first check that
does not ALLOW. The router acts on the resulting Decision before the page
itself is built, so a rejected request never constructs protected content.

Decision outcomes:
  PENDING   -- session still loading; render a placeholder, decide later
  REDIRECT  -- navigate to decision.location
  ALLOW     -- this check passes (for a whole chain: render the page)

Layer rule: no imports from web/.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from auth.landing import HOME_PATH, LOGIN_PATH, landing_path
from auth.models import Role
from auth.session import SessionState


class Outcome(str, Enum):
    PENDING = "pending"
    REDIRECT = "redirect"
    ALLOW = "allow"


@dataclass(frozen=True)
class Decision:
    outcome: Outcome
    location: Optional[str] = None

    @classmethod
    def redirect(cls, location: str) -> Decision:
        return cls(Outcome.REDIRECT, location)


PENDING = Decision(Outcome.PENDING)
ALLOW = Decision(Outcome.ALLOW)


class Check(Protocol):
    def check(self, state: SessionState) -> Decision: ...


class RouteGuard:
    """Gate a subtree on authentication and, optionally, a set of roles.

    allowed_roles=None admits any authenticated identity. An identity whose
    role is not allowed is sent to its own landing page, not to login: it is
    valid, just not authorized here.
    """

    def __init__(self, allowed_roles: Optional[Iterable[Role]] = None) -> None:
        self.allowed_roles: Optional[frozenset[Role]] = (
            frozenset(Role(r) for r in allowed_roles) if allowed_roles is not None else None
        )

    def check(self, state: SessionState) -> Decision:
        if state.is_loading:
            return PENDING
        if state.user is None:
            return Decision.redirect(LOGIN_PATH)
        if self.allowed_roles is not None and state.user.role not in self.allowed_roles:
            return Decision.redirect(landing_path(state.user.role) or HOME_PATH)
        return ALLOW

    def __repr__(self) -> str:
        if self.allowed_roles is None:
            return "RouteGuard(any authenticated)"
        return f"RouteGuard({sorted(r.value for r in self.allowed_roles)})"


class AuthRedirect:
    """Send already-authenticated identities from the public landing page to their own.

    Mounted on "/" only. Anonymous visitors, and identities whose role has no
    landing path, see the public page.
    """

    def check(self, state: SessionState) -> Decision:
        if state.is_loading:
            return PENDING
        if state.user is not None:
            target = landing_path(state.user.role)
            if target is not None:
                return Decision.redirect(target)
        return ALLOW

    def __repr__(self) -> str:
        return "AuthRedirect()"


def evaluate(checks: Iterable[Check], state: SessionState) -> Decision:
    """Run checks outermost-first; return the first non-ALLOW decision, else ALLOW."""
    for check in checks:
        decision = check.check(state)
        if decision.outcome is not Outcome.ALLOW:
            return decision
    return ALLOW
