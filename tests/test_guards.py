"""
tests/test_guards.py -- RouteGuard, AuthRedirect and guard chains.

Decisions are pure functions of a SessionState, so most tests build states
directly. TestLoginThenGuard goes through a real SessionManager login.

Coverage:
  - RouteGuard: loading -> PENDING, anonymous -> /login, forbidden -> own
    landing page (or / without one), allowed -> ALLOW
  - AuthRedirect: landing redirect for roles that have one, ALLOW otherwise
  - evaluate(): outermost failing check wins
  - Site map chains: nested dashboard sections for each role
  - Login as an NGO admin, then guard decisions on the resulting state
"""

from __future__ import annotations

import pytest

from auth.guards import ALLOW, PENDING, AuthRedirect, Decision, Outcome, RouteGuard, evaluate
from auth.models import Role
from auth.session import SessionState
from tests.conftest import login_body, make_user, ok_response
from web.sitemap import PAGES, resolve


def _state(role: Role | None = None, loading: bool = False) -> SessionState:
    if role is None:
        return SessionState(is_loading=loading)
    return SessionState(user=make_user(role), token="t1", is_loading=loading)


class TestRouteGuard:
    def test_loading_is_pending(self) -> None:
        assert RouteGuard({Role.ADOPTER}).check(_state(loading=True)) == PENDING

    def test_loading_with_user_is_still_pending(self) -> None:
        assert RouteGuard().check(_state(Role.ADOPTER, loading=True)) == PENDING

    def test_anonymous_goes_to_login(self) -> None:
        assert RouteGuard({Role.ADOPTER}).check(_state()) == Decision.redirect("/login")

    def test_any_authenticated_when_roles_omitted(self) -> None:
        for role in Role:
            assert RouteGuard().check(_state(role)) == ALLOW

    def test_allowed_role(self) -> None:
        guard = RouteGuard({Role.SUPERADMIN, Role.NGO_ADMIN})
        assert guard.check(_state(Role.NGO_ADMIN)) == ALLOW

    def test_forbidden_role_goes_to_own_landing(self) -> None:
        guard = RouteGuard({Role.SUPERADMIN, Role.NGO_ADMIN})
        assert guard.check(_state(Role.VOLUNTEER)) == Decision.redirect("/volunteer")
        assert guard.check(_state(Role.VETERINARIAN)) == Decision.redirect("/vet")

    def test_forbidden_role_without_landing_goes_home(self) -> None:
        assert RouteGuard({Role.ADOPTER}).check(_state(Role.PUBLIC)) == Decision.redirect("/")

    def test_empty_role_set_rejects_everyone(self) -> None:
        assert RouteGuard(set()).check(_state(Role.SUPERADMIN)).outcome is Outcome.REDIRECT


class TestAuthRedirect:
    def test_loading_is_pending(self) -> None:
        assert AuthRedirect().check(_state(loading=True)) == PENDING

    def test_anonymous_sees_landing(self) -> None:
        assert AuthRedirect().check(_state()) == ALLOW

    @pytest.mark.parametrize(
        "role,target",
        [
            (Role.SUPERADMIN, "/dashboard"),
            (Role.NGO_ADMIN, "/dashboard"),
            (Role.VOLUNTEER, "/volunteer"),
            (Role.VETERINARIAN, "/vet"),
            (Role.ADOPTER, "/adopter"),
        ],
    )
    def test_authenticated_goes_to_landing(self, role: Role, target: str) -> None:
        assert AuthRedirect().check(_state(role)) == Decision.redirect(target)

    def test_role_without_landing_sees_public_page(self) -> None:
        assert AuthRedirect().check(_state(Role.PUBLIC)) == ALLOW


class TestEvaluate:
    def test_empty_chain_allows(self) -> None:
        assert evaluate((), _state()) == ALLOW

    def test_outer_guard_decides_first(self) -> None:
        outer = RouteGuard({Role.SUPERADMIN, Role.NGO_ADMIN})
        inner = RouteGuard({Role.SUPERADMIN})
        assert evaluate((outer, inner), _state(Role.VOLUNTEER)) == Decision.redirect("/volunteer")

    def test_inner_guard_applies_after_outer(self) -> None:
        outer = RouteGuard({Role.SUPERADMIN, Role.NGO_ADMIN})
        inner = RouteGuard({Role.SUPERADMIN})
        assert evaluate((outer, inner), _state(Role.NGO_ADMIN)) == Decision.redirect("/dashboard")
        assert evaluate((outer, inner), _state(Role.SUPERADMIN)) == ALLOW


class TestSiteMapChains:
    """Guard chains as mounted on the real route tree."""

    def _decide(self, path: str, state: SessionState) -> Decision:
        route = resolve(path)
        assert route is not None, path
        return evaluate(route.guards, state)

    def test_ngo_admin_is_kept_out_of_superadmin_pages(self) -> None:
        state = _state(Role.NGO_ADMIN)
        assert self._decide("/dashboard/rescues", state) == ALLOW
        assert self._decide("/dashboard/verifications", state) == Decision.redirect("/dashboard")
        assert self._decide("/dashboard/ngos", state) == Decision.redirect("/dashboard")

    def test_superadmin_reaches_every_dashboard_page(self) -> None:
        state = _state(Role.SUPERADMIN)
        for route in PAGES:
            if route.path.startswith("/dashboard"):
                assert evaluate(route.guards, state) == ALLOW, route.path

    def test_admin_login_then_root_lands_on_dashboard(self) -> None:
        state = SessionState(
            user=make_user(Role.SUPERADMIN, email="admin@pawconnect.org.np"),
            token="t1",
            is_loading=False,
        )
        assert self._decide("/", state) == Decision.redirect("/dashboard")
        assert self._decide("/dashboard", state) == ALLOW

    def test_adopter_cannot_enter_vet_area(self) -> None:
        assert self._decide("/vet/patients", _state(Role.ADOPTER)) == Decision.redirect("/adopter")

    def test_anonymous_protected_page_goes_to_login(self) -> None:
        assert self._decide("/volunteer/map", _state()) == Decision.redirect("/login")

    def test_loading_session_renders_nothing_yet(self) -> None:
        assert self._decide("/dashboard/team", _state(loading=True)) == PENDING

    def test_public_pages_need_no_session(self) -> None:
        for path in ("/adopt", "/dogs/42", "/report", "/about", "/login", "/register"):
            assert self._decide(path, _state()) == ALLOW, path

    def test_profile_admits_every_role(self) -> None:
        for role in Role:
            assert self._decide("/profile", _state(role)) == ALLOW

    def test_unknown_path_is_unresolved(self) -> None:
        assert resolve("/dashboard/unknown") is None
        assert resolve("/nowhere") is None

    def test_query_string_is_ignored(self) -> None:
        assert resolve("/login?error=bad_credentials").page == "login"


class TestLoginThenGuard:
    def test_ngo_admin_login_scenario(self, manager, http) -> None:
        user = make_user(Role.NGO_ADMIN, email="admin@pawconnect.org.np")
        http.request.return_value = ok_response(login_body(user, token="t1"))

        assert manager.login("admin@pawconnect.org.np", "secret") is True
        state = manager.state
        assert RouteGuard({Role.SUPERADMIN, Role.NGO_ADMIN}).check(state) == ALLOW
        assert RouteGuard({Role.VOLUNTEER}).check(state) == Decision.redirect("/dashboard")
