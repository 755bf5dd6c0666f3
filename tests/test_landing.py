"""
tests/test_landing.py -- Role Route Map lookups.

Coverage:
  - Every role has a landing path entry (exhaustiveness holds at import)
  - Landing paths, role titles and dashboard labels per role
  - dashboard_link() fallbacks for anonymous and landing-less identities
  - _check_exhaustive() rejects a table missing a role
"""

from __future__ import annotations

import pytest

from auth.landing import (
    HOME_PATH,
    LOGIN_PATH,
    _check_exhaustive,
    dashboard_label,
    dashboard_link,
    landing_path,
    role_label,
)
from auth.models import Role
from tests.conftest import make_user


class TestLandingPath:
    @pytest.mark.parametrize(
        "role,expected",
        [
            (Role.SUPERADMIN, "/dashboard"),
            (Role.NGO_ADMIN, "/dashboard"),
            (Role.VOLUNTEER, "/volunteer"),
            (Role.VETERINARIAN, "/vet"),
            (Role.ADOPTER, "/adopter"),
        ],
    )
    def test_landing_path_per_role(self, role: Role, expected: str) -> None:
        assert landing_path(role) == expected

    def test_public_role_has_no_landing_path(self) -> None:
        assert landing_path(Role.PUBLIC) is None

    def test_every_role_is_mapped(self) -> None:
        """No role raises KeyError: the import-time check guarantees coverage."""
        for role in Role:
            landing_path(role)
            role_label(role)
            dashboard_label(role)

    def test_accepts_raw_role_string(self) -> None:
        """Role is a str enum, so the wire value looks up the same entry."""
        assert landing_path(Role("veterinarian")) == "/vet"


class TestLabels:
    def test_role_titles(self) -> None:
        assert role_label(Role.NGO_ADMIN) == "NGO Admin"
        assert role_label(Role.SUPERADMIN) == "Superadmin"
        assert role_label(Role.PUBLIC) == "User"

    def test_dashboard_labels(self) -> None:
        assert dashboard_label(Role.SUPERADMIN) == "Admin Dashboard"
        assert dashboard_label(Role.ADOPTER) == "My Applications"
        assert dashboard_label(Role.PUBLIC) is None


class TestDashboardLink:
    def test_anonymous_goes_to_login(self) -> None:
        assert dashboard_link(None) == LOGIN_PATH

    def test_volunteer_goes_to_volunteer_area(self) -> None:
        assert dashboard_link(make_user(Role.VOLUNTEER)) == "/volunteer"

    def test_landing_less_role_goes_home(self) -> None:
        assert dashboard_link(make_user(Role.PUBLIC)) == HOME_PATH


class TestExhaustiveness:
    def test_missing_role_fails_loudly(self) -> None:
        partial = {role: "/x" for role in Role if role is not Role.ADOPTER}
        with pytest.raises(RuntimeError, match="adopter"):
            _check_exhaustive(partial, "partial")

    def test_complete_table_passes(self) -> None:
        _check_exhaustive({role: None for role in Role}, "complete")
