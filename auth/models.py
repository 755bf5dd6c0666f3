"""
auth/models.py -- Domain types for session and identity.

Pattern: Data class (pure data container, zero logic). The wire shape the
Auth API speaks lives in auth/schemas.py; this module owns the domain shape
that the session manager, guards and storage pass around.

Layer rule: no imports from web/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Role(str, Enum):
    """Closed set of identity categories.

    PUBLIC is what the Auth API assigns to plain sign-ups. It has no landing
    path and is treated like an anonymous visitor by the landing-page redirect.
    """

    SUPERADMIN = "superadmin"
    NGO_ADMIN = "ngo_admin"
    VOLUNTEER = "volunteer"
    VETERINARIAN = "veterinarian"
    ADOPTER = "adopter"
    PUBLIC = "public"


# Roles whose accounts stay pending until an administrator approves them.
VERIFIED_ROLES: frozenset[Role] = frozenset({Role.NGO_ADMIN, Role.VETERINARIAN})


@dataclass(frozen=True)
class User:
    """An identity as returned by the Auth API.

    id is opaque. created_at is kept as the ISO 8601 string the API sent; the
    client never does arithmetic on it.
    """

    id: str
    email: str
    name: str
    role: Role
    created_at: str
    avatar: Optional[str] = None
    phone: Optional[str] = None
    organization: Optional[str] = None


@dataclass(frozen=True)
class Session:
    """The current identity and its bearer token. Never partial."""

    user: User
    token: str


@dataclass(frozen=True)
class VerificationRequired:
    """Registration accepted, but the account waits for administrative approval."""

    message: str
