"""
auth/schemas.py -- Pydantic v2 models for the Auth API wire contract.

These models describe what the external Auth API sends and what the local
storage blob looks like. They are intentionally separate from the dataclasses
in auth/models.py, which own the internal domain representation. The
to_user() / from_user() helpers map between the two.

The API speaks camelCase (createdAt, requiresVerification); fields are
declared snake_case with aliases so Python code never sees the wire names.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from auth.models import Role, Session, User


class UserPayload(BaseModel):
    """User object as serialized by the Auth API and in local storage."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    email: str
    name: str
    role: Role
    created_at: str = Field(alias="createdAt")
    avatar: Optional[str] = None
    phone: Optional[str] = None
    organization: Optional[str] = None

    def to_user(self) -> User:
        return User(
            id=self.id,
            email=self.email,
            name=self.name,
            role=self.role,
            created_at=self.created_at,
            avatar=self.avatar,
            phone=self.phone,
            organization=self.organization,
        )

    @classmethod
    def from_user(cls, user: User) -> UserPayload:
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            created_at=user.created_at,
            avatar=user.avatar,
            phone=user.phone,
            organization=user.organization,
        )


class LoginPayload(BaseModel):
    """200 body of POST /auth/login (and of a non-verified POST /auth/register)."""

    model_config = ConfigDict(extra="ignore")

    token: str = Field(min_length=1)
    user: UserPayload

    def to_session(self) -> Session:
        return Session(user=self.user.to_user(), token=self.token)


class RegisterPayload(BaseModel):
    """2xx body of POST /auth/register.

    Either a full login payload, or requiresVerification=true with a message
    and no token for roles that need administrative approval.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    token: Optional[str] = None
    user: Optional[UserPayload] = None
    requires_verification: bool = Field(default=False, alias="requiresVerification")
    message: Optional[str] = None

    @model_validator(mode="after")
    def check_session_or_verification(self) -> RegisterPayload:
        if not self.requires_verification and (not self.token or self.user is None):
            raise ValueError("register response carries neither a session nor requiresVerification")
        return self


class ProfilePayload(BaseModel):
    """200 body of GET/PUT /profile."""

    model_config = ConfigDict(extra="ignore")

    user: UserPayload
    message: Optional[str] = None


class MessagePayload(BaseModel):
    """Any body that only matters for its human-readable message (errors, password reset)."""

    model_config = ConfigDict(extra="ignore")

    message: Optional[str] = None


class ProfileUpdate(BaseModel):
    """Request body of PUT /profile. Unset fields are not sent.

    No role field: role is not settable through the profile path.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: Optional[str] = None
    phone: Optional[str] = None
    organization: Optional[str] = None
    avatar: Optional[str] = None
    current_password: Optional[str] = Field(default=None, alias="currentPassword")
    new_password: Optional[str] = Field(default=None, alias="newPassword")


class StoredSession(BaseModel):
    """The single JSON blob kept under the session storage key.

    user and token must be both present or both null. Anything else is a
    corrupt entry and is rejected as a whole.
    """

    model_config = ConfigDict(extra="ignore")

    user: Optional[UserPayload]
    token: Optional[str]

    @model_validator(mode="after")
    def check_no_partial_session(self) -> StoredSession:
        if (self.user is None) != (self.token is None):
            raise ValueError("stored session must have both user and token, or neither")
        if self.token is not None and not self.token:
            raise ValueError("stored token is empty")
        return self
