"""
auth/client.py -- HTTP client for the external PawConnect Auth API.

The Auth API owns authentication policy (password hashing, token signing,
verification workflow). This module only speaks its contract:

  POST /auth/login            {email, password}                -> {token, user}
  POST /auth/register         {email, password, name, role,
                               phone?, organization?,
                               verificationDocument?}          -> {token, user}
                                                                  | {requiresVerification, message}
  GET  /profile               (bearer)                         -> {user}
  PUT  /profile               (bearer) {name?, phone?, ...}    -> {user}
  POST /auth/forgot-password  {email}                          -> {message}
  POST /auth/reset-password   {email, otp, newPassword}        -> {message}

Every failure surfaces as AuthApiError:
  - transport failure (DNS, refused, timeout)  -> status_code None
  - non-2xx response                           -> status_code, server message
  - 2xx response with an unexpected body       -> status_code, generic message

No retries anywhere -- every retry is a new call made by the user.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, TypeVar, Union

import requests
from pydantic import BaseModel, ValidationError

from auth.models import Role, Session, User, VerificationRequired
from auth.schemas import LoginPayload, MessagePayload, ProfilePayload, ProfileUpdate, RegisterPayload

logger = logging.getLogger("pawconnect.client")

_ModelT = TypeVar("_ModelT", bound=BaseModel)

_VERIFICATION_PENDING_MESSAGE = "Registration successful. Your account is pending verification."


class AuthApiError(Exception):
    """A failed Auth API call.

    message is safe to show to the user: it is either the server-provided
    message or a generic fallback, never a Python exception repr.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_transport_error(self) -> bool:
        return self.status_code is None


class AuthApiClient:
    """Thin wrapper around one requests.Session bound to the Auth API base URL.

    Usage:
        client = AuthApiClient("http://localhost:5000/api")
        session = client.login("admin@pawconnect.org.np", "secret")
        client.close()
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # One session per client for connection pooling. max_redirects=3 replaces
        # the requests default of 30; the API is a known endpoint.
        self._http = http if http is not None else requests.Session()
        self._http.max_redirects = 3

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        payload: Optional[dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> requests.Response:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        url = f"{self.base_url}{path}"
        try:
            resp = self._http.request(method, url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Auth API %s %s failed: %s", method, path, e.__class__.__name__)
            raise AuthApiError("Could not reach the PawConnect server. Please try again.") from e
        if not resp.ok:
            message = _error_message(resp)
            logger.info("Auth API %s %s returned %d", method, path, resp.status_code)
            raise AuthApiError(message, status_code=resp.status_code)
        return resp

    def _parse(self, resp: requests.Response, model: type[_ModelT]) -> _ModelT:
        try:
            return model.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            logger.warning("Auth API returned an unexpected %s body: %s", model.__name__, e.__class__.__name__)
            raise AuthApiError("Unexpected response from the PawConnect server.", resp.status_code) from e

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> Session:
        resp = self._request("POST", "/auth/login", {"email": email, "password": password})
        return self._parse(resp, LoginPayload).to_session()

    def register(
        self,
        email: str,
        password: str,
        name: str,
        role: Role,
        phone: Optional[str] = None,
        organization: Optional[str] = None,
        verification_document: Optional[str] = None,
    ) -> Union[Session, VerificationRequired]:
        """Create an account.

        Returns a Session when the account is usable immediately, or
        VerificationRequired for roles an administrator must approve first.
        """
        body: dict[str, Any] = {"email": email, "password": password, "name": name, "role": Role(role).value}
        if phone is not None:
            body["phone"] = phone
        if organization is not None:
            body["organization"] = organization
        if verification_document is not None:
            body["verificationDocument"] = verification_document
        resp = self._request("POST", "/auth/register", body)
        data = self._parse(resp, RegisterPayload)
        if data.requires_verification:
            return VerificationRequired(message=data.message or _VERIFICATION_PENDING_MESSAGE)
        return Session(user=data.user.to_user(), token=data.token)

    def get_profile(self, token: str) -> User:
        resp = self._request("GET", "/profile", token=token)
        return self._parse(resp, ProfilePayload).user.to_user()

    def update_profile(self, token: str, changes: dict[str, Any]) -> User:
        """PUT /profile with the given changes; returns the server's updated user.

        Raises pydantic.ValidationError (a ValueError) before any request is
        made if changes contains a field the profile endpoint does not accept,
        role included.
        """
        update = ProfileUpdate.model_validate(changes)
        body = update.model_dump(by_alias=True, exclude_unset=True)
        resp = self._request("PUT", "/profile", body, token=token)
        return self._parse(resp, ProfilePayload).user.to_user()

    def forgot_password(self, email: str) -> str:
        resp = self._request("POST", "/auth/forgot-password", {"email": email})
        return self._parse(resp, MessagePayload).message or "If an account with that email exists, an OTP has been sent."

    def reset_password(self, email: str, otp: str, new_password: str) -> str:
        body = {"email": email, "otp": otp, "newPassword": new_password}
        resp = self._request("POST", "/auth/reset-password", body)
        return self._parse(resp, MessagePayload).message or "Your password has been reset."

    def close(self) -> None:
        self._http.close()


def _error_message(resp: requests.Response) -> str:
    """Extract the server's {message} from an error response, with a fallback."""
    try:
        message = MessagePayload.model_validate(resp.json()).message
    except ValueError:
        message = None
    return message or f"Request failed ({resp.status_code})."
