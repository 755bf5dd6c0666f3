"""
auth/session.py -- Session Manager: the single owner of the current identity.

One SessionManager is constructed at the composition root (web/main.py
lifespan, or main.py for the CLI) and passed to every consumer. Nothing else
mutates the session.

State model:
  SessionState is an immutable snapshot (user, token, is_loading). Every
  change builds a new snapshot and swaps it in under a lock, so readers such
  as the route guards always see a whole value, never a half-applied login.
  Persistence happens under the same lock, before the swap, so storage and
  memory never disagree.

is_loading:
  True from construction until init() finishes, and while any login or
  register call is in flight. An in-flight counter keeps it true until the
  last outstanding call returns.

Known limitation (accepted): in-flight calls are never cancelled. A login
that resolves after the user has logged out or navigated away is still
applied. Deployments that cannot accept this need a generation check in
_finish() before adopting a late result.

Failure contract:
  login()/register() collapse every AuthApiError into False. Callers that
  need the reason must call AuthApiClient themselves.
  update_profile()/refresh_profile() propagate AuthApiError with the server's
  message for the caller to show.
  update_user() without a session is a silent no-op.
  Local storage errors (sqlalchemy.exc.SQLAlchemyError) are not auth
  failures and propagate from every operation; the in-memory session is left
  as it was before the call.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

from auth.client import AuthApiClient, AuthApiError
from auth.models import Role, Session, User, VerificationRequired
from auth.storage import SessionStorage

logger = logging.getLogger("pawconnect.session")

# Fields a caller may change through update_user(). role, id and created_at
# are identity, not profile data.
_MUTABLE_USER_FIELDS = frozenset({"email", "name", "avatar", "phone", "organization"})


@dataclass(frozen=True)
class SessionState:
    user: Optional[User] = None
    token: Optional[str] = None
    is_loading: bool = True

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


class SessionManager:
    """Owns the process-wide Session.

    Usage:
        manager = SessionManager(AuthApiClient(url), SessionStorage(LocalStorage()))
        manager.init()
        if manager.login("admin@pawconnect.org.np", "secret"):
            print(manager.state.user.role)
    """

    def __init__(self, client: AuthApiClient, storage: SessionStorage) -> None:
        self._client = client
        self._storage = storage
        self._lock = threading.Lock()
        self._state = SessionState()
        self._in_flight = 0
        self._initialized = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Optional[Session]:
        state = self._state
        if state.user is None or state.token is None:
            return None
        return Session(user=state.user, token=state.token)

    @property
    def initialized(self) -> bool:
        return self._initialized

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self) -> None:
        """Adopt the persisted session, if any. Must run exactly once, at startup."""
        if self._initialized:
            raise RuntimeError("SessionManager.init() has already run; construct one manager per process.")
        stored = self._storage.load()
        with self._lock:
            if stored is not None:
                self._state = SessionState(user=stored.user, token=stored.token, is_loading=self._in_flight > 0)
            else:
                self._state = SessionState(is_loading=self._in_flight > 0)
            self._initialized = True
        if stored is not None:
            logger.info("Restored session for user %s (%s)", stored.user.id, stored.user.role.value)
        else:
            logger.info("No stored session; starting unauthenticated")

    def _require_init(self, operation: str) -> None:
        if not self._initialized:
            raise RuntimeError(
                f"SessionManager.{operation}() called before init(). "
                "Call init() once at startup, before serving requests."
            )

    def _begin(self) -> None:
        with self._lock:
            self._in_flight += 1
            self._state = dataclasses.replace(self._state, is_loading=True)

    def _finish(self, session: Optional[Session]) -> None:
        """Close one in-flight call; adopt session when the call produced one.

        A storage error while saving propagates. The previous session is kept
        and is_loading still drops once nothing else is in flight.
        """
        with self._lock:
            self._in_flight -= 1
            loading = self._in_flight > 0
            adopted = self._state
            try:
                if session is not None:
                    self._storage.save(session)
                    adopted = SessionState(user=session.user, token=session.token)
            finally:
                self._state = dataclasses.replace(adopted, is_loading=loading)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> bool:
        """Log in. Returns False on any Auth API failure and keeps the previous session."""
        self._require_init("login")
        self._begin()
        session: Optional[Session] = None
        try:
            session = self._client.login(email, password)
        except AuthApiError as e:
            logger.info("Login failed (status=%s)", e.status_code)
        finally:
            self._finish(session)
        if session is not None:
            logger.info("Logged in as user %s (%s)", session.user.id, session.user.role.value)
        return session is not None

    def register(
        self,
        email: str,
        password: str,
        name: str,
        role: Role,
        *,
        phone: Optional[str] = None,
        organization: Optional[str] = None,
        verification_document: Optional[str] = None,
    ) -> Union[bool, VerificationRequired]:
        """Create an account and, unless it needs approval, log in as it.

        Returns True when a session was established, False on any failure, or
        VerificationRequired when the account exists but must be approved by
        an administrator first. In that last case no session is established
        and the caller should route to the login page.
        """
        self._require_init("register")
        self._begin()
        session: Optional[Session] = None
        outcome: Union[bool, VerificationRequired] = False
        try:
            result = self._client.register(
                email,
                password,
                name,
                role,
                phone=phone,
                organization=organization,
                verification_document=verification_document,
            )
        except AuthApiError as e:
            logger.info("Registration failed (status=%s)", e.status_code)
        else:
            if isinstance(result, VerificationRequired):
                logger.info("Registration for role %s awaits verification", Role(role).value)
                outcome = result
            else:
                session = result
                outcome = True
        finally:
            self._finish(session)
        return outcome

    def logout(self) -> None:
        with self._lock:
            self._storage.clear()
            self._state = SessionState(is_loading=self._in_flight > 0)
        logger.info("Logged out")

    def update_user(self, changes: Union[Mapping[str, Any], User]) -> None:
        """Merge profile fields into the current user and re-persist.

        No-op without a session. role, id and created_at are never taken from
        changes.
        """
        self._require_init("update_user")
        if isinstance(changes, User):
            changes = dataclasses.asdict(changes)
        with self._lock:
            current = self._state
            if current.user is None or current.token is None:
                return
            if "role" in changes and changes["role"] != current.user.role:
                logger.warning("Ignoring role change for user %s through update_user()", current.user.id)
            fields = {k: v for k, v in changes.items() if k in _MUTABLE_USER_FIELDS}
            user = dataclasses.replace(current.user, **fields)
            self._storage.save(Session(user=user, token=current.token))
            self._state = dataclasses.replace(current, user=user)

    def update_profile(self, **changes: Any) -> User:
        """Send profile changes to the Auth API and merge the server's answer.

        Accepts name, phone, organization, avatar, current_password and
        new_password. Raises AuthApiError with the server's message on failure.
        """
        self._require_init("update_profile")
        token = self._state.token
        if token is None:
            raise AuthApiError("Please login to update your profile.", status_code=401)
        updated = self._client.update_profile(token, changes)
        self.update_user(updated)
        return self._state.user or updated

    def refresh_profile(self) -> User:
        """Re-fetch the current user from the Auth API and merge it."""
        self._require_init("refresh_profile")
        token = self._state.token
        if token is None:
            raise AuthApiError("Please login to view your profile.", status_code=401)
        fetched = self._client.get_profile(token)
        self.update_user(fetched)
        return self._state.user or fetched
