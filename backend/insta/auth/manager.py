"""Auth session manager: the single owner of the account session.

State machine::

    UNINITIALIZED -> RESTORING -> AUTHENTICATED | UNAUTHENTICATED
    UNAUTHENTICATED -> PENDING_TWO_FACTOR -> AUTHENTICATED | UNAUTHENTICATED

Every transition runs under one asyncio.Lock so a login, a 2FA completion
and a logout can never interleave. Queries (is_authenticated, state,
current_challenge) read plain attributes and never take the lock.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog

from insta.auth.models import AuthState, LoggedIn, LoginFailed, TwoFactorChallenge, TwoFactorRequired
from insta.classifier import ErrorKind, classify_error
from insta.exceptions import AuthenticationRequiredError, NoPendingChallengeError
from shared.storage import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Callable

    from insta.auth.models import LoginOutcome
    from insta.client.protocol import AccountClient
    from shared.storage import SessionStorage

logger = structlog.get_logger()


class AuthSessionManager:
    """Coordinate login, 2FA completion, logout, and session restoration.

    The manager is the only writer of session state and the only consumer
    of the session storage. A fresh client handle is built by client_factory
    on initialize() and dropped on logout().
    """

    def __init__(self, storage: SessionStorage, client_factory: Callable[[], AccountClient]) -> None:
        self._storage = storage
        self._client_factory = client_factory
        self._client: AccountClient | None = None
        self._state = AuthState.UNINITIALIZED
        self._challenge: TwoFactorChallenge | None = None
        self._username: str | None = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def username(self) -> str | None:
        """Handle of the authenticated account, when known."""
        return self._username

    def is_authenticated(self) -> bool:
        return self._state is AuthState.AUTHENTICATED

    def current_challenge(self) -> TwoFactorChallenge | None:
        return self._challenge

    async def initialize(self) -> None:
        """Build the client handle and try to restore a saved session.

        No-op when a client handle already exists.
        """
        async with self._lock:
            await self._initialize_locked()

    async def _initialize_locked(self) -> AccountClient:
        if self._client is not None:
            return self._client

        client = self._client_factory()
        self._client = client
        self._state = AuthState.RESTORING
        self._challenge = None
        self._username = None

        blob = self._storage.load()
        if blob is None:
            self._state = AuthState.UNAUTHENTICATED
            logger.info("no saved session found")
            return client

        try:
            client.load_state(blob)
            profile = await client.current_user()
        except Exception as exc:  # noqa: BLE001 - any verification failure invalidates the saved session
            logger.warning("saved session rejected, discarding it", error=str(exc))
            # The rejected blob may have left cookies on the handle.
            client = self._client_factory()
            self._client = client
            self._state = AuthState.UNAUTHENTICATED
            self._storage.delete()
            return client

        self._username = profile.get("username")
        self._state = AuthState.AUTHENTICATED
        logger.info("session restored", username=self._username)
        return client

    async def client(self) -> AccountClient:
        """Return the live client handle, initializing on first use."""
        async with self._lock:
            return await self._initialize_locked()

    def require_authenticated(self) -> AccountClient:
        """Return the client handle, or raise AuthenticationRequiredError."""
        if self._state is not AuthState.AUTHENTICATED or self._client is None:
            raise AuthenticationRequiredError
        return self._client

    async def login(self, username: str, password: str) -> LoginOutcome:
        """Log in with a password.

        Returns LoggedIn once the session is persisted, TwoFactorRequired
        when the remote asks for a second factor, or LoginFailed carrying
        the original error.
        """
        async with self._lock:
            client = await self._initialize_locked()
            try:
                prompt = await client.login(username, password)
            except Exception as exc:  # noqa: BLE001 - surfaced to the caller as LoginFailed
                logger.warning("login failed", username=username, error=str(exc))
                self._reset_unless_authenticated()
                return LoginFailed(exc)

            if prompt is not None:
                challenge = TwoFactorChallenge.from_prompt(
                    prompt.username or username,
                    prompt.identifier,
                    totp_enabled=prompt.totp_enabled,
                )
                self._challenge = challenge
                self._state = AuthState.PENDING_TWO_FACTOR
                logger.info("login needs second factor", username=challenge.username, method=challenge.method)
                return TwoFactorRequired(challenge)

            try:
                self._storage.save(client.dump_state())
            except Exception as exc:  # noqa: BLE001 - PersistenceError surfaced as LoginFailed
                self._reset_unless_authenticated()
                return LoginFailed(exc)

            self._mark_authenticated(username)
            return LoggedIn(username)

    async def complete_two_factor(self, code: str) -> LoggedIn:
        """Finish a pending login with a verification code.

        The challenge is consumed whether or not the code is accepted; a
        rejected code means starting over with login().
        """
        async with self._lock:
            challenge = self._challenge
            if self._state is not AuthState.PENDING_TWO_FACTOR or challenge is None or self._client is None:
                raise NoPendingChallengeError
            self._challenge = None

            try:
                await self._client.complete_two_factor(challenge, code)
                self._storage.save(self._client.dump_state())
            except Exception:
                self._state = AuthState.UNAUTHENTICATED
                logger.warning("two-factor completion failed", username=challenge.username)
                raise

            self._mark_authenticated(challenge.username)
            return LoggedIn(challenge.username)

    async def logout(self) -> bool:
        """Drop the session in memory and on disk.

        Returns True when a session or pending challenge was active. Safe to
        call repeatedly.
        """
        async with self._lock:
            was_active = self._state in (AuthState.AUTHENTICATED, AuthState.PENDING_TWO_FACTOR)
            self._client = None
            self._challenge = None
            self._username = None
            self._state = AuthState.UNAUTHENTICATED
            self._storage.delete()
            if was_active:
                logger.info("logged out")
            return was_active

    async def current_user(self) -> dict[str, Any]:
        """Profile of the logged-in account. Requires an authenticated session.

        Restores a saved session first, like every other authenticated call.
        """
        await self.initialize()
        client = self.require_authenticated()
        try:
            profile = await client.current_user()
        except Exception as exc:
            await self.discard_rejected_session(exc)
            raise
        self._username = profile.get("username") or self._username
        return profile

    async def discard_rejected_session(self, error: Exception) -> bool:
        """Drop an authenticated session the remote no longer accepts.

        Only authentication-required and session-expired failures count as a
        rejection. Returns True when the session was dropped; the next login()
        then talks to the remote again instead of trusting the local state.
        """
        if classify_error(error) not in (ErrorKind.AUTHENTICATION_REQUIRED, ErrorKind.SESSION_EXPIRED):
            return False
        async with self._lock:
            if self._state is not AuthState.AUTHENTICATED:
                return False
            logger.warning("remote rejected the session, discarding it", username=self._username, error=str(error))
            self._client = None
            self._challenge = None
            self._username = None
            self._state = AuthState.UNAUTHENTICATED
            try:
                self._storage.delete()
            except PersistenceError as exc:
                logger.warning("could not delete rejected session", error=str(exc))
            return True

    def _mark_authenticated(self, username: str) -> None:
        self._challenge = None
        self._username = username
        self._state = AuthState.AUTHENTICATED
        logger.info("logged in", username=username)

    def _reset_unless_authenticated(self) -> None:
        if self._state is not AuthState.AUTHENTICATED:
            self._challenge = None
            self._state = AuthState.UNAUTHENTICATED
