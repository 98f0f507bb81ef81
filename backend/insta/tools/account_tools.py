"""Tools that drive the login lifecycle and read the logged-in profile."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import Field, field_validator

from insta.auth.models import LoggedIn, LoginFailed, TwoFactorMethod, TwoFactorRequired
from insta.classifier import ErrorKind, message_of
from insta.exceptions import ToolArgumentError
from insta.tools.base import NoArguments, Tool, ToolArguments, ToolResult
from insta.tools.formatters import format_profile
from shared.validators import require_text

if TYPE_CHECKING:
    from insta.auth.manager import AuthSessionManager
    from insta.auth.models import TwoFactorChallenge

logger = structlog.get_logger()

CREDENTIALS_MISSING_MESSAGE = (
    "Instagram credentials not found. Username and password are required: "
    "pass them to instagram_login or set the IG_USERNAME and IG_PASSWORD environment variables."
)
SESSION_SAVED_NOTE = "Session has been saved and will persist across server restarts."


def _account_summary(profile: dict[str, Any]) -> str:
    return (
        f"Account: {profile.get('username') or 'N/A'}\n"
        f"Full Name: {profile.get('full_name') or 'N/A'}\n"
        f"User ID: {profile.get('pk') or 'N/A'}"
    )


def _method_name(challenge: TwoFactorChallenge) -> str:
    return "TOTP (Authenticator App)" if challenge.method is TwoFactorMethod.TOTP else "SMS"


class LoginArguments(ToolArguments):
    username: str | None = Field(default=None, description="Instagram username. Defaults to IG_USERNAME.")
    password: str | None = Field(default=None, description="Instagram password. Defaults to IG_PASSWORD.")


class LoginTool(Tool[LoginArguments]):
    name = "instagram_login"
    description = (
        "Log in to Instagram. Uses the given credentials or falls back to the IG_USERNAME and "
        "IG_PASSWORD environment variables. The session is saved and reused across restarts."
    )
    arguments_model = LoginArguments

    def __init__(
        self,
        auth: AuthSessionManager,
        *,
        default_username: str | None = None,
        default_password: str | None = None,
    ) -> None:
        super().__init__(auth)
        self._default_username = default_username
        self._default_password = default_password

    async def execute(self, args: LoginArguments) -> ToolResult:
        await self.auth.initialize()
        if self.auth.is_authenticated():
            try:
                profile = await self.auth.current_user()
            except Exception:
                # A session the remote rejected has been discarded; anything else is reported.
                if self.auth.is_authenticated():
                    raise
                logger.info("stored session no longer accepted, logging in again")
            else:
                handle = profile.get("username") or self.auth.username or "unknown"
                return ToolResult.success(f"Already logged in as @{handle}.\nSession is active and persistent.")

        username = (args.username or self._default_username or "").strip()
        password = args.password or self._default_password or ""
        if not username or not password:
            raise ToolArgumentError(CREDENTIALS_MISSING_MESSAGE)

        outcome = await self.auth.login(username, password)
        if isinstance(outcome, LoginFailed):
            raise outcome.error
        if isinstance(outcome, TwoFactorRequired):
            return ToolResult.success(self._two_factor_message(outcome.challenge))

        profile = await self.auth.current_user()
        return ToolResult.success(f"Successfully logged in to Instagram!\n\n{_account_summary(profile)}\n\n{SESSION_SAVED_NOTE}")

    @staticmethod
    def _two_factor_message(challenge: TwoFactorChallenge) -> str:
        if challenge.method is TwoFactorMethod.SMS:
            where = "A verification code has been sent to your phone via SMS."
        else:
            where = "Please check your authenticator app for the verification code."
        return (
            "Two-Factor Authentication (2FA) is required for this account.\n\n"
            f"{where}\n\n"
            f"Verification Method: {_method_name(challenge)}\n"
            f"Username: {challenge.username}\n\n"
            "Please use the 'instagram_complete_2fa' tool with the verification code to complete the login."
        )

    def failure_message(self, kind: ErrorKind, error: Exception, arguments: dict[str, Any]) -> str | None:  # noqa: ARG002
        # The remote reports bad credentials with "login" wording; the generic
        # "please log in first" advice would be circular here.
        if kind is ErrorKind.AUTHENTICATION_REQUIRED:
            return f"Login failed: {message_of(error)}"
        return None


class CompleteTwoFactorArguments(ToolArguments):
    verification_code: str = Field(description="The 2FA code from SMS or the authenticator app.")

    @field_validator("verification_code")
    @classmethod
    def validate_code(cls, v: str) -> str:
        return require_text(v, "verification_code")


class CompleteTwoFactorTool(Tool[CompleteTwoFactorArguments]):
    name = "instagram_complete_2fa"
    description = "Complete a login that requires two-factor authentication by submitting the verification code."
    arguments_model = CompleteTwoFactorArguments

    async def execute(self, args: CompleteTwoFactorArguments) -> ToolResult:
        challenge = self.auth.current_challenge()
        await self.auth.complete_two_factor(args.verification_code)
        profile = await self.auth.current_user()
        method = f"2FA Method: {_method_name(challenge)}\n" if challenge is not None else ""
        return ToolResult.success(
            f"Successfully completed 2FA login to Instagram!\n\n{_account_summary(profile)}\n{method}\n{SESSION_SAVED_NOTE}",
        )

    def failure_message(self, kind: ErrorKind, error: Exception, arguments: dict[str, Any]) -> str | None:  # noqa: ARG002
        if kind is not ErrorKind.UNKNOWN:
            return None
        message = message_of(error).lower()
        if "code" in message or "verification" in message:
            return (
                "Invalid verification code. The pending login has been cleared; "
                "please call 'instagram_login' again to receive a new code."
            )
        return None


class LogoutTool(Tool[NoArguments]):
    name = "instagram_logout"
    description = "Log out of Instagram and delete the saved session."

    async def execute(self, args: NoArguments) -> ToolResult:  # noqa: ARG002
        username = self.auth.username
        was_active = await self.auth.logout()
        if not was_active:
            return ToolResult.success("Already logged out. No active session to clear.")
        account = f" ({username})" if username else ""
        return ToolResult.success(
            f"Successfully logged out from Instagram{account}.\n\n"
            "Session has been cleared. You will need to login again to use Instagram features.",
        )


class CurrentUserProfileTool(Tool[NoArguments]):
    name = "instagram_get_current_user_profile"
    description = "Get the profile of the logged-in Instagram account, including private contact details."
    subject = "User"

    async def execute(self, args: NoArguments) -> ToolResult:  # noqa: ARG002
        profile = await self.auth.current_user()
        title = f"Your Profile (@{profile.get('username') or 'N/A'}):"
        return ToolResult.success(format_profile(profile, title=title, include_private_contact=True))
