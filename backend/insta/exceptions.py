from insta.classifier import ErrorKind


class InstaToolError(Exception):
    """Base class for errors raised locally by the tool service."""

    kind: ErrorKind = ErrorKind.UNKNOWN


class ToolArgumentError(InstaToolError, ValueError):
    """Missing or malformed tool argument."""

    kind = ErrorKind.VALIDATION


class AuthenticationRequiredError(InstaToolError):
    """Operation needs an authenticated session."""

    kind = ErrorKind.AUTHENTICATION_REQUIRED

    def __init__(self, message: str = "Not logged in. Please use the instagram_login tool to authenticate first.") -> None:
        super().__init__(message)


class NoPendingChallengeError(InstaToolError):
    """Two-factor completion attempted with no outstanding challenge."""

    kind = ErrorKind.NO_PENDING_CHALLENGE

    def __init__(
        self,
        message: str = (
            "No pending 2FA login found. Please call 'instagram_login' first to start the login process."
        ),
    ) -> None:
        super().__init__(message)


class ToolNotFoundError(LookupError):
    """Dispatch requested a tool name that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name
