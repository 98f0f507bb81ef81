from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class AuthState(StrEnum):
    UNINITIALIZED = "uninitialized"
    RESTORING = "restoring"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"
    PENDING_TWO_FACTOR = "pending_two_factor"


class TwoFactorMethod(StrEnum):
    TOTP = "totp"
    SMS = "sms"


@dataclass(frozen=True)
class TwoFactorChallenge:
    """One in-flight two-factor handshake."""

    username: str
    challenge_id: str
    method: TwoFactorMethod
    totp_enabled: bool

    @classmethod
    def from_prompt(cls, username: str, challenge_id: str, *, totp_enabled: bool) -> TwoFactorChallenge:
        method = TwoFactorMethod.TOTP if totp_enabled else TwoFactorMethod.SMS
        return cls(username=username, challenge_id=challenge_id, method=method, totp_enabled=totp_enabled)


@dataclass(frozen=True)
class LoggedIn:
    username: str


@dataclass(frozen=True)
class TwoFactorRequired:
    challenge: TwoFactorChallenge


@dataclass(frozen=True)
class LoginFailed:
    error: Exception


LoginOutcome = LoggedIn | TwoFactorRequired | LoginFailed
