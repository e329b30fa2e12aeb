"""One-time code lifecycle for phone verification.

A profile carries at most one challenge. The state is modelled explicitly as
``NoChallenge`` or ``PendingChallenge``; the transition functions are pure and
return the next state, and ``OtpAuthenticator`` maps that state onto the
profile's ``otp_*`` columns.
"""

import logging
import random
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Union

from fastapi import Depends

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)

OTP_MIN = 100000
OTP_MAX = 999999

_rng = random.SystemRandom()


@dataclass(frozen=True)
class NoChallenge:
    pass


@dataclass(frozen=True)
class PendingChallenge:
    code: str
    expires_at: datetime
    attempts: int = 0


ChallengeState = Union[NoChallenge, PendingChallenge]


class ChallengeFailure(str, Enum):
    no_challenge = "no_challenge"
    expired = "expired"
    attempts_exhausted = "attempts_exhausted"
    invalid_code = "invalid_code"


FAILURE_MESSAGES = {
    ChallengeFailure.no_challenge: "No OTP found",
    ChallengeFailure.expired: "OTP has expired",
    ChallengeFailure.attempts_exhausted: "Maximum OTP attempts exceeded",
    ChallengeFailure.invalid_code: "Invalid OTP",
}


@dataclass(frozen=True)
class VerificationResult:
    state: ChallengeState
    failure: ChallengeFailure | None = None

    @property
    def success(self) -> bool:
        return self.failure is None

    @property
    def message(self) -> str:
        if self.failure is None:
            return "OTP verified successfully"
        return FAILURE_MESSAGES[self.failure]


def generate_otp_code() -> str:
    return str(_rng.randint(OTP_MIN, OTP_MAX))


def issue_challenge(
    now: datetime,
    ttl: timedelta,
    code_factory: Callable[[], str] = generate_otp_code,
) -> tuple[PendingChallenge, str]:
    code = code_factory()
    return PendingChallenge(code=code, expires_at=now + ttl, attempts=0), code


def verify_challenge(
    state: ChallengeState,
    candidate: str,
    now: datetime,
    max_attempts: int = 3,
) -> VerificationResult:
    if not isinstance(state, PendingChallenge):
        return VerificationResult(state=state, failure=ChallengeFailure.no_challenge)

    if now >= state.expires_at:
        return VerificationResult(state=state, failure=ChallengeFailure.expired)

    if state.attempts >= max_attempts:
        return VerificationResult(state=state, failure=ChallengeFailure.attempts_exhausted)

    if candidate != state.code:
        return VerificationResult(
            state=replace(state, attempts=state.attempts + 1),
            failure=ChallengeFailure.invalid_code,
        )

    return VerificationResult(state=NoChallenge())


def challenge_from_profile(profile) -> ChallengeState:
    if not profile.otp_code or profile.otp_expires_at is None:
        return NoChallenge()
    return PendingChallenge(
        code=profile.otp_code,
        expires_at=profile.otp_expires_at,
        attempts=profile.otp_attempts or 0,
    )


def store_challenge(profile, state: ChallengeState) -> None:
    if isinstance(state, PendingChallenge):
        profile.otp_code = state.code
        profile.otp_expires_at = state.expires_at
        profile.otp_attempts = state.attempts
    else:
        profile.otp_code = None
        profile.otp_expires_at = None
        profile.otp_attempts = None


class OtpAuthenticator:
    """Issues and verifies challenges against a profile record."""

    def __init__(
        self,
        expiry_minutes: int = 10,
        max_attempts: int = 3,
        clock: Callable[[], datetime] = datetime.utcnow,
        code_factory: Callable[[], str] = generate_otp_code,
    ):
        self.ttl = timedelta(minutes=expiry_minutes)
        self.expiry_minutes = expiry_minutes
        self.max_attempts = max_attempts
        self.clock = clock
        self.code_factory = code_factory

    @classmethod
    def from_settings(cls, config: Settings) -> "OtpAuthenticator":
        return cls(expiry_minutes=config.OTP_EXPIRY_MINUTES, max_attempts=config.OTP_MAX_ATTEMPTS)

    def issue(self, profile) -> str:
        # Re-issuance is never throttled; any live challenge is replaced.
        challenge, code = issue_challenge(self.clock(), self.ttl, self.code_factory)
        store_challenge(profile, challenge)
        logger.info("Issued OTP challenge for profile_id=%s expires_at=%s", profile.id, challenge.expires_at)
        return code

    def verify(self, profile, candidate: str) -> VerificationResult:
        result = verify_challenge(
            challenge_from_profile(profile),
            candidate,
            self.clock(),
            self.max_attempts,
        )
        store_challenge(profile, result.state)
        if result.success:
            profile.is_phone_verified = True
            logger.info("OTP verified for profile_id=%s", profile.id)
        else:
            logger.info("OTP verification failed for profile_id=%s reason=%s", profile.id, result.failure.value)
        return result


def get_otp_authenticator(config: Settings = Depends(get_settings)) -> OtpAuthenticator:
    return OtpAuthenticator.from_settings(config)
