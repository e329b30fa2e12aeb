from datetime import datetime, timedelta

from fastapi import Depends
from jose import JWTError, jwt

from app.config import Settings, get_settings


class InvalidCredentialError(Exception):
    """Raised when a bearer token cannot be trusted."""


class SessionIssuer:
    def __init__(self, secret: str | None, algorithm: str = "HS256", expire_days: int = 30):
        if not secret:
            raise RuntimeError("JWT_SECRET is not configured")
        self.secret = secret
        self.algorithm = algorithm
        self.expire_delta = timedelta(days=expire_days)

    @classmethod
    def from_settings(cls, config: Settings) -> "SessionIssuer":
        return cls(config.JWT_SECRET, config.ALGORITHM, config.ACCESS_TOKEN_EXPIRE_DAYS)

    def mint(self, profile, now: datetime | None = None) -> str:
        issued_at = now or datetime.utcnow()
        payload = {
            "sub": str(profile.id),
            "phone_number": profile.phone_number,
            "iat": issued_at,
            "exp": issued_at + self.expire_delta,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> dict:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as exc:
            raise InvalidCredentialError("Invalid or expired token") from exc

        subject = payload.get("sub")
        if not subject or not str(subject).isdigit() or not payload.get("phone_number"):
            raise InvalidCredentialError("Invalid token payload")
        return payload


def get_session_issuer(config: Settings = Depends(get_settings)) -> SessionIssuer:
    return SessionIssuer.from_settings(config)
