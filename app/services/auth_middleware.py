import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.models.profile import Profile
from app.services.auth_service import InvalidCredentialError, SessionIssuer, get_session_issuer

logger = logging.getLogger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _resolve_profile(token: str, db: Session, issuer: SessionIssuer) -> Profile:
    try:
        payload = issuer.decode(token)
    except InvalidCredentialError as exc:
        raise _unauthorized(str(exc))

    profile = db.query(Profile).filter(Profile.id == int(payload["sub"])).first()
    if not profile:
        raise _unauthorized("Token is not valid - user not found")

    # Phone numbers never change, so a mismatch means the token was not minted for this row.
    if profile.phone_number != payload.get("phone_number"):
        raise _unauthorized("Token is not valid - user not found")

    if not profile.is_active:
        logger.info("Rejected token for deactivated profile_id=%s", profile.id)
        raise _unauthorized("Account is deactivated")

    return profile


def get_current_profile(
    credentials: HTTPAuthorizationCredentials | None = Depends(settings.bearer_scheme),
    db: Session = Depends(get_db),
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> Profile:
    if credentials is None or not credentials.credentials:
        raise _unauthorized("No token provided, access denied")
    return _resolve_profile(credentials.credentials, db, issuer)
