import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.database import get_db
from app.models.profile import Profile
from app.schemas.auth import ProfileSummary, RequestOtp, VerifyOtp
from app.schemas.profile import ProfileResponse
from app.services.auth_middleware import get_current_profile
from app.services.auth_service import SessionIssuer, get_session_issuer
from app.services.otp_service import OtpAuthenticator, get_otp_authenticator
from app.services.sms_service import SmsDispatcher, get_dispatcher
from app.utils.response import create_response, handle_exception

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger(__name__)


def _find_profile(db: Session, phone_number: str) -> Profile | None:
    return db.query(Profile).filter(Profile.phone_number == phone_number).first()


def _get_or_create_profile(db: Session, phone_number: str) -> Profile:
    profile = _find_profile(db, phone_number)
    if profile:
        return profile

    profile = Profile(phone_number=phone_number)
    db.add(profile)
    try:
        db.flush()
    except IntegrityError:
        # A concurrent request created the row first.
        db.rollback()
        logger.info("Profile for new phone number created concurrently; reusing it")
        return _find_profile(db, phone_number)
    logger.info("Created profile_id=%s for new phone number", profile.id)
    return profile


def _issue_and_dispatch(
    db: Session,
    profile: Profile,
    body: RequestOtp,
    authenticator: OtpAuthenticator,
    dispatcher: SmsDispatcher,
    config: Settings,
) -> dict:
    code = authenticator.issue(profile)
    db.commit()
    db.refresh(profile)

    # Delivery failure leaves the challenge in place; the caller sees it in `delivery`.
    receipt = dispatcher.send_otp(profile.phone_number, code, body.channel, authenticator.expiry_minutes)
    if not receipt.delivered:
        logger.warning(
            "OTP delivery failed for profile_id=%s via %s: %s",
            profile.id,
            receipt.channel,
            receipt.reason,
        )

    payload = {
        "phone_number": profile.phone_number,
        "channel": body.channel.value,
        "expires_in_minutes": authenticator.expiry_minutes,
        "delivery": receipt.as_dict(),
    }
    if config.OTP_DEV_ECHO:
        payload["otp"] = code
    return payload


# Unified OTP request for registration + login
@router.post("/otp/request")
def request_otp(
    body: RequestOtp,
    db: Session = Depends(get_db),
    authenticator: OtpAuthenticator = Depends(get_otp_authenticator),
    dispatcher: SmsDispatcher = Depends(get_dispatcher),
    config: Settings = Depends(get_settings),
):
    try:
        profile = _get_or_create_profile(db, body.phone_number)
        payload = _issue_and_dispatch(db, profile, body, authenticator, dispatcher, config)
        return create_response(
            message=f"OTP sent successfully via {body.channel.value}",
            data=payload,
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/otp/resend")
def resend_otp(
    body: RequestOtp,
    db: Session = Depends(get_db),
    authenticator: OtpAuthenticator = Depends(get_otp_authenticator),
    dispatcher: SmsDispatcher = Depends(get_dispatcher),
    config: Settings = Depends(get_settings),
):
    try:
        profile = _find_profile(db, body.phone_number)
        if not profile:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Phone number not found")

        payload = _issue_and_dispatch(db, profile, body, authenticator, dispatcher, config)
        return create_response(
            message=f"OTP resent successfully via {body.channel.value}",
            data=payload,
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/otp/verify")
def verify_otp(
    body: VerifyOtp,
    db: Session = Depends(get_db),
    authenticator: OtpAuthenticator = Depends(get_otp_authenticator),
    issuer: SessionIssuer = Depends(get_session_issuer),
):
    try:
        profile = _find_profile(db, body.phone_number)
        if not profile:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Phone number not found")

        result = authenticator.verify(profile, body.otp)
        if not result.success:
            # Persist the attempt counter so the limit holds across retries.
            db.commit()
            return create_response(
                message=result.message,
                data={"reason": result.failure.value},
                status_code=status.HTTP_400_BAD_REQUEST
            )

        if not profile.is_active:
            db.commit()
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is deactivated")

        profile.last_login = datetime.utcnow()
        db.commit()
        db.refresh(profile)

        token = issuer.mint(profile)
        return create_response(
            message=result.message,
            data={
                "access_token": token,
                "token_type": "bearer",
                "user": ProfileSummary.model_validate(profile).model_dump(),
            },
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/me")
def get_me(current_profile: Profile = Depends(get_current_profile)):
    try:
        return create_response(
            message="Profile fetched successfully",
            data={"user": ProfileResponse.model_validate(current_profile).model_dump()},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/logout")
def logout_user():
    # Tokens are stateless; the client discards its copy.
    return create_response(
        message="Logged out successfully",
        data=None,
        status_code=status.HTTP_200_OK
    )
