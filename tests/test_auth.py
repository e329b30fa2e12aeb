from datetime import datetime, timedelta
from types import SimpleNamespace

from jose import jwt

from app import main
from app.config import Settings, get_settings
from app.models.profile import Profile
from app.routers import auth as auth_router
from app.services.auth_service import SessionIssuer
from app.services.otp_service import OtpAuthenticator, get_otp_authenticator

PHONE = "+10000000001"


def _request(client, phone=PHONE, channel="sms", path="/auth/otp/request"):
    return client.post(path, json={"phone_number": phone, "channel": channel})


def _verify(client, code, phone=PHONE):
    return client.post("/auth/otp/verify", json={"phone_number": phone, "otp": code})


def _wrong(code: str) -> str:
    # Issued codes are always >= 100000.
    return "000000" if code != "000000" else "111111"


def test_request_creates_fresher_profile(client, dispatcher, db_session):
    response = _request(client)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["phone_number"] == PHONE
    assert data["channel"] == "sms"
    assert data["expires_in_minutes"] == 10
    assert data["delivery"]["status"] == "delivered"
    assert "otp" not in data

    profile = db_session.query(Profile).filter(Profile.phone_number == PHONE).one()
    assert profile.experience_level == "fresher"
    assert profile.is_phone_verified is False
    assert profile.otp_attempts == 0
    assert profile.profile_completion_percentage == 10
    assert dispatcher.sent[-1]["recipient"] == PHONE


def test_whatsapp_channel_is_forwarded(client, dispatcher):
    response = _request(client, channel="whatsapp")

    assert response.status_code == 200
    assert dispatcher.sent[-1]["channel"] == "whatsapp"


def test_three_wrong_attempts_exhaust_challenge(client, dispatcher):
    _request(client)
    code = dispatcher.last_code

    for _ in range(3):
        response = _verify(client, _wrong(code))
        assert response.status_code == 400
        assert response.json()["data"]["reason"] == "invalid_code"

    response = _verify(client, code)

    assert response.status_code == 400
    assert response.json()["data"]["reason"] == "attempts_exhausted"
    assert response.json()["message"] == "Maximum OTP attempts exceeded"


def test_verify_returns_token_and_summary(client, dispatcher, db_session):
    _request(client)

    response = _verify(client, dispatcher.last_code)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["user"]["phone_number"] == PHONE
    assert data["user"]["is_phone_verified"] is True

    claims = jwt.get_unverified_claims(data["access_token"])
    assert claims["phone_number"] == PHONE
    assert claims["exp"] - claims["iat"] == 30 * 24 * 60 * 60

    profile = db_session.query(Profile).filter(Profile.phone_number == PHONE).one()
    assert profile.otp_code is None
    assert profile.last_login is not None


def test_code_is_accepted_only_once(client, dispatcher):
    _request(client)
    code = dispatcher.last_code

    assert _verify(client, code).status_code == 200
    response = _verify(client, code)

    assert response.status_code == 400
    assert response.json()["data"]["reason"] == "no_challenge"


def test_resend_replaces_previous_code(client, dispatcher):
    codes = iter(["111111", "222222"])
    main.app.dependency_overrides[get_otp_authenticator] = lambda: OtpAuthenticator(code_factory=lambda: next(codes))
    _request(client)

    response = _request(client, path="/auth/otp/resend")

    assert response.status_code == 200
    assert _verify(client, "111111").json()["data"]["reason"] == "invalid_code"
    assert _verify(client, "222222").status_code == 200


def test_resend_unknown_phone_is_not_found(client):
    response = _request(client, phone="+10000000999", path="/auth/otp/resend")

    assert response.status_code == 404
    assert response.json()["message"] == "Phone number not found"


def test_verify_unknown_phone_is_not_found(client):
    response = _verify(client, "123456", phone="+10000000999")

    assert response.status_code == 404


def test_expired_challenge_is_rejected(client, dispatcher, db_session):
    _request(client)
    profile = db_session.query(Profile).filter(Profile.phone_number == PHONE).one()
    profile.otp_expires_at = datetime.utcnow() - timedelta(seconds=1)
    db_session.commit()

    response = _verify(client, dispatcher.last_code)

    assert response.status_code == 400
    assert response.json()["data"]["reason"] == "expired"


def test_delivery_failure_keeps_challenge(client, dispatcher):
    dispatcher.delivered = False

    response = _request(client)

    assert response.status_code == 200
    delivery = response.json()["data"]["delivery"]
    assert delivery["status"] == "failed"
    assert delivery["reason"] == "provider down"
    assert _verify(client, dispatcher.last_code).status_code == 200


def test_dev_echo_returns_code(client, dispatcher):
    class EchoSettings(Settings):
        OTP_DEV_ECHO = True

    main.app.dependency_overrides[get_settings] = lambda: EchoSettings()

    response = _request(client)

    assert response.json()["data"]["otp"] == dispatcher.last_code


def test_invalid_request_payload_fails_validation(client):
    response = client.post("/auth/otp/request", json={"phone_number": "abc", "channel": "pigeon"})

    assert response.status_code == 400
    payload = response.json()
    assert payload["message"] == "Validation failed"
    fields = {error["field"] for error in payload["data"]["errors"]}
    assert fields == {"phone_number", "channel"}


def test_me_requires_token(client):
    response = client.get("/auth/me")

    assert response.status_code == 401
    assert response.json()["status"] == "error"


def test_me_rejects_malformed_and_foreign_tokens(client, login):
    login(PHONE)
    foreign = jwt.encode({"sub": "1", "phone_number": PHONE}, "other-secret", algorithm="HS256")

    for token in ("not-a-token", foreign):
        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


def _issuer() -> SessionIssuer:
    return SessionIssuer(get_settings().JWT_SECRET)


def _me(client, token):
    return client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})


def test_me_rejects_token_for_missing_profile(client):
    token = _issuer().mint(SimpleNamespace(id=999, phone_number=PHONE))

    response = _me(client, token)

    assert response.status_code == 401
    assert response.json()["message"] == "Token is not valid - user not found"


def test_me_rejects_expired_token(client, login, db_session):
    login(PHONE)
    profile = db_session.query(Profile).filter(Profile.phone_number == PHONE).one()
    token = _issuer().mint(profile, now=datetime.utcnow() - timedelta(days=31))

    response = _me(client, token)

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


def test_me_rejects_token_with_empty_signature(client, login, db_session):
    login(PHONE)
    profile = db_session.query(Profile).filter(Profile.phone_number == PHONE).one()
    header, payload, _ = _issuer().mint(profile).split(".")

    response = _me(client, f"{header}.{payload}.")

    assert response.status_code == 401


def test_phone_number_without_plus_resolves_to_same_profile(client, db_session):
    first = _request(client, phone="919876543210")
    second = _request(client, phone="+91 98765-43210")

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["data"]["phone_number"] == "+919876543210"
    assert db_session.query(Profile).filter(Profile.phone_number.like("%9876543210")).count() == 1


def test_concurrent_first_request_reuses_existing_profile(client, db_session, monkeypatch):
    db_session.add(Profile(phone_number=PHONE))
    db_session.commit()
    lookups = []
    find_profile = auth_router._find_profile

    def stale_first_lookup(db, phone_number):
        lookups.append(phone_number)
        if len(lookups) == 1:
            return None
        return find_profile(db, phone_number)

    monkeypatch.setattr(auth_router, "_find_profile", stale_first_lookup)

    response = _request(client)

    assert response.status_code == 200
    assert len(lookups) == 2
    assert db_session.query(Profile).filter(Profile.phone_number == PHONE).count() == 1


def test_me_returns_profile_without_challenge(client, login):
    headers = login(PHONE)

    response = client.get("/auth/me", headers=headers)

    assert response.status_code == 200
    user = response.json()["data"]["user"]
    assert user["phone_number"] == PHONE
    assert user["selected_language"] == "english"
    assert user["notification_settings"]["marketing_notifications"] is False
    assert "otp_code" not in user


def test_logout_acknowledges(client):
    response = client.post("/auth/logout")

    assert response.status_code == 200
    assert response.json()["message"] == "Logged out successfully"
