import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure predictable environment variables for tests before importing the app.
BASE_DIR = Path(__file__).resolve().parents[1]
TEST_DB_PATH = BASE_DIR / "test.db"

if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("DATABASE_URL", f"sqlite:///{TEST_DB_PATH}")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("OTP_DEV_ECHO", "false")
os.environ.setdefault("ENVIRONMENT", "test")

import app.main as main  # noqa: E402  (import after env vars are set)
from app.database import Base, SessionLocal, engine  # noqa: E402
from app.services.sms_service import DeliveryReceipt, get_dispatcher  # noqa: E402


class FakeDispatcher:
    """Records outbound OTP messages instead of calling Twilio."""

    def __init__(self, delivered: bool = True):
        self.delivered = delivered
        self.sent: list[dict] = []

    def send(self, recipient, message, channel="sms"):
        channel_value = getattr(channel, "value", channel)
        self.sent.append({"recipient": recipient, "message": message, "channel": channel_value})
        if not self.delivered:
            return DeliveryReceipt(delivered=False, channel=channel_value, reason="provider down")
        return DeliveryReceipt(delivered=True, channel=channel_value, message_id=f"SM{len(self.sent)}")

    def send_otp(self, recipient, code, channel, expiry_minutes):
        receipt = self.send(recipient, f"Your Job Portal OTP is: {code}", channel)
        self.sent[-1]["code"] = code
        return receipt

    @property
    def last_code(self) -> str:
        return self.sent[-1]["code"]


@pytest.fixture()
def dispatcher():
    return FakeDispatcher()


@pytest.fixture()
def client(dispatcher):
    """Provide a TestClient on fresh tables with OTP delivery faked out."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    main.app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    with TestClient(main.app) as test_client:
        yield test_client

    main.app.dependency_overrides.clear()


@pytest.fixture()
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def login(client, dispatcher):
    """Run the OTP flow for a phone number and return its bearer headers."""

    def _login(phone_number: str = "+919876543210") -> dict:
        response = client.post("/auth/otp/request", json={"phone_number": phone_number, "channel": "sms"})
        assert response.status_code == 200
        response = client.post(
            "/auth/otp/verify",
            json={"phone_number": phone_number, "otp": dispatcher.last_code},
        )
        assert response.status_code == 200
        token = response.json()["data"]["access_token"]
        return {"Authorization": f"Bearer {token}"}

    return _login
