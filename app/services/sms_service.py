import logging
from dataclasses import dataclass
from enum import Enum

from fastapi import Depends
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)

OTP_MESSAGE_TEMPLATE = (
    "Your Job Portal OTP is: {code}. This OTP will expire in {minutes} minutes. "
    "Do not share this OTP with anyone."
)
DELIVERY_FAILED_REASON = "Message could not be delivered"


def mask_number(number: str | None) -> str:
    """Hide all but the last four digits of a phone number for log output."""
    if not number:
        return ""
    visible = number[-4:]
    return "*" * max(len(number) - len(visible), 0) + visible


class ChannelEnum(str, Enum):
    sms = "sms"
    whatsapp = "whatsapp"


@dataclass(frozen=True)
class DeliveryReceipt:
    delivered: bool
    channel: str
    message_id: str | None = None
    reason: str | None = None

    def as_dict(self) -> dict:
        payload = {"status": "delivered" if self.delivered else "failed", "channel": self.channel}
        if self.message_id:
            payload["message_id"] = self.message_id
        if self.reason:
            payload["reason"] = self.reason
        return payload


class SmsDispatcher:
    """Sends short text messages through Twilio over SMS or WhatsApp.

    ``send`` never raises: every failure comes back as an undelivered receipt
    so callers can decide how to surface it.
    """

    def __init__(self, account_sid: str | None, auth_token: str | None, from_number: str | None):
        self.from_number = from_number
        self.client = None
        if account_sid and auth_token and from_number:
            self.client = Client(account_sid, auth_token)

    @classmethod
    def from_settings(cls, config: Settings) -> "SmsDispatcher":
        return cls(config.TWILIO_ACCOUNT_SID, config.TWILIO_AUTH_TOKEN, config.TWILIO_PHONE_NUMBER)

    def send(self, recipient: str, message: str, channel: ChannelEnum | str = ChannelEnum.sms) -> DeliveryReceipt:
        channel_value = channel.value if isinstance(channel, ChannelEnum) else channel
        if not self.client:
            logger.warning("Twilio credentials not configured; %s message to %s not sent", channel_value, mask_number(recipient))
            return DeliveryReceipt(delivered=False, channel=channel_value, reason="Twilio not configured")

        sender, to = self.from_number, recipient
        if channel_value == ChannelEnum.whatsapp.value:
            sender, to = f"whatsapp:{sender}", f"whatsapp:{recipient}"

        try:
            sent = self.client.messages.create(body=message, from_=sender, to=to)
        except TwilioException as exc:
            logger.warning("Twilio rejected %s message to %s: %s", channel_value, mask_number(recipient), exc)
            return DeliveryReceipt(delivered=False, channel=channel_value, reason=DELIVERY_FAILED_REASON)
        except Exception:
            logger.exception("Failed to send %s message to %s", channel_value, mask_number(recipient))
            return DeliveryReceipt(delivered=False, channel=channel_value, reason=DELIVERY_FAILED_REASON)

        logger.info("Message sent via %s sid=%s", channel_value, sent.sid)
        return DeliveryReceipt(delivered=True, channel=channel_value, message_id=sent.sid)

    def send_otp(self, recipient: str, code: str, channel: ChannelEnum | str, expiry_minutes: int) -> DeliveryReceipt:
        body = OTP_MESSAGE_TEMPLATE.format(code=code, minutes=expiry_minutes)
        return self.send(recipient, body, channel)


def get_dispatcher(config: Settings = Depends(get_settings)) -> SmsDispatcher:
    return SmsDispatcher.from_settings(config)
