import re

from pydantic import BaseModel, Field, field_validator

from app.services.sms_service import ChannelEnum

PHONE_PATTERN = re.compile(r"^\+[1-9]\d{7,14}$")


def normalize_phone_number(value: str) -> str:
    cleaned = re.sub(r"[\s\-()]", "", value or "")
    if cleaned and not cleaned.startswith("+"):
        cleaned = f"+{cleaned}"
    if not PHONE_PATTERN.match(cleaned):
        raise ValueError("Please provide a valid phone number")
    return cleaned


class RequestOtp(BaseModel):
    phone_number: str
    channel: ChannelEnum = ChannelEnum.sms

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, value: str) -> str:
        return normalize_phone_number(value)


class VerifyOtp(BaseModel):
    phone_number: str
    otp: str = Field(min_length=6, max_length=6, pattern=r"^\d{6}$")

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, value: str) -> str:
        return normalize_phone_number(value)


class ProfileSummary(BaseModel):
    id: int
    phone_number: str
    full_name: str
    email: str | None
    profile_completed: bool
    profile_completion_percentage: int
    is_phone_verified: bool

    model_config = {"from_attributes": True}
