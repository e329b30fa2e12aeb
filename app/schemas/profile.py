from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

MAX_PREFERRED_LOCATIONS = 3


class GenderEnum(str, Enum):
    male = "male"
    female = "female"
    other = "other"


class ProficiencyEnum(str, Enum):
    basic = "basic"
    intermediate = "intermediate"
    fluent = "fluent"
    native = "native"


class WorkAvailabilityEnum(str, Enum):
    full_time = "full-time"
    part_time = "part-time"
    contract = "contract"
    freelance = "freelance"
    internship = "internship"


class ExperienceLevelEnum(str, Enum):
    fresher = "fresher"
    experienced = "experienced"


class SalaryPeriodEnum(str, Enum):
    monthly = "monthly"
    yearly = "yearly"


class SkillLevelEnum(str, Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"
    expert = "expert"


class JobCategoryEnum(str, Enum):
    security = "security"
    housekeeping = "housekeeping"
    hospitality = "hospitality"
    retail = "retail"
    food_service = "food-service"
    logistics = "logistics"
    construction = "construction"
    healthcare = "healthcare"
    education = "education"
    other = "other"


class ShiftEnum(str, Enum):
    day = "day"
    night = "night"
    rotational = "rotational"


class JoiningAvailabilityEnum(str, Enum):
    immediate = "immediate"
    within_week = "within-week"
    within_month = "within-month"


def _trimmed(value: str | None, minimum: int, label: str) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if len(value) < minimum:
        raise ValueError(f"{label} must be at least {minimum} characters long")
    return value


def _unique(values: list | None) -> list | None:
    if values is None:
        return None
    return list(dict.fromkeys(values))


# ---------------------------------------------------------------------------
# Personal details and language
# ---------------------------------------------------------------------------

class PersonalDetailsUpdate(BaseModel):
    full_name: str | None = None
    city: str | None = None
    email: EmailStr | None = None
    date_of_birth: date | None = None
    gender: GenderEnum | None = None

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, value: str | None) -> str | None:
        return _trimmed(value, 2, "Full name")

    @field_validator("city")
    @classmethod
    def validate_city(cls, value: str | None) -> str | None:
        return _trimmed(value, 2, "City")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return value.strip().lower() if value else value

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, value: date | None) -> date | None:
        if value and value > date.today():
            raise ValueError("Date of birth cannot be in the future")
        return value


class LanguagePreferenceUpdate(BaseModel):
    selected_language: str

    @field_validator("selected_language")
    @classmethod
    def validate_language(cls, value: str) -> str:
        return _trimmed(value, 2, "Language").lower()


class LanguageKnown(BaseModel):
    language: str = Field(min_length=1)
    proficiency: ProficiencyEnum = ProficiencyEnum.basic


# ---------------------------------------------------------------------------
# Location and availability
# ---------------------------------------------------------------------------

class PreferredLocation(BaseModel):
    city: str
    priority: int = Field(ge=1, le=MAX_PREFERRED_LOCATIONS)

    @field_validator("city")
    @classmethod
    def validate_city(cls, value: str) -> str:
        return _trimmed(value, 2, "City name")


class LocationPreferencesUpdate(BaseModel):
    preferred_locations: list[PreferredLocation] | None = Field(
        default=None, min_length=1, max_length=MAX_PREFERRED_LOCATIONS
    )
    willing_to_relocate: bool | None = None

    @field_validator("preferred_locations")
    @classmethod
    def validate_unique_priorities(cls, value: list[PreferredLocation] | None):
        if value is None:
            return value
        priorities = [location.priority for location in value]
        if len(set(priorities)) != len(priorities):
            raise ValueError("Each location must have a unique priority")
        return value


class WorkAvailabilityUpdate(BaseModel):
    work_availability: list[WorkAvailabilityEnum] = Field(min_length=1)

    @field_validator("work_availability")
    @classmethod
    def dedupe_tags(cls, value: list) -> list:
        return _unique(value)


class NotificationSettingsUpdate(BaseModel):
    allow_notifications: bool | None = None
    email_notifications: bool | None = None
    sms_notifications: bool | None = None
    job_alerts: bool | None = None
    marketing_notifications: bool | None = None


# ---------------------------------------------------------------------------
# Experience and salary
# ---------------------------------------------------------------------------

class TimePeriod(BaseModel):
    from_date: date = Field(alias="from")
    to_date: date | None = Field(default=None, alias="to")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def validate_range(self):
        if self.to_date and self.to_date < self.from_date:
            raise ValueError("'to' date cannot be before 'from' date")
        return self


class ExperienceEntry(BaseModel):
    employer_name: str = Field(min_length=1)
    role: str = Field(min_length=1)
    time_period: TimePeriod
    currently_working: bool = False
    description: str | None = None


class Salary(BaseModel):
    amount: float | None = Field(default=None, ge=0)
    period: SalaryPeriodEnum = SalaryPeriodEnum.monthly


class ExperienceUpdate(BaseModel):
    experience_level: ExperienceLevelEnum
    total_experience_years: int | None = Field(default=None, ge=0, le=50)
    experiences: list[ExperienceEntry] | None = None
    last_drawn_salary: Salary | None = None
    expected_salary: Salary | None = None


# ---------------------------------------------------------------------------
# Skills and job preferences
# ---------------------------------------------------------------------------

class SkillItem(BaseModel):
    name: str
    level: SkillLevelEnum = SkillLevelEnum.beginner

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _trimmed(value, 1, "Skill name")


class Certification(BaseModel):
    name: str = Field(min_length=1)
    issuing_organization: str | None = None
    issue_date: date | None = None
    expiry_date: date | None = None
    credential_id: str | None = None


class SkillsUpdate(BaseModel):
    skills: list[SkillItem] | None = None
    certifications: list[Certification] | None = None
    languages_known: list[LanguageKnown] | None = None


class JobPreferencesUpdate(BaseModel):
    job_categories: list[JobCategoryEnum] | None = None
    preferred_shifts: list[ShiftEnum] | None = None
    available_for_joining: JoiningAvailabilityEnum | None = None
    accommodation_required: bool | None = None

    @field_validator("job_categories", "preferred_shifts")
    @classmethod
    def dedupe_tags(cls, value: list | None) -> list | None:
        return _unique(value)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class ProfileResponse(BaseModel):
    id: int
    phone_number: str
    is_phone_verified: bool
    email: str | None
    is_email_verified: bool
    full_name: str
    date_of_birth: date | None
    age: int | None
    gender: str | None
    city: str
    selected_language: str
    languages_known: list[dict]
    preferred_locations: list[dict]
    willing_to_relocate: bool
    work_availability: list[str]
    experience_level: str
    total_experience_years: int
    experiences: list[dict]
    last_drawn_salary: dict
    expected_salary: dict
    skills: list[dict]
    certifications: list[dict]
    job_categories: list[str]
    preferred_shifts: list[str]
    available_for_joining: str
    accommodation_required: bool
    notification_settings: dict
    profile_completed: bool
    profile_completion_percentage: int
    is_active: bool
    last_login: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
