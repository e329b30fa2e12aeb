from datetime import date, datetime

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Float, Integer, String, event

from app.database import Base
from app.services.completion_service import score

LIST_FIELDS = (
    "languages_known",
    "preferred_locations",
    "work_availability",
    "experiences",
    "skills",
    "certifications",
    "job_categories",
    "preferred_shifts",
)


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)

    # Identity and contact
    phone_number = Column(String, unique=True, index=True, nullable=False)
    is_phone_verified = Column(Boolean, default=False, nullable=False)
    email = Column(String, unique=True, index=True, nullable=True)
    is_email_verified = Column(Boolean, default=False, nullable=False)

    # Personal details
    full_name = Column(String, default="", nullable=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String, nullable=True)
    city = Column(String, default="", nullable=False, index=True)

    # Language
    selected_language = Column(String, default="english", nullable=False)
    languages_known = Column(JSON, default=list, nullable=False)

    # Location and availability
    preferred_locations = Column(JSON, default=list, nullable=False)
    willing_to_relocate = Column(Boolean, default=False, nullable=False)
    work_availability = Column(JSON, default=list, nullable=False)

    # Experience and salary
    experience_level = Column(String, default="fresher", nullable=False)
    total_experience_years = Column(Integer, default=0, nullable=False)
    experiences = Column(JSON, default=list, nullable=False)
    last_drawn_salary_amount = Column(Float, nullable=True)
    last_drawn_salary_period = Column(String, default="monthly", nullable=False)
    expected_salary_amount = Column(Float, nullable=True)
    expected_salary_period = Column(String, default="monthly", nullable=False)

    # Skills
    skills = Column(JSON, default=list, nullable=False)
    certifications = Column(JSON, default=list, nullable=False)

    # Job preferences
    job_categories = Column(JSON, default=list, nullable=False)
    preferred_shifts = Column(JSON, default=list, nullable=False)
    available_for_joining = Column(String, default="within-week", nullable=False)
    accommodation_required = Column(Boolean, default=False, nullable=False)

    # Notification settings
    allow_notifications = Column(Boolean, default=True, nullable=False)
    email_notifications = Column(Boolean, default=True, nullable=False)
    sms_notifications = Column(Boolean, default=True, nullable=False)
    job_alerts = Column(Boolean, default=True, nullable=False)
    marketing_notifications = Column(Boolean, default=False, nullable=False)

    # Derived completion state, maintained by the mapper events below
    profile_completed = Column(Boolean, default=False, nullable=False)
    profile_completion_percentage = Column(Integer, default=0, nullable=False)

    # OTP challenge; all three are NULL when no challenge is live
    otp_code = Column(String, nullable=True)
    otp_expires_at = Column(DateTime, nullable=True)
    otp_attempts = Column(Integer, nullable=True)

    # Account status
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __init__(self, **kwargs):
        # Column defaults only land at INSERT time; the scorer needs them before that.
        kwargs.setdefault("full_name", "")
        kwargs.setdefault("city", "")
        kwargs.setdefault("experience_level", "fresher")
        for field in LIST_FIELDS:
            kwargs.setdefault(field, [])
        super().__init__(**kwargs)

    @property
    def age(self) -> int | None:
        if not self.date_of_birth:
            return None
        today = date.today()
        birth = self.date_of_birth
        years = today.year - birth.year
        if (today.month, today.day) < (birth.month, birth.day):
            years -= 1
        return years

    @property
    def notification_settings(self) -> dict:
        return {
            "allow_notifications": self.allow_notifications,
            "email_notifications": self.email_notifications,
            "sms_notifications": self.sms_notifications,
            "job_alerts": self.job_alerts,
            "marketing_notifications": self.marketing_notifications,
        }

    @property
    def last_drawn_salary(self) -> dict:
        return {"amount": self.last_drawn_salary_amount, "period": self.last_drawn_salary_period}

    @property
    def expected_salary(self) -> dict:
        return {"amount": self.expected_salary_amount, "period": self.expected_salary_period}


@event.listens_for(Profile, "before_insert")
@event.listens_for(Profile, "before_update")
def _refresh_completion(mapper, connection, target: Profile) -> None:
    result = score(target)
    target.profile_completion_percentage = result.percentage
    target.profile_completed = result.completed
