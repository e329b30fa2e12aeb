import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.profile import Profile
from app.schemas.profile import (
    ExperienceUpdate,
    JobPreferencesUpdate,
    LanguagePreferenceUpdate,
    LocationPreferencesUpdate,
    NotificationSettingsUpdate,
    PersonalDetailsUpdate,
    SkillsUpdate,
    WorkAvailabilityUpdate,
)

logger = logging.getLogger(__name__)

EMAIL_CONFLICT_MESSAGE = "Email is already registered with another account"


def _json_list(items) -> list:
    return [item.model_dump(mode="json", by_alias=True) for item in items]


def _enum_values(items) -> list[str]:
    return [item.value for item in items]


def _commit(db: Session, profile: Profile) -> Profile:
    """Persist the pending changes; completion is rescored inside the same flush."""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Unique constraint violated while updating profile_id=%s", profile.id)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_CONFLICT_MESSAGE)
    db.refresh(profile)
    return profile


def _with_completion(profile: Profile, section: dict) -> dict:
    section["profile_completion_percentage"] = profile.profile_completion_percentage
    return section


def update_personal_details(db: Session, profile: Profile, body: PersonalDetailsUpdate) -> dict:
    changes = body.model_dump(exclude_none=True)

    email = changes.pop("email", None)
    if email and email != profile.email:
        taken = (
            db.query(Profile.id)
            .filter(Profile.email == email, Profile.id != profile.id)
            .first()
        )
        if taken:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_CONFLICT_MESSAGE)
        profile.email = email
        profile.is_email_verified = False

    if "gender" in changes:
        changes["gender"] = changes["gender"].value
    for field, value in changes.items():
        setattr(profile, field, value)

    _commit(db, profile)
    logger.info("Personal details updated for profile_id=%s", profile.id)
    return _with_completion(profile, {
        "id": profile.id,
        "full_name": profile.full_name,
        "city": profile.city,
        "email": profile.email,
        "date_of_birth": profile.date_of_birth,
        "gender": profile.gender,
        "age": profile.age,
    })


def update_language(db: Session, profile: Profile, body: LanguagePreferenceUpdate) -> dict:
    profile.selected_language = body.selected_language
    _commit(db, profile)
    return _with_completion(profile, {"selected_language": profile.selected_language})


def update_location_preferences(db: Session, profile: Profile, body: LocationPreferencesUpdate) -> dict:
    if body.preferred_locations is not None:
        ordered = sorted(body.preferred_locations, key=lambda location: location.priority)
        profile.preferred_locations = _json_list(ordered)
    if body.willing_to_relocate is not None:
        profile.willing_to_relocate = body.willing_to_relocate

    _commit(db, profile)
    return _with_completion(profile, {
        "preferred_locations": profile.preferred_locations,
        "willing_to_relocate": profile.willing_to_relocate,
    })


def update_work_availability(db: Session, profile: Profile, body: WorkAvailabilityUpdate) -> dict:
    profile.work_availability = _enum_values(body.work_availability)
    _commit(db, profile)
    return _with_completion(profile, {"work_availability": profile.work_availability})


def update_notification_settings(db: Session, profile: Profile, body: NotificationSettingsUpdate) -> dict:
    for field, value in body.model_dump(exclude_none=True).items():
        setattr(profile, field, value)
    _commit(db, profile)
    return _with_completion(profile, {"notification_settings": profile.notification_settings})


def update_experience(db: Session, profile: Profile, body: ExperienceUpdate) -> dict:
    profile.experience_level = body.experience_level.value
    if body.total_experience_years is not None:
        profile.total_experience_years = body.total_experience_years
    if body.experiences is not None:
        profile.experiences = _json_list(body.experiences)
    if body.last_drawn_salary is not None:
        profile.last_drawn_salary_amount = body.last_drawn_salary.amount
        profile.last_drawn_salary_period = body.last_drawn_salary.period.value
    if body.expected_salary is not None:
        profile.expected_salary_amount = body.expected_salary.amount
        profile.expected_salary_period = body.expected_salary.period.value

    _commit(db, profile)
    return _with_completion(profile, {
        "experience_level": profile.experience_level,
        "total_experience_years": profile.total_experience_years,
        "experiences": profile.experiences,
        "last_drawn_salary": profile.last_drawn_salary,
        "expected_salary": profile.expected_salary,
    })


def update_skills(db: Session, profile: Profile, body: SkillsUpdate) -> dict:
    if body.skills is not None:
        profile.skills = _json_list(body.skills)
    if body.certifications is not None:
        profile.certifications = _json_list(body.certifications)
    if body.languages_known is not None:
        profile.languages_known = _json_list(body.languages_known)

    _commit(db, profile)
    return _with_completion(profile, {
        "skills": profile.skills,
        "certifications": profile.certifications,
        "languages_known": profile.languages_known,
    })


def update_job_preferences(db: Session, profile: Profile, body: JobPreferencesUpdate) -> dict:
    if body.job_categories is not None:
        profile.job_categories = _enum_values(body.job_categories)
    if body.preferred_shifts is not None:
        profile.preferred_shifts = _enum_values(body.preferred_shifts)
    if body.available_for_joining is not None:
        profile.available_for_joining = body.available_for_joining.value
    if body.accommodation_required is not None:
        profile.accommodation_required = body.accommodation_required

    _commit(db, profile)
    return _with_completion(profile, {
        "job_categories": profile.job_categories,
        "preferred_shifts": profile.preferred_shifts,
        "available_for_joining": profile.available_for_joining,
        "accommodation_required": profile.accommodation_required,
    })


def deactivate(db: Session, profile: Profile) -> Profile:
    profile.is_active = False
    _commit(db, profile)
    logger.info("Profile deactivated profile_id=%s", profile.id)
    return profile
