from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.profile import Profile
from app.schemas.profile import (
    LanguagePreferenceUpdate,
    LocationPreferencesUpdate,
    NotificationSettingsUpdate,
    PersonalDetailsUpdate,
    WorkAvailabilityUpdate,
)
from app.services import profile_service
from app.services.auth_middleware import get_current_profile
from app.utils.response import create_response, handle_exception

router = APIRouter(prefix="/user", tags=["User"])


@router.put("/personal-details")
def update_personal_details(
    body: PersonalDetailsUpdate,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    try:
        section = profile_service.update_personal_details(db, current_profile, body)
        return create_response(
            message="Personal details updated successfully",
            data={"user": section},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/language-preference")
def update_language_preference(
    body: LanguagePreferenceUpdate,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    try:
        section = profile_service.update_language(db, current_profile, body)
        return create_response(
            message="Language preference updated successfully",
            data=section,
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/location-preferences")
def update_location_preferences(
    body: LocationPreferencesUpdate,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    try:
        section = profile_service.update_location_preferences(db, current_profile, body)
        return create_response(
            message="Location preferences updated successfully",
            data=section,
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/work-availability")
def update_work_availability(
    body: WorkAvailabilityUpdate,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    try:
        section = profile_service.update_work_availability(db, current_profile, body)
        return create_response(
            message="Work availability updated successfully",
            data=section,
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/notification-settings")
def update_notification_settings(
    body: NotificationSettingsUpdate,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    try:
        section = profile_service.update_notification_settings(db, current_profile, body)
        return create_response(
            message="Notification settings updated successfully",
            data=section,
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/deactivate")
def deactivate_account(
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    try:
        profile = profile_service.deactivate(db, current_profile)
        return create_response(
            message="Account deactivated successfully",
            data={"id": profile.id, "is_active": profile.is_active},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)
