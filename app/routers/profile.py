from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.profile import Profile
from app.schemas.profile import ExperienceUpdate, JobPreferencesUpdate, ProfileResponse, SkillsUpdate
from app.services import profile_service
from app.services.auth_middleware import get_current_profile
from app.services.completion_service import section_breakdown
from app.utils.response import create_response, handle_exception

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.put("/experience")
def update_experience(
    body: ExperienceUpdate,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    try:
        section = profile_service.update_experience(db, current_profile, body)
        return create_response(
            message="Experience details updated successfully",
            data=section,
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/skills")
def update_skills(
    body: SkillsUpdate,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    try:
        section = profile_service.update_skills(db, current_profile, body)
        return create_response(
            message="Skills and certifications updated successfully",
            data=section,
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/job-preferences")
def update_job_preferences(
    body: JobPreferencesUpdate,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    try:
        section = profile_service.update_job_preferences(db, current_profile, body)
        return create_response(
            message="Job preferences updated successfully",
            data=section,
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/complete-profile")
def get_complete_profile(current_profile: Profile = Depends(get_current_profile)):
    try:
        profile_payload = ProfileResponse.model_validate(current_profile).model_dump()
        return create_response(
            message="Profile fetched successfully",
            data={
                "user": profile_payload,
                "profile_stats": {
                    "completion_percentage": current_profile.profile_completion_percentage,
                    "is_completed": current_profile.profile_completed,
                    "sections_completed": section_breakdown(current_profile),
                },
            },
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)
