# contest_portal/api/routers/registrations.py
from fastapi import APIRouter, Depends, Path

from contest_portal.api.deps import get_current_user, get_registration_service
from contest_portal.api.responses import ok
from contest_portal.data.models.user import UserModel
from contest_portal.domain.schemas import RegistrationOut, SubmitRegistrationIn
from contest_portal.services.registration_service import RegistrationService

router = APIRouter(prefix="/my-registrations", tags=["registrations"])


@router.get("")
def my_registrations(
    user: UserModel = Depends(get_current_user),
    svc: RegistrationService = Depends(get_registration_service),
):
    return ok([RegistrationOut.model_validate(r) for r in svc.list_for_user(user.id)])


@router.patch("/{registration_id}/submit")
def submit_registration(
    payload: SubmitRegistrationIn,
    registration_id: int = Path(..., gt=0),
    user: UserModel = Depends(get_current_user),
    svc: RegistrationService = Depends(get_registration_service),
):
    result = svc.submit(
        user.id,
        registration_id,
        submission_url=payload.submission_url,
        submission_notes=payload.submission_notes,
        submission_files=payload.submission_files,
    )
    return ok(RegistrationOut.model_validate(result), message="Submission received")
