# contest_portal/api/routers/admin.py
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from contest_portal.api.deps import get_registration_service, get_verification_service, require_admin
from contest_portal.api.responses import ok
from contest_portal.data.models.user import UserModel
from contest_portal.domain.schemas import AdminRegistrationOut, RevertPaymentIn, VerifyPaymentIn
from contest_portal.services.payment_verification_service import PaymentVerificationService
from contest_portal.services.registration_service import RegistrationService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/verify-payment")
def verify_payment(
    payload: VerifyPaymentIn,
    admin: UserModel = Depends(require_admin),
    svc: PaymentVerificationService = Depends(get_verification_service),
):
    result = svc.verify_payment(
        admin,
        payment_id=payload.payment_id,
        registration_id=payload.registration_id,
        approve=payload.approve,
        reject_reason=payload.reject_reason,
    )
    return ok(
        {
            "paymentStatus": result["payment_status"],
            "registrationStatus": result["registration_status"],
            "displayCode": result["display_code"],
        },
        message=result["message"],
    )


@router.post("/revert-payment")
def revert_payment(
    payload: RevertPaymentIn,
    admin: UserModel = Depends(require_admin),
    svc: PaymentVerificationService = Depends(get_verification_service),
):
    result = svc.revert_payment(admin, payload.payment_id, payload.registration_id, payload.revert_reason)
    return ok(
        {"paymentStatus": result["payment_status"], "registrationStatus": result["registration_status"]},
        message=result["message"],
    )


@router.get("/registrations")
def list_registrations(
    status: Optional[Literal["PENDING", "CONFIRMED", "SUBMITTED", "CANCELLED"]] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    admin: UserModel = Depends(require_admin),
    svc: RegistrationService = Depends(get_registration_service),
):
    result = svc.list_for_admin(status, page, limit)
    return ok(
        {
            "registrations": [AdminRegistrationOut.model_validate(r) for r in result["registrations"]],
            "pagination": {
                "currentPage": result["pagination"]["current_page"],
                "totalPages": result["pagination"]["total_pages"],
                "total": result["pagination"]["total"],
            },
        }
    )
