# contest_portal/services/registration_service.py
import math
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from contest_portal.data.models.registration import RegistrationModel
from contest_portal.domain.errors import Forbidden, NotFound, ValidationError
from contest_portal.domain.statuses import RegistrationStatus, SubmissionStatus
from contest_portal.repos.registration_repo import RegistrationRepo
from contest_portal.utils.clock import as_utc, utcnow
from contest_portal.utils.logging import get_logger
from contest_portal.utils.validators import sanitize_input

logger = get_logger(__name__)


def registration_view(registration: RegistrationModel) -> Dict[str, Any]:
    # widok dla wlasciciela - bez display code
    return {
        "id": registration.id,
        "registration_number": registration.registration_number,
        "competition_id": registration.competition_id,
        "competition_title": registration.competition.title,
        "registration_type": registration.registration_type.name,
        "participant_type": registration.participant_type,
        "country": registration.country,
        "members": registration.members or [],
        "status": registration.status,
        "submission_status": registration.submission_status,
        "amount_paid": float(registration.amount_paid),
        "currency": registration.currency,
        "registered_at": registration.registered_at,
        "confirmed_at": registration.confirmed_at,
        "submitted_at": registration.submitted_at,
    }


def admin_registration_view(registration: RegistrationModel) -> Dict[str, Any]:
    payment = registration.payment
    return {
        **registration_view(registration),
        "user_id": registration.user_id,
        "display_code": registration.display_code,
        "payment_id": registration.payment_id,
        "order_id": payment.order_id if payment else None,
        "payment_status": payment.status if payment else None,
        "payment_method": payment.payment_method if payment else None,
    }


class RegistrationService:
    def __init__(self, db: Session):
        self.repo = RegistrationRepo(db)

    def list_for_user(self, user_id: int) -> List[Dict[str, Any]]:
        return [registration_view(r) for r in self.repo.list_by_user(user_id)]

    def list_for_admin(self, status: str | None = None, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        if page < 1 or limit < 1:
            raise ValidationError("Page and limit must be positive")

        rows, total = self.repo.list_page(status, page, limit)
        return {
            "registrations": [admin_registration_view(r) for r in rows],
            "pagination": {
                "current_page": page,
                "total_pages": math.ceil(total / limit) if total else 0,
                "total": total,
            },
        }

    def submit(
        self,
        user_id: int,
        registration_id: int,
        submission_url: str | None = None,
        submission_notes: str | None = None,
        submission_files: List[Dict[str, Any]] | None = None,
    ) -> Dict[str, Any]:
        registration = self.repo.get_registration(registration_id)
        if not registration:
            raise NotFound("Registration not found")
        if registration.user_id != user_id:
            raise Forbidden("You can only submit your own registrations")
        if registration.status != RegistrationStatus.CONFIRMED:
            raise ValidationError("Only confirmed registrations can be submitted")
        if utcnow() > as_utc(registration.competition.end_date):
            raise ValidationError("Submission period has ended")
        if not submission_url and not submission_files:
            raise ValidationError("A submission URL or files are required")

        now = utcnow()
        registration.status = RegistrationStatus.SUBMITTED
        registration.submission_status = SubmissionStatus.SUBMITTED
        registration.submitted_at = now
        registration.submission_url = sanitize_input(submission_url) if submission_url else None
        registration.submission_notes = sanitize_input(submission_notes) if submission_notes else None
        registration.submission_files = submission_files
        self.repo.commit()

        logger.info(f"Rejestracja {registration.registration_number} zlozona przez uzytkownika {user_id}")
        return registration_view(registration)
