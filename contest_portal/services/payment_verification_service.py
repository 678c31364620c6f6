# contest_portal/services/payment_verification_service.py
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from contest_portal.data.models.payment import PaymentModel
from contest_portal.data.models.registration import RegistrationModel
from contest_portal.data.models.user import UserModel
from contest_portal.domain.errors import Forbidden, NotFound, ValidationError
from contest_portal.domain.permissions import is_admin
from contest_portal.domain.statuses import CartStatus, PaymentStatus, RegistrationStatus
from contest_portal.repos.cart_repo import CartRepo
from contest_portal.repos.payment_repo import PaymentRepo
from contest_portal.repos.registration_repo import RegistrationRepo
from contest_portal.services import payhere
from contest_portal.services.checkout_service import customer_contact, registration_email_data
from contest_portal.services.notification_service import NotificationService
from contest_portal.services.payhere import PayHereGateway
from contest_portal.utils.clock import utcnow
from contest_portal.utils.codes import generate_unique_display_code, generate_unique_registration_number
from contest_portal.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_REJECT_REASON = "Payment could not be verified"

_GATEWAY_FAILURES = {
    payhere.STATUS_CANCELLED: PaymentStatus.CANCELLED,
    payhere.STATUS_FAILED: PaymentStatus.FAILED,
}


class PaymentVerificationService:
    """
    Przejscia Payment / Registration po checkoucie:
    - reczna weryfikacja przelewu przez admina (approve / reject / revert),
    - notyfikacja z bramki kartowej (IPN).
    """

    def __init__(
        self,
        db: Session,
        notifications: NotificationService,
        gateway: PayHereGateway | None = None,
    ):
        self.db = db
        self.payments = PaymentRepo(db)
        self.registrations = RegistrationRepo(db)
        self.carts = CartRepo(db)
        self.notifications = notifications
        self.gateway = gateway or PayHereGateway()

    def _load(self, admin: UserModel, payment_id: int, registration_id: int):
        if not is_admin(admin.role):
            raise Forbidden("Admin access required")

        payment = self.payments.get_payment(payment_id)
        registration = self.registrations.get_registration(registration_id)
        if not payment or not registration:
            raise NotFound("Payment or registration not found")
        if registration.payment_id != payment.id:
            raise ValidationError("Registration does not belong to this payment")
        return payment, registration

    # =====================================================
    # ADMIN: VERIFY / REJECT
    # =====================================================
    def verify_payment(
        self,
        admin: UserModel,
        payment_id: int,
        registration_id: int,
        approve: bool,
        reject_reason: str | None = None,
    ) -> Dict[str, Any]:
        payment, registration = self._load(admin, payment_id, registration_id)
        now = utcnow()
        audit = {
            "verifiedBy": admin.email,
            "verifiedByName": admin.name or admin.email,
            "verifiedAt": now.isoformat(),
        }

        if approve:
            if not registration.display_code:
                registration.display_code = generate_unique_display_code(self.db, registration.competition.year)
                logger.info(f"Nadano display code {registration.display_code} rejestracji {registration.id}")

            payment.status = PaymentStatus.COMPLETED
            payment.completed_at = now
            # nowy dict - JSON column nie sledzi mutacji w miejscu
            payment.meta = {**(payment.meta or {}), **audit, "action": "APPROVED"}

            registration.status = RegistrationStatus.CONFIRMED
            registration.confirmed_at = now
        else:
            reason = reject_reason or DEFAULT_REJECT_REASON
            payment.status = PaymentStatus.FAILED
            payment.meta = {**(payment.meta or {}), **audit, "action": "REJECTED", "rejectReason": reason}

            registration.status = RegistrationStatus.CANCELLED

        self.payments.commit()
        logger.info(
            f"Platnosc {payment.order_id} {'zatwierdzona' if approve else 'odrzucona'} "
            f"przez {admin.email}, rejestracja {registration.registration_number} -> {registration.status}"
        )

        email, name = customer_contact(payment, registration.user)
        try:
            if approve:
                self.notifications.send_payment_verified_email(
                    email, name, payment.order_id, registration_email_data(registration)
                )
            else:
                self.notifications.send_payment_rejected_email(
                    email, name, payment.order_id, registration_email_data(registration), reject_reason or DEFAULT_REJECT_REASON
                )
        except Exception:
            logger.exception(f"Failed to send verification email for {payment.order_id}")

        return {
            "message": "Payment approved and user notified" if approve else "Payment rejected and user notified",
            "payment_status": payment.status,
            "registration_status": registration.status,
            "display_code": registration.display_code,
        }

    def revert_payment(
        self,
        admin: UserModel,
        payment_id: int,
        registration_id: int,
        revert_reason: str | None = None,
    ) -> Dict[str, Any]:
        payment, registration = self._load(admin, payment_id, registration_id)

        if payment.status not in (PaymentStatus.COMPLETED, PaymentStatus.FAILED):
            raise ValidationError("Only completed or failed payments can be reverted")

        previous_status = payment.status
        payment.status = PaymentStatus.PENDING
        payment.completed_at = None
        payment.meta = {
            **(payment.meta or {}),
            "revertedBy": admin.email,
            "revertedAt": utcnow().isoformat(),
            "previousStatus": previous_status,
            "revertReason": revert_reason or "Reverted by admin",
        }

        # display code zostaje - raz nadany nie jest zwalniany
        registration.status = RegistrationStatus.PENDING
        registration.confirmed_at = None

        self.payments.commit()
        logger.info(f"Platnosc {payment.order_id} cofnieta z {previous_status} do PENDING przez {admin.email}")

        return {
            "message": "Payment reverted to pending",
            "payment_status": payment.status,
            "registration_status": registration.status,
        }

    # =====================================================
    # GATEWAY NOTIFICATION (IPN)
    # =====================================================
    def handle_gateway_notification(self, form: Dict[str, Any]) -> Dict[str, Any]:
        order_id = form.get("order_id") or ""
        status_code = str(form.get("status_code") or "")

        payment = self.payments.get_by_order_id(order_id)
        if not payment:
            raise NotFound("Payment not found")

        logger.info(f"Notyfikacja PayHere dla {order_id}: status_code={status_code}")

        valid = self.gateway.verify_signature(
            form.get("merchant_id") or "",
            order_id,
            form.get("payhere_amount") or "",
            form.get("payhere_currency") or "",
            status_code,
            form.get("md5sig") or "",
        )
        if not valid:
            # niepodpisany formularz nie moze zmienic platnosci
            logger.warning(f"Invalid PayHere signature for {order_id} (status_code={status_code}), payment left as {payment.status}")
            raise ValidationError("Invalid signature")

        if payment.status == PaymentStatus.COMPLETED:
            # bramka potrafi wyslac notyfikacje kilka razy
            logger.info(f"Platnosc {order_id} juz zakonczona - pomijam notyfikacje")
            return {"order_id": order_id, "status": payment.status}

        if status_code == payhere.STATUS_SUCCESS:
            self._complete_gateway_payment(payment, form)
        elif status_code in _GATEWAY_FAILURES:
            payment.status = _GATEWAY_FAILURES[status_code]
            payment.status_code = status_code
            payment.error_message = form.get("status_message")
            payment.response_data = dict(form)
            self.payments.commit()
        elif status_code == payhere.STATUS_CHARGEDBACK:
            payment.status = PaymentStatus.REFUNDED
            payment.status_code = status_code
            payment.refunded_at = utcnow()
            payment.response_data = dict(form)
            self.payments.commit()

        logger.info(f"Platnosc {order_id} po notyfikacji: {payment.status}")
        return {"order_id": order_id, "status": payment.status}

    def _complete_gateway_payment(self, payment: PaymentModel, form: Dict[str, Any]):
        meta = payment.meta or {}
        # rejestracje ze snapshotu platnosci - koszyk mogl sie zmienic po checkoucie
        items = payment.items or []
        if not items:
            raise ValidationError("Payment does not contain any items")

        now = utcnow()
        registrations: List[RegistrationModel] = []
        for item in items:
            registration = RegistrationModel(
                registration_number=generate_unique_registration_number(self.db),
                display_code=generate_unique_display_code(self.db, item["competitionYear"]),
                user_id=payment.user_id,
                competition_id=item["competitionId"],
                registration_type_id=item["registrationTypeId"],
                payment_id=payment.id,
                country=item["country"],
                participant_type=item["participantType"],
                members=item["members"],
                status=RegistrationStatus.CONFIRMED,
                amount_paid=Decimal(str(item["subtotal"])),
                currency=payment.currency,
                confirmed_at=now,
            )
            registrations.append(self.registrations.add(registration))

        payment.status = PaymentStatus.COMPLETED
        payment.completed_at = now
        payment.gateway_payment_id = form.get("payment_id")
        payment.status_code = str(form.get("status_code"))
        payment.response_data = dict(form)

        cart = self.carts.get_cart(meta.get("cartId")) if meta.get("cartId") else None
        if cart:
            cart.status = CartStatus.COMPLETED

        self.payments.commit()
        logger.info(
            f"Platnosc {payment.order_id} zakonczona, rejestracje: "
            f"{[r.registration_number for r in registrations]}"
        )

        self._send_confirmation_email(payment, registrations)

    def _send_confirmation_email(self, payment: PaymentModel, registrations: List[RegistrationModel]):
        email, name = customer_contact(payment, payment.user)
        try:
            if len(registrations) > 1:
                self.notifications.send_consolidated_registration_confirmed_email(
                    email,
                    name,
                    payment.order_id,
                    [registration_email_data(r) for r in registrations],
                    payment.amount,
                    payment.currency,
                )
            else:
                self.notifications.send_registration_confirmed_email(
                    email, name, payment.order_id, registration_email_data(registrations[0])
                )
        except Exception:
            logger.exception(f"Failed to send confirmation email for {payment.order_id}")
