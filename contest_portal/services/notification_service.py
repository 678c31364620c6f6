# contest_portal/services/notification_service.py
import smtplib
from email.message import EmailMessage
from typing import Any, Dict, List

from contest_portal.celery_worker import celery_app
from contest_portal.utils.logging import get_logger
from contest_portal.utils.settings import MAIL_FROM, SMTP_HOST, SMTP_PASSWORD, SMTP_PORT, SMTP_USER

logger = get_logger(__name__)


def _money(amount, currency: str) -> str:
    return f"{currency} {float(amount):,.2f}"


def _registration_lines(registrations: List[Dict[str, Any]]) -> str:
    return "\n".join(
        f"  - {r['registration_number']}: {r['competition_title']} ({r['registration_type']}) "
        f"{_money(r['amount'], r['currency'])}"
        for r in registrations
    )


class NotificationService:
    """
    Serwis do wysylania maili transakcyjnych.
    Renderuje tresc i oddaje ja do Celery (send_email_task) - wysylka jest asynchroniczna.
    Bledy kolejkowania leca do wywolujacego, ktory loguje je i polyka.

    Kazda rejestracja w `registrations` to dict:
    registration_number, competition_title, registration_type, amount, currency.
    """

    @staticmethod
    def send_email(to: str, subject: str, body: str):
        logger.info(f"Queueing email '{subject}' to {to}")
        send_email_task.delay(to, subject, body)

    def send_pending_payment_email(self, to: str, name: str, order_id: str, registration: Dict[str, Any]):
        body = (
            f"Hi {name},\n\n"
            f"We received your registration for {registration['competition_title']} "
            f"({registration['registration_type']}).\n"
            f"Registration number: {registration['registration_number']}\n"
            f"Order: {order_id}\n"
            f"Amount: {_money(registration['amount'], registration['currency'])}\n\n"
            "Your bank transfer is awaiting verification. We will e-mail you once it is confirmed.\n"
        )
        self.send_email(to, f"Registration received - payment pending ({order_id})", body)

    def send_consolidated_pending_payment_email(
        self, to: str, name: str, order_id: str, registrations: List[Dict[str, Any]], total, currency: str
    ):
        body = (
            f"Hi {name},\n\n"
            f"We received {len(registrations)} registrations in order {order_id}:\n"
            f"{_registration_lines(registrations)}\n\n"
            f"Total: {_money(total, currency)}\n\n"
            "Your bank transfer is awaiting verification. We will e-mail you once it is confirmed.\n"
        )
        self.send_email(to, f"{len(registrations)} registrations received - payment pending ({order_id})", body)

    def send_registration_confirmed_email(self, to: str, name: str, order_id: str, registration: Dict[str, Any]):
        body = (
            f"Hi {name},\n\n"
            f"Your payment for order {order_id} was successful.\n"
            f"Registration {registration['registration_number']} for {registration['competition_title']} "
            f"({registration['registration_type']}) is confirmed.\n"
            f"Amount paid: {_money(registration['amount'], registration['currency'])}\n"
        )
        self.send_email(to, f"Registration confirmed - {registration['registration_number']}", body)

    def send_consolidated_registration_confirmed_email(
        self, to: str, name: str, order_id: str, registrations: List[Dict[str, Any]], total, currency: str
    ):
        body = (
            f"Hi {name},\n\n"
            f"Your payment for order {order_id} was successful. Confirmed registrations:\n"
            f"{_registration_lines(registrations)}\n\n"
            f"Total paid: {_money(total, currency)}\n"
        )
        self.send_email(to, f"{len(registrations)} registrations confirmed ({order_id})", body)

    def send_payment_verified_email(self, to: str, name: str, order_id: str, registration: Dict[str, Any]):
        body = (
            f"Hi {name},\n\n"
            f"Your bank transfer for order {order_id} has been verified.\n"
            f"Registration {registration['registration_number']} for {registration['competition_title']} "
            "is now confirmed.\n"
        )
        self.send_email(to, f"Payment verified - {registration['registration_number']}", body)

    def send_payment_rejected_email(
        self, to: str, name: str, order_id: str, registration: Dict[str, Any], reason: str
    ):
        body = (
            f"Hi {name},\n\n"
            f"We could not verify the bank transfer for order {order_id} "
            f"(registration {registration['registration_number']}).\n"
            f"Reason: {reason}\n\n"
            "Please contact us if you believe this is a mistake.\n"
        )
        self.send_email(to, f"Payment could not be verified - {registration['registration_number']}", body)


@celery_app.task(
    name="contest_portal.services.notification_service.send_email_task",
    autoretry_for=(smtplib.SMTPException, OSError),
    retry_backoff=True,
    max_retries=3,
)
def send_email_task(to: str, subject: str, body: str):
    """
    Celery task - SMTP jesli skonfigurowany, inaczej tylko log.
    Bledy SMTP sa ponawiane przez Celery (backoff wykladniczy).
    """
    if not SMTP_HOST:
        logger.info(f"[EMAIL] to={to} subject={subject!r}\n{body}")
        return {"to": to, "status": "logged"}

    msg = EmailMessage()
    msg["From"] = MAIL_FROM
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(body)

    with smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=10) as smtp:
        smtp.starttls()
        if SMTP_USER:
            smtp.login(SMTP_USER, SMTP_PASSWORD)
        smtp.send_message(msg)

    logger.info(f"[EMAIL] sent to={to} subject={subject!r}")
    return {"to": to, "status": "sent"}
