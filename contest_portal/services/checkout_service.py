# contest_portal/services/checkout_service.py
from decimal import Decimal
from typing import Any, Callable, Dict, List

from pydantic.alias_generators import to_camel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from contest_portal.data.models.cart import CartModel
from contest_portal.data.models.cart_item import CartItemModel
from contest_portal.data.models.payment import PaymentModel
from contest_portal.data.models.registration import RegistrationModel
from contest_portal.data.models.user import UserModel
from contest_portal.domain.errors import OrderIdCollision, ValidationError
from contest_portal.domain.statuses import CartStatus, PaymentMethod, PaymentStatus, RegistrationStatus
from contest_portal.repos.cart_repo import CartRepo
from contest_portal.repos.payment_repo import PaymentRepo
from contest_portal.repos.registration_repo import RegistrationRepo
from contest_portal.services.cart_service import is_cart_expired
from contest_portal.services.notification_service import NotificationService
from contest_portal.services.payhere import PayHereGateway
from contest_portal.utils.codes import generate_order_id, generate_unique_registration_number, next_order_sequence
from contest_portal.utils.logging import get_logger
from contest_portal.utils.retry import order_id_retry
from contest_portal.utils.validators import is_valid_email, sanitize_input

logger = get_logger(__name__)

_REQUIRED_CUSTOMER_FIELDS = ("first_name", "last_name", "email", "country")


def item_snapshot(item: CartItemModel) -> Dict[str, Any]:
    # kopia pozycji koszyka z momentu checkoutu (JSON - bez Decimali);
    # z niej powstaja rejestracje po notyfikacji bramki
    return {
        "id": item.id,
        "competitionId": item.competition_id,
        "competitionYear": item.competition.year,
        "competitionTitle": item.competition.title,
        "registrationTypeId": item.registration_type_id,
        "registrationType": item.registration_type.name,
        "participantType": item.participant_type,
        "country": item.country,
        "members": item.members or [],
        "memberCount": len(item.members or []),
        "unitPrice": float(item.unit_price),
        "subtotal": float(item.subtotal),
    }


def registration_email_data(registration: RegistrationModel) -> Dict[str, Any]:
    return {
        "registration_number": registration.registration_number,
        "competition_title": registration.competition.title,
        "registration_type": registration.registration_type.name,
        "amount": registration.amount_paid,
        "currency": registration.currency,
    }


def customer_contact(payment: PaymentModel, user: UserModel) -> tuple[str, str]:
    """Mail i imie z formularza checkoutu, a jak ich brak - z konta."""
    details = payment.customer_details or {}
    email = details.get("email") or user.email
    if details.get("firstName") and details.get("lastName"):
        name = f"{details['firstName']} {details['lastName']}"
    else:
        name = user.name or "Participant"
    return email, name


class CheckoutService:
    """
    Checkout koszyka:
    CART_VALIDATED -> ORDER_ID_ASSIGNED -> PAYMENT_RECORD_CREATED -> (bank: REGISTRATIONS_CREATED | card: redirect)

    order_sequence jest wstrzykiwany - testy podmieniaja go, zeby wymusic kolizje order id.
    """

    def __init__(
        self,
        db: Session,
        notifications: NotificationService,
        gateway: PayHereGateway | None = None,
        order_sequence: Callable[[Session], int] = next_order_sequence,
    ):
        self.db = db
        self.carts = CartRepo(db)
        self.payments = PaymentRepo(db)
        self.registrations = RegistrationRepo(db)
        self.notifications = notifications
        self.gateway = gateway or PayHereGateway()
        self.order_sequence = order_sequence

    def checkout(
        self,
        user: UserModel,
        customer_info: Dict[str, Any],
        payment_method: str = "card",
        bank_slip_url: str | None = None,
        bank_slip_file_name: str | None = None,
        will_send_via_whatsapp: bool = False,
    ) -> Dict[str, Any]:
        customer = self._validate_customer(customer_info)
        if payment_method not in ("card", "bank"):
            raise ValidationError("Invalid payment method")

        cart = self._load_cart(user.id)
        items = self.carts.get_cart_items(cart.id)
        total = sum((i.subtotal for i in items), Decimal("0.00"))

        logger.info(
            f"Checkout koszyka {cart.id} uzytkownika {user.id}: {len(items)} pozycji, "
            f"total={total}, metoda={payment_method}"
        )

        if payment_method == "bank":
            return self._bank_transfer(user, cart, items, total, customer, {
                "bankSlipUrl": bank_slip_url,
                "bankSlipFileName": bank_slip_file_name,
                "willSendViaWhatsApp": will_send_via_whatsapp,
            })
        return self._card(user, cart, items, total, customer)

    # -------------------------------------------------
    # walidacja
    # -------------------------------------------------
    @staticmethod
    def _validate_customer(customer_info: Dict[str, Any] | None) -> Dict[str, Any]:
        info = {k: v for k, v in (customer_info or {}).items() if v is not None}
        if any(not str(info.get(name, "")).strip() for name in _REQUIRED_CUSTOMER_FIELDS):
            raise ValidationError("Missing required customer information")
        if not is_valid_email(info["email"]):
            raise ValidationError("Invalid customer email")
        return {k: sanitize_input(v) if isinstance(v, str) else v for k, v in info.items()}

    def _load_cart(self, user_id: int) -> CartModel:
        cart = self.carts.get_active_cart_by_user(user_id)
        if not cart or not self.carts.get_cart_items(cart.id):
            raise ValidationError("Cart is empty")

        if is_cart_expired(cart):
            cart.status = CartStatus.EXPIRED
            self.carts.commit()
            logger.info(f"Checkout odrzucony - koszyk {cart.id} wygasl")
            raise ValidationError("Cart has expired")
        return cart

    # -------------------------------------------------
    # payment + order id
    # -------------------------------------------------
    @order_id_retry()
    def _create_payment(self, build: Callable[[str], PaymentModel]) -> PaymentModel:
        # przy kazdej probie nowy numer z sekwencji
        order_id = generate_order_id(self.order_sequence(self.db))
        payment = build(order_id)
        try:
            self.payments.add(payment)
        except IntegrityError:
            self.payments.rollback()
            logger.warning(f"Kolizja order id {order_id}, ponawiam z nowym numerem")
            raise OrderIdCollision(order_id)
        logger.info(f"Utworzono platnosc {payment.id} z order id {order_id}")
        return payment

    def _payment_builder(
        self,
        user: UserModel,
        cart: CartModel,
        items: List[CartItemModel],
        total: Decimal,
        customer: Dict[str, Any],
        method: str,
        extra_meta: Dict[str, Any],
    ) -> Callable[[str], PaymentModel]:
        # po rollbacku obiekty sa wygaszone - snapshot liczymy raz, przed petla retry
        cart_id = cart.id
        snapshot = [item_snapshot(i) for i in items]
        item_ids = [i.id for i in items]
        competition_ids = list(dict.fromkeys(i.competition_id for i in items))
        customer_details = {to_camel(k): v for k, v in customer.items()}

        def build(order_id: str) -> PaymentModel:
            return PaymentModel(
                order_id=order_id,
                user_id=user.id,
                competition_id=competition_ids[0],
                amount=total,
                currency=self.gateway.currency,
                merchant_id=self.gateway.merchant_id,
                status=PaymentStatus.PENDING,
                payment_method=method,
                items=snapshot,
                customer_details=customer_details,
                meta={
                    "cartId": cart_id,
                    "itemIds": item_ids,
                    "competitionIds": competition_ids,
                    **extra_meta,
                },
            )

        return build

    # -------------------------------------------------
    # bank transfer
    # -------------------------------------------------
    def _bank_transfer(
        self,
        user: UserModel,
        cart: CartModel,
        items: List[CartItemModel],
        total: Decimal,
        customer: Dict[str, Any],
        slip: Dict[str, Any],
    ) -> Dict[str, Any]:
        payment = self._create_payment(
            self._payment_builder(user, cart, items, total, customer, PaymentMethod.BANK_TRANSFER, slip)
        )

        registrations = []
        for item in self.carts.get_items_by_ids(payment.meta["itemIds"]):
            registration = RegistrationModel(
                registration_number=generate_unique_registration_number(self.db),
                user_id=user.id,
                competition_id=item.competition_id,
                registration_type_id=item.registration_type_id,
                payment_id=payment.id,
                country=item.country,
                participant_type=item.participant_type,
                members=item.members,
                status=RegistrationStatus.PENDING,
                amount_paid=item.subtotal,
                currency=payment.currency,
            )
            registrations.append(self.registrations.add(registration))

        cart = self.carts.get_cart(payment.meta["cartId"])
        cart.status = CartStatus.COMPLETED

        # payment + rejestracje + status koszyka w jednym commicie
        self.payments.commit()

        numbers = [r.registration_number for r in registrations]
        logger.info(f"Bank transfer {payment.order_id}: utworzono rejestracje {numbers}")

        self._send_pending_email(payment, user, registrations)

        return {
            "order_id": payment.order_id,
            "payment_method": "bank",
            "registration_numbers": numbers,
        }

    def _send_pending_email(self, payment: PaymentModel, user: UserModel, registrations: List[RegistrationModel]):
        email, name = customer_contact(payment, user)
        try:
            if len(registrations) > 1:
                self.notifications.send_consolidated_pending_payment_email(
                    email,
                    name,
                    payment.order_id,
                    [registration_email_data(r) for r in registrations],
                    payment.amount,
                    payment.currency,
                )
            else:
                self.notifications.send_pending_payment_email(
                    email, name, payment.order_id, registration_email_data(registrations[0])
                )
        except Exception:
            # rejestracje sa juz zapisane - mail nie moze wycofac checkoutu
            logger.exception(f"Failed to send pending payment email for {payment.order_id}")

    # -------------------------------------------------
    # card (PayHere)
    # -------------------------------------------------
    def _card(
        self,
        user: UserModel,
        cart: CartModel,
        items: List[CartItemModel],
        total: Decimal,
        customer: Dict[str, Any],
    ) -> Dict[str, Any]:
        description = ", ".join(f"{i.competition.title} - {i.registration_type.name}" for i in items)

        payment = self._create_payment(
            self._payment_builder(user, cart, items, total, customer, PaymentMethod.CARD, {})
        )
        self.payments.commit()

        # koszyk zostaje ACTIVE do notyfikacji z bramki
        payment_data = self.gateway.build_payment_data(payment.order_id, total, description, customer)
        logger.info(f"Card checkout {payment.order_id}: przekierowanie do {self.gateway.payment_url}")

        return {
            "order_id": payment.order_id,
            "payment_method": "card",
            "payment_url": self.gateway.payment_url,
            "payment_data": payment_data,
        }
