# contest_portal/api/deps.py
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from contest_portal.api.rate_limit import rate_limit
from contest_portal.data.database import get_db
from contest_portal.data.models.user import UserModel
from contest_portal.domain.errors import Forbidden, Unauthorized
from contest_portal.domain.permissions import has_permission, is_admin
from contest_portal.repos.user_repo import UserRepo
from contest_portal.services.cart_service import CartService
from contest_portal.services.checkout_service import CheckoutService
from contest_portal.services.moderation_service import ModerationService
from contest_portal.services.notification_service import NotificationService
from contest_portal.services.payhere import PayHereGateway
from contest_portal.services.payment_verification_service import PaymentVerificationService
from contest_portal.services.realtime_client import RealtimeClient
from contest_portal.services.registration_service import RegistrationService
from contest_portal.utils.codes import next_order_sequence
from contest_portal.utils.settings import CHECKOUT_RATE_LIMIT, FLAG_RATE_LIMIT


# =====================================================
# AUTH
# =====================================================
def get_current_user(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> UserModel:
    # logowanie robi zewnetrzny provider - tu tylko token -> user
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized()

    user = UserRepo(db).get_by_token(token.strip())
    if not user:
        raise Unauthorized()
    return user


def require_admin(user: UserModel = Depends(get_current_user)) -> UserModel:
    if not is_admin(user.role):
        raise Forbidden("Admin access required")
    return user


def require_permission(permission: str):
    def dependency(user: UserModel = Depends(get_current_user)) -> UserModel:
        if not has_permission(user.role, permission):
            raise Forbidden("Insufficient permissions")
        return user

    return dependency


# =====================================================
# COLLABORATORS (podmieniane w testach przez dependency_overrides)
# =====================================================
def get_notification_service() -> NotificationService:
    return NotificationService()


def get_realtime_client() -> RealtimeClient:
    return RealtimeClient()


def get_payment_gateway() -> PayHereGateway:
    return PayHereGateway()


def get_order_sequence():
    return next_order_sequence


# limity jako stale zaleznosci - testy podmieniaja je przez dependency_overrides
checkout_rate_limit = rate_limit("checkout", CHECKOUT_RATE_LIMIT)
flag_rate_limit = rate_limit("flags", FLAG_RATE_LIMIT)


# =====================================================
# SERVICES
# =====================================================
def get_cart_service(db: Session = Depends(get_db)) -> CartService:
    return CartService(db)


def get_checkout_service(
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
    gateway: PayHereGateway = Depends(get_payment_gateway),
    order_sequence=Depends(get_order_sequence),
) -> CheckoutService:
    return CheckoutService(db, notifications, gateway=gateway, order_sequence=order_sequence)


def get_verification_service(
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
    gateway: PayHereGateway = Depends(get_payment_gateway),
) -> PaymentVerificationService:
    return PaymentVerificationService(db, notifications, gateway=gateway)


def get_registration_service(db: Session = Depends(get_db)) -> RegistrationService:
    return RegistrationService(db)


def get_moderation_service(
    db: Session = Depends(get_db),
    realtime: RealtimeClient = Depends(get_realtime_client),
) -> ModerationService:
    return ModerationService(db, realtime=realtime)
