import itertools
import os
from datetime import timedelta
from decimal import Decimal
from typing import Generator
from unittest.mock import MagicMock

# przed importem aplikacji - engine tworzony jest przy imporcie
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["REALTIME_RELAY_URL"] = ""
os.environ["SMTP_HOST"] = ""
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["PAYHERE_MERCHANT_ID"] = "1211149"
os.environ["PAYHERE_MERCHANT_SECRET"] = "test-merchant-secret"

import pytest
from fastapi.testclient import TestClient

from contest_portal.api import deps
from contest_portal.data.database import Base, SessionLocal, engine
from contest_portal.data.models import (
    CompetitionModel,
    PostModel,
    RegistrationTypeModel,
    UserModel,
)
from contest_portal.services.notification_service import NotificationService
from contest_portal.services.payhere import PayHereGateway
from contest_portal.services.realtime_client import RealtimeClient
from contest_portal.utils.clock import utcnow


# automatyczne markery wg katalogu testu
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


# =====================================================
# DB
# =====================================================
@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


# =====================================================
# FACTORIES
# =====================================================
_ids = itertools.count(1)


@pytest.fixture()
def make_user(db):
    def _make(role: str = "MEMBER", name: str | None = None, email: str | None = None) -> UserModel:
        n = next(_ids)
        user = UserModel(
            name=name or f"User {n}",
            email=email or f"user{n}@example.com",
            role=role,
            api_token=f"token-{n}",
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture()
def member(make_user):
    return make_user()


@pytest.fixture()
def admin(make_user):
    return make_user(role="ADMIN", name="Ada Admin")


@pytest.fixture()
def moderator(make_user):
    return make_user(role="MODERATOR")


@pytest.fixture()
def competition(db) -> CompetitionModel:
    now = utcnow()
    comp = CompetitionModel(
        slug="archalley-test",
        title="Tiny House Competition",
        year=now.year,
        registration_deadline=now + timedelta(days=30),
        end_date=now + timedelta(days=60),
    )
    db.add(comp)
    db.commit()
    return comp


@pytest.fixture()
def make_registration_type(db, competition):
    def _make(type_: str = "INDIVIDUAL", fee: str = "5000.00", max_members: int = 1, is_active: bool = True):
        reg_type = RegistrationTypeModel(
            competition_id=competition.id,
            type=type_,
            name=type_.title(),
            fee=Decimal(fee),
            max_members=max_members,
            is_active=is_active,
        )
        db.add(reg_type)
        db.commit()
        return reg_type

    return _make


@pytest.fixture()
def individual_type(make_registration_type):
    return make_registration_type()


@pytest.fixture()
def team_type(make_registration_type):
    return make_registration_type("TEAM", fee="10000.00", max_members=3)


@pytest.fixture()
def make_post(db):
    def _make(author: UserModel, content: str = "Look at my entry") -> PostModel:
        post = PostModel(author_id=author.id, content=content)
        db.add(post)
        db.commit()
        return post

    return _make


# =====================================================
# COLLABORATORS
# =====================================================
@pytest.fixture()
def notifications():
    return MagicMock(spec=NotificationService)


@pytest.fixture()
def realtime():
    client = MagicMock(spec=RealtimeClient)
    client.enabled = False
    return client


@pytest.fixture()
def gateway():
    return PayHereGateway(
        merchant_id="1211149",
        merchant_secret="test-merchant-secret",
        mode="sandbox",
        base_url="http://testserver",
        currency="LKR",
    )


# =====================================================
# HTTP
# =====================================================
@pytest.fixture()
def app():
    from contest_portal.main import app as fastapi_app

    return fastapi_app


@pytest.fixture()
def client(app, db, notifications, realtime, gateway) -> Generator[TestClient, None, None]:
    app.dependency_overrides[deps.get_notification_service] = lambda: notifications
    app.dependency_overrides[deps.get_realtime_client] = lambda: realtime
    app.dependency_overrides[deps.get_payment_gateway] = lambda: gateway
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def fill_cart(db):
    from contest_portal.services.cart_service import CartService
    from tests.helpers import AGREEMENTS, valid_member

    def _fill(user: UserModel, reg_type: RegistrationTypeModel, count: int = 1):
        svc = CartService(db)
        for _ in range(count):
            svc.add_item(
                user.id,
                reg_type.competition_id,
                reg_type.id,
                "Sri Lanka",
                reg_type.type,
                [valid_member()],
                AGREEMENTS,
            )
        return svc.repo.get_active_cart_by_user(user.id)

    return _fill


@pytest.fixture()
def bank_checkout(db, notifications, gateway, fill_cart):
    """Bank-transfer checkout -> (payment, [registrations])."""
    from sqlalchemy import select

    from contest_portal.data.models import PaymentModel, RegistrationModel
    from contest_portal.services.checkout_service import CheckoutService
    from tests.helpers import CUSTOMER

    def _checkout(user: UserModel, reg_type: RegistrationTypeModel, count: int = 1):
        fill_cart(user, reg_type, count=count)
        result = CheckoutService(db, notifications, gateway=gateway).checkout(user, CUSTOMER, payment_method="bank")
        payment = db.execute(select(PaymentModel).where(PaymentModel.order_id == result["order_id"])).scalar_one()
        registrations = list(
            db.execute(select(RegistrationModel).where(RegistrationModel.payment_id == payment.id)).scalars()
        )
        notifications.reset_mock()
        return payment, registrations

    return _checkout
