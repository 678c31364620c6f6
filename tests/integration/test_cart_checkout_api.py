import re

from sqlalchemy import select

from contest_portal.api import deps
from contest_portal.data.models import PaymentModel
from contest_portal.domain.errors import RateLimited
from contest_portal.utils.codes import generate_order_id
from contest_portal.utils.clock import utcnow
from tests.helpers import AGREEMENTS_JSON, CUSTOMER_JSON, auth, payhere_notification


def _add_payload(reg_type, **overrides):
    payload = {
        "competitionId": reg_type.competition_id,
        "registrationTypeId": reg_type.id,
        "country": "Sri Lanka",
        "participantType": reg_type.type,
        "members": [{"name": "Jane Doe", "email": "jane@example.com", "phone": "+94771234567"}],
        "agreements": AGREEMENTS_JSON,
    }
    payload.update(overrides)
    return payload


def test_cart_add_get_remove(client, member, individual_type):
    added = client.post("/cart/add", json=_add_payload(individual_type), headers=auth(member))
    assert added.status_code == 200
    item_id = added.json()["data"]["cartItemId"]

    cart = client.get("/cart", headers=auth(member)).json()["data"]
    assert cart["itemCount"] == 1
    assert cart["total"] == 5000.0
    assert cart["items"][0]["competitionTitle"] == "Tiny House Competition"

    removed = client.delete("/cart/remove", params={"itemId": item_id}, headers=auth(member))
    assert removed.json() == {"success": True, "data": {"cartDeleted": True}, "message": "Item removed from cart"}
    assert client.get("/cart", headers=auth(member)).json()["data"]["itemCount"] == 0


def test_too_many_members_is_400(client, member, individual_type):
    payload = _add_payload(individual_type)
    payload["members"] = payload["members"] * 2

    res = client.post("/cart/add", json=payload, headers=auth(member))

    assert res.status_code == 400
    assert res.json()["error"] == "Maximum 1 members allowed for this registration type"


def test_removing_someone_elses_item_is_403(client, member, make_user, individual_type):
    item_id = client.post("/cart/add", json=_add_payload(individual_type), headers=auth(member)).json()["data"]["cartItemId"]

    res = client.delete("/cart/remove", params={"itemId": item_id}, headers=auth(make_user()))

    assert res.status_code == 403


def test_bank_checkout_example(client, db, member, individual_type):
    client.post("/cart/add", json=_add_payload(individual_type), headers=auth(member))

    res = client.post(
        "/checkout",
        json={"customerInfo": CUSTOMER_JSON, "paymentMethod": "bank", "bankSlipUrl": "slip.png"},
        headers=auth(member),
    )

    body = res.json()
    assert res.status_code == 200
    assert body["success"] is True
    assert body["data"]["orderId"].startswith("ORDER-")
    assert body["data"]["paymentMethod"] == "bank"
    [number] = body["data"]["registrationNumbers"]
    assert re.fullmatch(r"[23456789A-HJ-NP-Z]{6}", number)

    db.expire_all()
    payment = db.execute(select(PaymentModel)).scalar_one()
    assert (payment.status, payment.payment_method, float(payment.amount)) == ("PENDING", "BANK_TRANSFER", 5000.0)


def test_checkout_empty_cart_is_400(client, member):
    res = client.post("/checkout", json={"customerInfo": CUSTOMER_JSON, "paymentMethod": "bank"}, headers=auth(member))

    assert res.status_code == 400
    assert res.json() == {"success": False, "error": "Cart is empty"}


def test_invalid_payment_method_is_400(client, member):
    res = client.post("/checkout", json={"customerInfo": CUSTOMER_JSON, "paymentMethod": "cash"}, headers=auth(member))

    assert res.status_code == 400


def test_invalid_customer_email_is_400(client, member, individual_type):
    client.post("/cart/add", json=_add_payload(individual_type), headers=auth(member))

    res = client.post(
        "/checkout",
        json={"customerInfo": {**CUSTOMER_JSON, "email": "jane.checkout@"}, "paymentMethod": "bank"},
        headers=auth(member),
    )

    assert res.status_code == 400
    assert res.json()["error"] == "Invalid input"
    assert res.json()["details"][0]["loc"][-1] == "email"


def test_order_id_exhaustion_is_500(app, client, db, member, competition, individual_type):
    client.post("/cart/add", json=_add_payload(individual_type), headers=auth(member))
    client.post("/checkout", json={"customerInfo": CUSTOMER_JSON, "paymentMethod": "card"}, headers=auth(member))
    # pierwsza platnosc zajela numer 1 - sekwencja uparcie zwraca 1
    app.dependency_overrides[deps.get_order_sequence] = lambda: (lambda db: 1)

    res = client.post("/checkout", json={"customerInfo": CUSTOMER_JSON, "paymentMethod": "card"}, headers=auth(member))

    assert res.status_code == 500
    assert res.json() == {"success": False, "error": "Failed to create payment. Please try again."}
    db.expire_all()
    assert [p.order_id for p in db.execute(select(PaymentModel)).scalars()] == [generate_order_id(1)]


def test_card_checkout_then_gateway_notification(client, db, member, individual_type):
    client.post("/cart/add", json=_add_payload(individual_type), headers=auth(member))
    data = client.post(
        "/checkout", json={"customerInfo": CUSTOMER_JSON, "paymentMethod": "card"}, headers=auth(member)
    ).json()["data"]
    assert data["paymentData"]["amount"] == "5000.00"
    assert data["paymentUrl"].endswith("/pay/checkout")

    res = client.post("/payment/notify", data=payhere_notification(data["orderId"], "5000.00"))

    assert res.status_code == 200
    assert res.json()["data"] == {"orderId": data["orderId"], "status": "COMPLETED"}
    regs = client.get("/my-registrations", headers=auth(member)).json()["data"]
    assert [r["status"] for r in regs] == ["CONFIRMED"]
    assert "displayCode" not in regs[0]
    assert client.get("/cart", headers=auth(member)).json()["data"]["itemCount"] == 0


def test_gateway_notification_with_bad_signature_is_400(client, member, individual_type):
    client.post("/cart/add", json=_add_payload(individual_type), headers=auth(member))
    order_id = client.post(
        "/checkout", json={"customerInfo": CUSTOMER_JSON, "paymentMethod": "card"}, headers=auth(member)
    ).json()["data"]["orderId"]

    res = client.post("/payment/notify", data=payhere_notification(order_id, "5000.00", secret="forged"))

    assert res.status_code == 400
    assert res.json()["error"] == "Invalid signature"


def test_checkout_is_rate_limited(app, client, member):
    def exhausted():
        raise RateLimited("Too many requests. Please try again in 60 seconds.")

    app.dependency_overrides[deps.checkout_rate_limit] = exhausted

    res = client.post("/checkout", json={"customerInfo": CUSTOMER_JSON, "paymentMethod": "bank"}, headers=auth(member))

    assert res.status_code == 429
    assert res.json()["success"] is False


def test_order_ids_use_current_year(client, member, individual_type):
    client.post("/cart/add", json=_add_payload(individual_type), headers=auth(member))

    order_id = client.post(
        "/checkout", json={"customerInfo": CUSTOMER_JSON, "paymentMethod": "bank"}, headers=auth(member)
    ).json()["data"]["orderId"]

    assert order_id == f"ORDER-AC{utcnow().year}-00001"
