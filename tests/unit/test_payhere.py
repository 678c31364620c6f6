from contest_portal.services.payhere import PayHereGateway, format_amount
from tests.helpers import md5_upper, payhere_notification


def test_hash_follows_payhere_algorithm(gateway):
    expected = md5_upper("1211149ORDER-AC2025-000011234.50LKR" + md5_upper("test-merchant-secret"))

    assert gateway.generate_hash("ORDER-AC2025-00001", "1234.50", "LKR") == expected


def test_signature_verification(gateway):
    form = payhere_notification("ORDER-AC2025-00001", "5000.00")
    args = (form["merchant_id"], form["order_id"], form["payhere_amount"], form["payhere_currency"], form["status_code"])

    assert gateway.verify_signature(*args, form["md5sig"])
    assert gateway.verify_signature(*args, form["md5sig"].lower())
    assert not gateway.verify_signature(*args, "0" * 32)
    assert not gateway.verify_signature(*args, "")


def test_payment_url_depends_on_mode():
    assert PayHereGateway(mode="live").payment_url == "https://www.payhere.lk/pay/checkout"
    assert PayHereGateway(mode="sandbox").payment_url == "https://sandbox.payhere.lk/pay/checkout"


def test_amount_has_two_decimals():
    assert format_amount(5000) == "5000.00"
    assert format_amount("12.5") == "12.50"
