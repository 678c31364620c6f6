# contest_portal/services/payhere.py
"""
PayHere - bramka kartowa.

Hash do przekierowania:
    UPPER(MD5(merchant_id + order_id + amount + currency + UPPER(MD5(secret))))
Podpis notyfikacji (IPN) dodatkowo zawiera status_code przed sekretem.
"""
import hashlib
from decimal import Decimal
from typing import Any, Dict

from contest_portal.utils.settings import (
    BASE_URL,
    DEFAULT_CURRENCY,
    PAYHERE_MERCHANT_ID,
    PAYHERE_MERCHANT_SECRET,
    PAYHERE_MODE,
)

_CHECKOUT_URLS = {
    "sandbox": "https://sandbox.payhere.lk/pay/checkout",
    "live": "https://www.payhere.lk/pay/checkout",
}

# status_code z notyfikacji
STATUS_SUCCESS = "2"
STATUS_PENDING = "0"
STATUS_CANCELLED = "-1"
STATUS_FAILED = "-2"
STATUS_CHARGEDBACK = "-3"


def _md5_upper(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest().upper()


def format_amount(amount) -> str:
    return f"{Decimal(amount):.2f}"


class PayHereGateway:
    def __init__(
        self,
        merchant_id: str | None = None,
        merchant_secret: str | None = None,
        mode: str | None = None,
        base_url: str | None = None,
        currency: str | None = None,
    ):
        self.merchant_id = merchant_id if merchant_id is not None else PAYHERE_MERCHANT_ID
        self.merchant_secret = merchant_secret if merchant_secret is not None else PAYHERE_MERCHANT_SECRET
        self.mode = mode or PAYHERE_MODE
        self.base_url = (base_url or BASE_URL).rstrip("/")
        self.currency = currency or DEFAULT_CURRENCY

    @property
    def payment_url(self) -> str:
        return _CHECKOUT_URLS.get(self.mode, _CHECKOUT_URLS["sandbox"])

    def generate_hash(self, order_id: str, amount: str, currency: str) -> str:
        secret = _md5_upper(self.merchant_secret)
        return _md5_upper(f"{self.merchant_id}{order_id}{amount}{currency}{secret}")

    def verify_signature(
        self,
        merchant_id: str,
        order_id: str,
        amount: str,
        currency: str,
        status_code: str,
        md5sig: str,
    ) -> bool:
        secret = _md5_upper(self.merchant_secret)
        expected = _md5_upper(f"{merchant_id}{order_id}{amount}{currency}{status_code}{secret}")
        return bool(md5sig) and expected == md5sig.upper()

    def build_payment_data(
        self,
        order_id: str,
        amount,
        items_description: str,
        customer: Dict[str, Any],
    ) -> Dict[str, Any]:
        amount_str = format_amount(amount)
        return {
            "merchant_id": self.merchant_id,
            "return_url": f"{self.base_url}/payment/return",
            "cancel_url": f"{self.base_url}/payment/cancel",
            "notify_url": f"{self.base_url}/payment/notify",
            "order_id": order_id,
            "items": items_description,
            "currency": self.currency,
            "amount": amount_str,
            "first_name": customer.get("first_name") or "",
            "last_name": customer.get("last_name") or "",
            "email": customer.get("email") or "",
            "phone": customer.get("phone") or "",
            "address": customer.get("address") or "",
            "city": customer.get("city") or "",
            "country": customer.get("country") or "",
            "hash": self.generate_hash(order_id, amount_str, self.currency),
        }
