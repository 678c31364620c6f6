import hashlib
from typing import Any, Dict

from contest_portal.data.models.user import UserModel


def valid_member(**overrides) -> Dict[str, Any]:
    member = {"name": "Jane Doe", "email": "jane@example.com", "phone": "+94771234567"}
    member.update(overrides)
    return member


AGREEMENTS = {
    "agreed_to_terms": True,
    "agreed_to_website_terms": True,
    "agreed_to_privacy_policy": True,
    "agreed_to_refund_policy": True,
}

AGREEMENTS_JSON = {
    "agreedToTerms": True,
    "agreedToWebsiteTerms": True,
    "agreedToPrivacyPolicy": True,
    "agreedToRefundPolicy": True,
}

CUSTOMER = {
    "first_name": "Jane",
    "last_name": "Doe",
    "email": "jane.checkout@example.com",
    "phone": "+94771234567",
    "country": "Sri Lanka",
}

CUSTOMER_JSON = {
    "firstName": "Jane",
    "lastName": "Doe",
    "email": "jane.checkout@example.com",
    "phone": "+94771234567",
    "country": "Sri Lanka",
}


def auth(user: UserModel) -> Dict[str, str]:
    return {"Authorization": f"Bearer {user.api_token}"}


def md5_upper(value: str) -> str:
    return hashlib.md5(value.encode()).hexdigest().upper()


def payhere_notification(order_id: str, amount: str, status_code: str = "2", secret: str = "test-merchant-secret",
                         merchant_id: str = "1211149", currency: str = "LKR") -> Dict[str, str]:
    sig = md5_upper(f"{merchant_id}{order_id}{amount}{currency}{status_code}{md5_upper(secret)}")
    return {
        "merchant_id": merchant_id,
        "order_id": order_id,
        "payhere_amount": amount,
        "payhere_currency": currency,
        "status_code": status_code,
        "md5sig": sig,
        "method": "VISA",
        "status_message": "Successfully completed",
        "payment_id": "320027150501",
    }
