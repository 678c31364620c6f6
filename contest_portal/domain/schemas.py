# contest_portal/domain/schemas.py
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StrictBool
from pydantic.alias_generators import to_camel

from contest_portal.domain.statuses import FLAG_REASONS, FLAG_SEVERITIES, MODERATION_ACTIONS


class CamelModel(BaseModel):
    """JSON API uzywa camelCase, w Pythonie zostajemy przy snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# =====================================================
# CART
# =====================================================
class MemberIn(CamelModel):
    name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    institution: Optional[str] = None
    student_id: Optional[str] = None
    student_email: Optional[str] = None
    course_of_study: Optional[str] = None
    date_of_birth: Optional[str] = None
    id_card_url: Optional[str] = None
    parent_first_name: Optional[str] = None
    parent_last_name: Optional[str] = None
    parent_email: Optional[str] = None
    parent_phone: Optional[str] = None
    postal_address: Optional[str] = None


class AgreementsIn(CamelModel):
    agreed_to_terms: bool = False
    agreed_to_website_terms: bool = False
    agreed_to_privacy_policy: bool = False
    agreed_to_refund_policy: bool = False


class AddToCartIn(CamelModel):
    """Schema dla dodawania zgloszenia do koszyka."""

    competition_id: int = Field(..., gt=0)
    registration_type_id: int = Field(..., gt=0)
    country: str = ""
    participant_type: str = "INDIVIDUAL"
    referral_source: Optional[str] = None
    members: List[MemberIn] = Field(default_factory=list)
    agreements: AgreementsIn = Field(default_factory=AgreementsIn)


class CartItemOut(CamelModel):
    id: int
    competition_title: str
    registration_type: str
    country: str
    member_count: int
    unit_price: float
    subtotal: float


class CartOut(CamelModel):
    """Koszyk + podsumowanie (response)."""

    cart_id: Optional[int] = None
    status: Optional[str] = None
    item_count: int = 0
    subtotal: float = 0
    discount: float = 0
    total: float = 0
    expires_at: Optional[datetime] = None
    items: List[CartItemOut] = Field(default_factory=list)


class CartItemAddedOut(CamelModel):
    cart_id: int
    cart_item_id: int


# =====================================================
# CHECKOUT / PAYMENTS
# =====================================================
class CustomerInfoIn(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None


class CheckoutIn(CamelModel):
    customer_info: Optional[CustomerInfoIn] = None
    payment_method: Literal["card", "bank"] = "card"
    bank_slip_url: Optional[str] = None
    bank_slip_file_name: Optional[str] = None
    will_send_via_whatsapp: bool = Field(default=False, alias="willSendViaWhatsApp")


class CheckoutOut(CamelModel):
    order_id: str
    payment_method: str
    registration_numbers: List[str] = Field(default_factory=list)
    payment_url: Optional[str] = None
    payment_data: Optional[Dict[str, Any]] = None


class VerifyPaymentIn(CamelModel):
    payment_id: int
    registration_id: int
    approve: StrictBool
    reject_reason: Optional[str] = None


class RevertPaymentIn(CamelModel):
    payment_id: int
    registration_id: int
    revert_reason: Optional[str] = None


# =====================================================
# REGISTRATIONS
# =====================================================
class RegistrationOut(CamelModel):
    id: int
    registration_number: str
    competition_id: int
    competition_title: str
    registration_type: str
    participant_type: str
    country: str
    members: List[Dict[str, Any]]
    status: str
    submission_status: str
    amount_paid: float
    currency: str
    registered_at: datetime
    confirmed_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None


class AdminRegistrationOut(RegistrationOut):
    user_id: int
    display_code: Optional[str] = None
    payment_id: Optional[int] = None
    order_id: Optional[str] = None
    payment_status: Optional[str] = None
    payment_method: Optional[str] = None


class SubmitRegistrationIn(CamelModel):
    submission_url: Optional[str] = None
    submission_notes: Optional[str] = None
    submission_files: Optional[List[Dict[str, Any]]] = None


# =====================================================
# FLAGS / MODERATION
# =====================================================
class CreateFlagIn(CamelModel):
    post_id: int = Field(..., gt=0)
    reason: Literal[FLAG_REASONS]
    details: Optional[str] = None
    severity: Literal[FLAG_SEVERITIES] = "MEDIUM"


class ReviewFlagIn(CamelModel):
    status: Literal["REVIEWED", "RESOLVED", "DISMISSED", "ESCALATED"]
    review_notes: Optional[str] = None
    moderation_action: Optional[Literal[MODERATION_ACTIONS]] = None
    moderation_reason: Optional[str] = None


class FlagOut(CamelModel):
    id: int
    post_id: int
    user_id: int
    reason: str
    description: Optional[str] = None
    severity: str
    status: str
    created_at: datetime
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None


class PaginationOut(CamelModel):
    current_page: int
    total_pages: int
    total_flags: int
    has_next: bool
    has_prev: bool


class FlagPageOut(CamelModel):
    flags: List[FlagOut]
    pagination: PaginationOut


class ModerationStatsOut(CamelModel):
    pending_reports: int
    reviewed_reports: int
    resolved_reports: int
    dismissed_reports: int
    escalated_reports: int
    flagged_posts: int
    total_reports: int


class ModerationActionOut(CamelModel):
    id: int
    action: str
    reason: Optional[str] = None
    post_id: Optional[int] = None
    moderator_id: int
    moderated_at: datetime
    meta: Optional[Dict[str, Any]] = Field(default=None, serialization_alias="metadata")
