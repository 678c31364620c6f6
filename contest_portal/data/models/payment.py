# contest_portal/data/models/payment.py
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from contest_portal.data.database import Base


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    order_id = Column(String, nullable=False, unique=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    competition_id = Column(Integer, ForeignKey("competitions.id"), nullable=False)

    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String, nullable=False, default="LKR")
    merchant_id = Column(String, nullable=False, default="")
    status = Column(String, nullable=False, default="PENDING")  # PENDING, COMPLETED, FAILED, CANCELLED, REFUNDED
    payment_method = Column(String, nullable=False)  # CARD, BANK_TRANSFER

    # snapshot koszyka z momentu checkoutu - nie zmieniamy po utworzeniu
    items = Column(JSON, nullable=False)
    customer_details = Column(JSON)
    meta = Column("metadata", JSON)
    response_data = Column(JSON)

    gateway_payment_id = Column(String)
    status_code = Column(String)
    error_message = Column(String)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    completed_at = Column(DateTime(timezone=True))
    refunded_at = Column(DateTime(timezone=True))

    user = relationship("UserModel")
    registrations = relationship("RegistrationModel", back_populates="payment")
