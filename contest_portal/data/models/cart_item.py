from sqlalchemy import JSON, Boolean, Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from contest_portal.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    competition_id = Column(Integer, ForeignKey("competitions.id"), nullable=False)
    registration_type_id = Column(Integer, ForeignKey("registration_types.id"), nullable=False)

    country = Column(String, nullable=False)
    participant_type = Column(String, nullable=False)
    referral_source = Column(String)
    members = Column(JSON, nullable=False)

    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    subtotal = Column(Numeric(10, 2), nullable=False)

    agreed_to_terms = Column(Boolean, nullable=False, default=False)
    agreed_to_website_terms = Column(Boolean, nullable=False, default=False)
    agreed_to_privacy_policy = Column(Boolean, nullable=False, default=False)
    agreed_to_refund_policy = Column(Boolean, nullable=False, default=False)

    cart = relationship("CartModel", back_populates="items")
    competition = relationship("CompetitionModel")
    registration_type = relationship("RegistrationTypeModel")
