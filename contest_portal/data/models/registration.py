# contest_portal/data/models/registration.py
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from contest_portal.data.database import Base


class RegistrationModel(Base):
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True)
    registration_number = Column(String, nullable=False, unique=True)
    # tylko dla admina, nadawany przy potwierdzeniu platnosci
    display_code = Column(String, unique=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    competition_id = Column(Integer, ForeignKey("competitions.id"), nullable=False)
    registration_type_id = Column(Integer, ForeignKey("registration_types.id"), nullable=False)
    payment_id = Column(Integer, ForeignKey("payments.id"))

    country = Column(String, nullable=False)
    participant_type = Column(String, nullable=False)
    members = Column(JSON, nullable=False)

    status = Column(String, nullable=False, default="PENDING")  # PENDING, CONFIRMED, SUBMITTED, CANCELLED
    submission_status = Column(String, nullable=False, default="NOT_SUBMITTED")
    amount_paid = Column(Numeric(10, 2), nullable=False)
    currency = Column(String, nullable=False, default="LKR")

    registered_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    confirmed_at = Column(DateTime(timezone=True))
    submitted_at = Column(DateTime(timezone=True))

    submission_url = Column(String)
    submission_notes = Column(String)
    submission_files = Column(JSON)

    user = relationship("UserModel")
    competition = relationship("CompetitionModel")
    registration_type = relationship("RegistrationTypeModel")
    payment = relationship("PaymentModel", back_populates="registrations")
