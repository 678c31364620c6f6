# contest_portal/data/models/competition.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from contest_portal.data.database import Base


class CompetitionModel(Base):
    __tablename__ = "competitions"

    id = Column(Integer, primary_key=True)
    slug = Column(String, nullable=False, unique=True)
    title = Column(String, nullable=False)
    year = Column(Integer, nullable=False)
    registration_deadline = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)

    registration_types = relationship("RegistrationTypeModel", back_populates="competition")


class RegistrationTypeModel(Base):
    __tablename__ = "registration_types"

    id = Column(Integer, primary_key=True)
    competition_id = Column(Integer, ForeignKey("competitions.id"), nullable=False)

    type = Column(String, nullable=False)  # INDIVIDUAL, TEAM, COMPANY, STUDENT, KIDS
    name = Column(String, nullable=False)
    fee = Column(Numeric(10, 2), nullable=False)
    max_members = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)

    competition = relationship("CompetitionModel", back_populates="registration_types")
