# contest_portal/data/models/flag.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from contest_portal.data.database import Base


class FlagModel(Base):
    __tablename__ = "flags"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False, index=True)

    reason = Column(String, nullable=False)
    description = Column(Text)
    severity = Column(String, nullable=False, default="MEDIUM")
    status = Column(String, nullable=False, default="PENDING")

    reviewed_by = Column(Integer, ForeignKey("users.id"))
    reviewed_at = Column(DateTime(timezone=True))
    review_notes = Column(Text)

    ip_address = Column(String)
    user_agent = Column(String)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    user = relationship("UserModel", foreign_keys=[user_id])
    reviewer = relationship("UserModel", foreign_keys=[reviewed_by])
    post = relationship("PostModel")

    __table_args__ = (UniqueConstraint("user_id", "post_id", "reason", name="u_flag_user_post_reason"),)
