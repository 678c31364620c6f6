# contest_portal/data/models/post.py
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from contest_portal.data.database import Base


class PostModel(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)

    # licznik denormalizowany - zawsze przeliczany z tabeli flag w transakcji
    is_flagged = Column(Boolean, nullable=False, default=False)
    flag_count = Column(Integer, nullable=False, default=0)

    is_hidden = Column(Boolean, nullable=False, default=False)
    is_pinned = Column(Boolean, nullable=False, default=False)
    is_locked = Column(Boolean, nullable=False, default=False)
    moderation_status = Column(String, nullable=False, default="APPROVED")
    moderated_by = Column(Integer, ForeignKey("users.id"))
    moderation_reason = Column(String)
    last_moderated_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    author = relationship("UserModel", foreign_keys=[author_id])
