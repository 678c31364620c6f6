from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text

from contest_portal.data.database import Base


class ModerationActionModel(Base):
    __tablename__ = "moderation_actions"

    id = Column(Integer, primary_key=True)
    action = Column(String, nullable=False)
    reason = Column(Text)
    meta = Column("metadata", JSON)
    post_id = Column(Integer, ForeignKey("posts.id"))
    moderator_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    moderated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
