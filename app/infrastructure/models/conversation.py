"""SQLAlchemy model for two-party conversations."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship

from app.infrastructure.database import Base
from app.utils import now_in_app_naive_datetime


class ConversationModel(Base):
    """Database representation of a conversation between two users."""

    __tablename__ = "conversations"
    __table_args__ = (
        CheckConstraint("participant1_id <> participant2_id", name="ck_conversation_distinct"),
    )

    id = Column(Integer, primary_key=True, index=True)
    participant1_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    participant2_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    listing_id = Column(Integer, nullable=True, index=True)
    # Plain column; the messages table already references conversations.
    last_message_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(DateTime, nullable=False, default=now_in_app_naive_datetime)

    participant1 = relationship("UserModel", foreign_keys=[participant1_id], lazy="joined")
    participant2 = relationship("UserModel", foreign_keys=[participant2_id], lazy="joined")


__all__ = ["ConversationModel"]
