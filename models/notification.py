# models/notification.py
from sqlalchemy import Column, BigInteger, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func

from .base import Base, utcnow

NOTIFICATION_TYPES = ("match", "superlike", "message", "reply", "comment")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(BigInteger, primary_key=True, index=True)
    user_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(16), nullable=False)
    title = Column(String(200), nullable=False)
    body = Column(String(500), nullable=False, default="")
    # id связанной сущности: матча, сообщения или признания
    related_id = Column(BigInteger, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Notification {self.type} → {self.user_id}>"
