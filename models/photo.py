# models/photo.py
from sqlalchemy import Column, BigInteger, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func

from .base import Base, utcnow


class Photo(Base):
    __tablename__ = "photos"

    id = Column(BigInteger, primary_key=True, index=True)
    user_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    url = Column(String(length=1024), nullable=False, index=True)
    storage_key = Column(String(length=255), nullable=False, unique=True)
    is_main = Column(Boolean, default=False, nullable=False)
    # Денормализованный счётчик: всегда равен числу строк в photo_likes
    like_count = Column(Integer, default=0, nullable=False)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Photo id={self.id} key={self.storage_key} main={self.is_main}>"


class PhotoLike(Base):
    __tablename__ = "photo_likes"

    id = Column(BigInteger, primary_key=True, index=True)
    photo_id = Column(BigInteger, ForeignKey("photos.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("photo_id", "user_id", name="uq_photo_like_user"),
    )

    def __repr__(self):
        return f"<PhotoLike {self.user_id}→{self.photo_id}>"
