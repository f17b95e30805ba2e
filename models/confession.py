# models/confession.py
from sqlalchemy import (
    Column, BigInteger, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, Index,
)
from sqlalchemy.sql import func

from .base import Base, utcnow

CATEGORIES = ("love", "breakup", "secret", "funny", "crush")
REACTION_KINDS = ("heart", "laugh", "fire", "sad")


class Confession(Base):
    __tablename__ = "confessions"

    id = Column(BigInteger, primary_key=True, index=True)
    content = Column(String(1000), nullable=False)
    category = Column(String(16), nullable=False, default="secret")
    # Автор хранится, но никогда не попадает в ответы API
    author_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    college = Column(String(200), nullable=False)
    is_anonymous = Column(Boolean, nullable=False, default=True)

    heart_count = Column(Integer, nullable=False, default=0)
    laugh_count = Column(Integer, nullable=False, default=0)
    fire_count = Column(Integer, nullable=False, default=0)
    sad_count = Column(Integer, nullable=False, default=0)
    comment_count = Column(Integer, nullable=False, default=0)

    is_reported = Column(Boolean, nullable=False, default=False)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        Index("ix_confessions_college_created", "college", "created_at"),
        Index("ix_confessions_category_created", "category", "created_at"),
    )

    @property
    def reaction_counts(self) -> dict[str, int]:
        return {kind: getattr(self, f"{kind}_count") for kind in REACTION_KINDS}

    def __repr__(self):
        return f"<Confession id={self.id} college={self.college} category={self.category}>"


class ConfessionReaction(Base):
    __tablename__ = "confession_reactions"

    id = Column(BigInteger, primary_key=True, index=True)
    confession_id = Column(BigInteger, ForeignKey("confessions.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    kind = Column(String(16), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("confession_id", "user_id", "kind", name="uq_confession_reaction_user_kind"),
    )

    def __repr__(self):
        return f"<ConfessionReaction {self.user_id} {self.kind}→{self.confession_id}>"


class ConfessionComment(Base):
    __tablename__ = "confession_comments"

    id = Column(BigInteger, primary_key=True, index=True)
    confession_id = Column(BigInteger, ForeignKey("confessions.id", ondelete="CASCADE"), nullable=False, index=True)
    # NULL для комментария верхнего уровня, id комментария для ответа
    parent_id = Column(BigInteger, ForeignKey("confession_comments.id", ondelete="CASCADE"), nullable=True)
    author_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(String(500), nullable=False)
    is_anonymous = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<ConfessionComment id={self.id} confession={self.confession_id} parent={self.parent_id}>"


class ConfessionReport(Base):
    __tablename__ = "confession_reports"

    id = Column(BigInteger, primary_key=True, index=True)
    confession_id = Column(BigInteger, ForeignKey("confessions.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("confession_id", "user_id", name="uq_confession_report_user"),
    )
