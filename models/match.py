# models/match.py
from sqlalchemy import Column, BigInteger, Integer, String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.sql import func

from .base import Base, utcnow

SWIPE_ACTIONS = ("like", "pass", "superlike")
POSITIVE_ACTIONS = ("like", "superlike")


def canonical_pair(a: int, b: int) -> tuple[int, int]:
    """Неупорядоченная пара пользователей → (меньший id, больший id)."""
    return (a, b) if a < b else (b, a)


class Swipe(Base):
    """Направленное решение actor → target; одна строка на упорядоченную пару."""

    __tablename__ = "swipes"

    id = Column(BigInteger, primary_key=True, index=True)
    actor_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    target_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(16), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("actor_id", "target_id", name="uq_swipe_actor_target"),
        CheckConstraint("actor_id <> target_id", name="ck_swipe_not_self"),
    )

    def __repr__(self):
        return f"<Swipe {self.actor_id}→{self.target_id} {self.action}>"


class SwipePair(Base):
    """Строка-замок на неупорядоченную пару: сериализует свайпы внутри пары."""

    __tablename__ = "swipe_pairs"

    id = Column(BigInteger, primary_key=True, index=True)
    user1_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user2_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    last_swipe_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        UniqueConstraint("user1_id", "user2_id", name="uq_swipe_pair"),
    )


class Match(Base):
    __tablename__ = "matches"

    id = Column(BigInteger, primary_key=True, index=True)
    user1_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    user2_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user1_id", "user2_id", name="uq_match_pair"),
        CheckConstraint("user1_id < user2_id", name="ck_match_canonical"),
    )

    def other_user_id(self, user_id: int) -> int:
        return self.user2_id if self.user1_id == user_id else self.user1_id

    def has_member(self, user_id: int) -> bool:
        return user_id in (self.user1_id, self.user2_id)

    def __repr__(self):
        return f"<Match {self.user1_id}↔{self.user2_id}>"
