import enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.database import Base


class MatchStatus(enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class Match(Base):
    """Pairing between two profiles.

    Lifecycle is pending -> accepted, or pending -> deleted on reject.
    ``pair_low``/``pair_high`` hold the sorted pair so the store enforces
    one row per unordered pair.
    """

    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user1 = Column(String(128), ForeignKey("profiles.id"), nullable=False, index=True)
    user2 = Column(String(128), ForeignKey("profiles.id"), nullable=False, index=True)

    # Canonical unordered pair key
    pair_low = Column(String(128), nullable=False)
    pair_high = Column(String(128), nullable=False)

    status = Column(
        String(20), nullable=False, default=MatchStatus.PENDING.value, index=True
    )

    # Audit timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("pair_low", "pair_high", name="uq_match_pair"),
        CheckConstraint("user1 <> user2", name="check_match_not_self"),
        # Ids are never reused, so notification back-references stay unambiguous
        {"sqlite_autoincrement": True},
    )

    messages = relationship(
        "Message", back_populates="match", passive_deletes=True
    )

    @staticmethod
    def pair_key(a: str, b: str) -> tuple[str, str]:
        """Return the unordered pair {a, b} in canonical order."""
        return (a, b) if a <= b else (b, a)

    def involves(self, user_id: str) -> bool:
        return user_id in (self.user1, self.user2)

    def counterpart(self, user_id: str) -> str:
        """The participant who isn't ``user_id``."""
        return self.user2 if self.user1 == user_id else self.user1

    @property
    def is_accepted(self) -> bool:
        return self.status == MatchStatus.ACCEPTED.value

    def __repr__(self):
        return (
            f"<Match(id={self.id}, user1='{self.user1}', user2='{self.user2}', "
            f"status={self.status})>"
        )
