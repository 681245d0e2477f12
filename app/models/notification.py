import enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.database import Base


class NotificationType(enum.Enum):
    MATCH_REQUEST = "match_request"
    SYSTEM = "system"


class Notification(Base):
    """User-facing record prompting action on a match request."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        String(128), ForeignKey("profiles.id"), nullable=False, index=True
    )
    type = Column(
        String(20), nullable=False, default=NotificationType.SYSTEM.value
    )
    message = Column(Text, nullable=False, default="")

    # Plain back-reference: the match may be deleted on reject
    match_id = Column(Integer, nullable=True, index=True)

    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        # NULL match_id (system notifications) never collides
        UniqueConstraint(
            "user_id", "type", "match_id", name="uq_notification_user_type_match"
        ),
        {"sqlite_autoincrement": True},
    )

    recipient = relationship("Profile", back_populates="notifications")

    @property
    def is_match_request(self) -> bool:
        return (
            self.type == NotificationType.MATCH_REQUEST.value
            and self.match_id is not None
        )

    def __repr__(self):
        return (
            f"<Notification(id={self.id}, user_id='{self.user_id}', "
            f"type={self.type}, match_id={self.match_id}, read={self.is_read})>"
        )
