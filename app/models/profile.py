from sqlalchemy import Boolean, Column, DateTime, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.database import Base


class Profile(Base):
    """A user's published skill-exchange intent.

    ``teach_skill`` and ``learn_skill`` hold comma-joined, ordered skill
    labels. Matching compares them as whole strings.
    """

    __tablename__ = "profiles"

    # Core identity, issued by the auth provider
    id = Column(String(128), primary_key=True)
    name = Column(String(255), nullable=False, default="")
    bio = Column(Text, nullable=False, default="")

    # Skill exchange
    teach_skill = Column(String(1000), nullable=False, default="", index=True)
    learn_skill = Column(String(1000), nullable=False, default="", index=True)

    # Descriptive fields
    hobby = Column(String(255), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    github_url = Column(String(500), nullable=True)
    behance_url = Column(String(500), nullable=True)
    availability_mode = Column(String(50), nullable=True)
    meeting_platform = Column(String(50), nullable=True)
    is_top_mentor = Column(Boolean, nullable=False, default=False)

    # Audit timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    notifications = relationship(
        "Notification", back_populates="recipient", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return (
            f"<Profile(id='{self.id}', teach='{self.teach_skill}', "
            f"learn='{self.learn_skill}')>"
        )
