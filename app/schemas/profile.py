from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from app.utils.validation import (
    normalize_skill_field,
    validate_availability_mode,
    validate_url_format,
)


class ProfileBase(BaseModel):
    """Fields a user publishes on their profile."""

    name: str = Field("", max_length=255, description="Display name")
    bio: str = Field("", description="Short bio")
    hobby: Optional[str] = Field(None, max_length=255)
    avatar_url: Optional[str] = Field(None, max_length=500)
    github_url: Optional[str] = Field(None, max_length=500)
    behance_url: Optional[str] = Field(None, max_length=500)
    availability_mode: Optional[str] = Field(
        None, max_length=50, description="online, offline or hybrid"
    )
    meeting_platform: Optional[str] = Field(None, max_length=50)
    is_top_mentor: bool = False

    @field_validator("avatar_url", "github_url", "behance_url")
    @classmethod
    def validate_url_fields(cls, v):
        if v == "":
            return None
        if not validate_url_format(v):
            raise ValueError("must be an http(s) URL")
        return v

    @field_validator("availability_mode")
    @classmethod
    def validate_availability_mode_field(cls, v):
        return validate_availability_mode(v)


class ProfileUpsert(ProfileBase):
    """Schema for creating or replacing the caller's profile.

    Skill fields take either the stored string or a list of labels.
    """

    teach_skill: Union[str, List[str]] = Field(
        "", description="Skills offered, as a list or comma-joined string"
    )
    learn_skill: Union[str, List[str]] = Field(
        "", description="Skills wanted, as a list or comma-joined string"
    )

    @field_validator("teach_skill", "learn_skill")
    @classmethod
    def normalize_skills(cls, v):
        value = normalize_skill_field(v)
        if len(value) > 1000:
            raise ValueError("skill list is too long")
        return value


class ProfileResponse(ProfileBase):
    """Schema for profile responses."""

    id: str
    teach_skill: str
    learn_skill: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
