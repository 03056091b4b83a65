"""
Identity models.

Only the session is shared between views; everything else a view
needs it fetches itself.
"""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from expense_tracker.models.expense import utcnow


class UserAccount(BaseModel):
    """A registered user. Passwords are stored as bcrypt hashes only."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    email: str = Field(
        ...,
        min_length=3,
        max_length=254,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
    )
    password_hash: str = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator('email')
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return v.lower()


class UserSession(BaseModel):
    """The authenticated identity every request is made as."""

    user_id: UUID
    email: str
    signed_in_at: datetime = Field(default_factory=utcnow)
