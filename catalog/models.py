"""
Pydantic models for book records.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

TITLE_MAX_LENGTH = 100
AUTHOR_MAX_LENGTH = 50


def utcnow() -> datetime:
    """Current UTC time, truncated to the millisecond precision MongoDB stores."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class BookData(BaseModel):
    """
    Book record as stored in the catalog.
    """
    id: Optional[str] = Field(None, description="Storage identifier")
    title: str = Field(..., max_length=TITLE_MAX_LENGTH, description="Book title")
    author: str = Field(..., max_length=AUTHOR_MAX_LENGTH, description="Book author")
    isbn: str = Field(..., min_length=13, max_length=13, description="ISBN-13 code")
    created_at: datetime = Field(default_factory=utcnow, description="When the book was created")
    updated_at: datetime = Field(default_factory=utcnow, description="Last update timestamp")

    @field_validator('title', 'author')
    @classmethod
    def validate_not_blank(cls, v, info):
        """Reject blank titles and authors."""
        if not v.strip():
            raise ValueError(f'{info.field_name.capitalize()} cannot be blank')
        return v

    @model_validator(mode='after')
    def default_updated_at(self):
        """A new record starts with updated_at equal to created_at."""
        if 'updated_at' not in self.model_fields_set:
            self.updated_at = self.created_at
        return self

    def is_recently_created(self) -> bool:
        """Whether the book was created within the last hour."""
        return self.created_at > utcnow() - timedelta(hours=1)

    def has_been_updated(self) -> bool:
        """Whether the book changed after it was created."""
        return self.updated_at > self.created_at

    def to_document(self) -> dict:
        """Serialize for MongoDB, without the id."""
        return self.model_dump(exclude={"id"})

    @classmethod
    def from_document(cls, document: dict) -> "BookData":
        """Build a BookData from a MongoDB document."""
        data = dict(document)
        data["id"] = str(data.pop("_id"))
        for field in ("created_at", "updated_at"):
            # pymongo returns naive datetimes in UTC unless tz_aware is set
            value = data.get(field)
            if isinstance(value, datetime) and value.tzinfo is None:
                data[field] = value.replace(tzinfo=timezone.utc)
        return cls(**data)
