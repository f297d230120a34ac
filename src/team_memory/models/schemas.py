"""
Pydantic models for memory records and tool inputs.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MemoryRecord(BaseModel):
    """Normalized shape of a single remote search result."""
    model_config = ConfigDict(frozen=True)

    id: str
    content: str = ""
    title: str = "Untitled"
    tags: List[str] = Field(default_factory=list)
    score: float = 0.0
    created_at: datetime

    @field_validator('tags')
    @classmethod
    def dedupe_tags(cls, v):
        return list(dict.fromkeys(tag for tag in v if tag))


class UserProfile(BaseModel):
    """Facts the remote API keeps about one identity."""
    model_config = ConfigDict(frozen=True)

    static_facts: List[str] = Field(default_factory=list)
    dynamic_facts: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.static_facts and not self.dynamic_facts


def _not_blank(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("must not be empty")
    return value.strip()


class SearchRequest(BaseModel):
    """Arguments of the search tool."""
    model_config = ConfigDict(extra="ignore")

    query: str
    limit: Optional[int] = Field(default=None, ge=1)

    @field_validator('query')
    @classmethod
    def validate_query(cls, v):
        return _not_blank(v)


class StoreRequest(BaseModel):
    """Arguments of the store tool."""
    model_config = ConfigDict(extra="ignore")

    content: str
    title: str
    tags: Optional[List[str]] = Field(default_factory=list)

    @field_validator('content', 'title')
    @classmethod
    def validate_text(cls, v):
        return _not_blank(v)

    @field_validator('tags')
    @classmethod
    def clean_tags(cls, v):
        if v is None:
            return []
        return [tag.strip() for tag in v if tag and tag.strip()]


class ProfileRequest(BaseModel):
    """Arguments of the profile tool."""
    model_config = ConfigDict(extra="ignore")

    identity: Optional[str] = None

    @field_validator('identity')
    @classmethod
    def blank_is_default(cls, v):
        if v is None or not v.strip():
            return None
        return v.strip()
