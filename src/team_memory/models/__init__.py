"""Data models for memory records and tool inputs."""

from .schemas import MemoryRecord, ProfileRequest, SearchRequest, StoreRequest, UserProfile

__all__ = [
    "MemoryRecord",
    "ProfileRequest",
    "SearchRequest",
    "StoreRequest",
    "UserProfile",
]
