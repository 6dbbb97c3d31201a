"""In-process adapters, used for the default local setup and in tests."""

from .identity_store import InMemoryIdentityStore
from .meeting_store import InMemoryMeetingStore

__all__ = ["InMemoryIdentityStore", "InMemoryMeetingStore"]
