"""MeetingStorePort — abstract interface for stored meeting transcripts."""

from abc import ABC, abstractmethod
from typing import Optional

from transcript_intel.domain.models import MeetingRecord


class MeetingStorePort(ABC):
    @abstractmethod
    async def get_meeting(self, meeting_id: str) -> Optional[MeetingRecord]:
        """Return the meeting with its cleaned transcript, or None."""

    @abstractmethod
    async def save_transcript(self, meeting_id: str, organization_id: str, full_text: str) -> MeetingRecord:
        """Store (or replace) the cleaned full text of a meeting."""
