"""InMemoryMeetingStore — keeps cleaned meeting transcripts in a dict."""

from dataclasses import replace
from typing import Optional

from transcript_intel.domain.models import MeetingRecord
from transcript_intel.ports.meeting_store import MeetingStorePort


class InMemoryMeetingStore(MeetingStorePort):
    def __init__(self, meetings: Optional[list[MeetingRecord]] = None):
        self._meetings: dict[str, MeetingRecord] = {m.id: m for m in meetings or []}

    async def get_meeting(self, meeting_id: str) -> Optional[MeetingRecord]:
        meeting = self._meetings.get(meeting_id)
        return replace(meeting) if meeting else None

    async def save_transcript(self, meeting_id: str, organization_id: str, full_text: str) -> MeetingRecord:
        record = MeetingRecord(id=meeting_id, organization_id=organization_id, full_text=full_text)
        self._meetings[meeting_id] = record
        return replace(record)
