"""IdentityStorePort — abstract interface for voice profiles, speaker matches and name patterns."""

from abc import ABC, abstractmethod
from typing import Optional

from transcript_intel.domain.models import (
    CustomNamePattern, MatchMethod, SpeakerMatch, VoiceProfile,
)


class IdentityStorePort(ABC):
    @abstractmethod
    async def find_profile_by_name(self, organization_id: str, display_name: str) -> Optional[VoiceProfile]:
        """Case-insensitive exact display-name match within the organization."""

    @abstractmethod
    async def find_profiles_by_emails(self, organization_id: str, emails: list[str]) -> list[VoiceProfile]:
        """Profiles in the organization whose email is in emails."""

    @abstractmethod
    async def get_profile(self, profile_id: str) -> Optional[VoiceProfile]:
        """Return the profile or None."""

    @abstractmethod
    async def create_profile(
        self,
        organization_id: str,
        display_name: str,
        first_meeting_id: Optional[str] = None,
        last_meeting_id: Optional[str] = None,
        confidence: float = 0.5,
        email: Optional[str] = None,
    ) -> VoiceProfile:
        """Create a profile with sample_count 1."""

    @abstractmethod
    async def update_profile(self, profile_id: str, last_meeting_id: Optional[str]) -> VoiceProfile:
        """Increment sample_count, move last_meeting_id. Returns the updated profile."""

    @abstractmethod
    async def save_profile(self, profile: VoiceProfile) -> VoiceProfile:
        """Overwrite a stored profile's fields."""

    @abstractmethod
    async def delete_profile(self, profile_id: str) -> None:
        """Delete a profile."""

    @abstractmethod
    async def upsert_speaker_match(
        self,
        meeting_id: str,
        speaker_label: str,
        voice_profile_id: str,
        match_method: MatchMethod,
        confidence: float,
        detected_phrase: Optional[str] = None,
        detected_at_ms: Optional[int] = None,
    ) -> SpeakerMatch:
        """Create or replace the match keyed by (meeting_id, speaker_label)."""

    @abstractmethod
    async def list_speaker_matches(self, meeting_id: str) -> list[SpeakerMatch]:
        """All matches recorded for a meeting."""

    @abstractmethod
    async def reassign_speaker_matches(self, from_profile_id: str, to_profile_id: str) -> int:
        """Point every match of one profile at another. Returns the count moved."""

    @abstractmethod
    async def list_org_name_patterns(self, organization_id: str) -> list[CustomNamePattern]:
        """The organization's custom introduction patterns."""

    @abstractmethod
    async def replace_org_name_patterns(self, organization_id: str, patterns: list[CustomNamePattern]) -> None:
        """Delete all of the organization's patterns, then insert these."""
