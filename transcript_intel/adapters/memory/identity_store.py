"""InMemoryIdentityStore — process-local voice profiles, matches and patterns.

Lookups and writes are individually consistent but, like the database-backed
store, find-then-create is not atomic across awaits.
"""

import logging
import uuid
from dataclasses import replace
from typing import Optional

from transcript_intel.domain.models import (
    CustomNamePattern, MatchMethod, SpeakerMatch, VoiceProfile,
)
from transcript_intel.errors import ProfileNotFoundError
from transcript_intel.ports.identity_store import IdentityStorePort

logger = logging.getLogger(__name__)


class InMemoryIdentityStore(IdentityStorePort):
    def __init__(self):
        self._profiles: dict[str, VoiceProfile] = {}
        self._matches: dict[tuple[str, str], SpeakerMatch] = {}
        self._patterns: dict[str, list[CustomNamePattern]] = {}

    def _persist(self) -> None:
        """Hook for subclasses that write state somewhere durable."""

    def _require(self, profile_id: str) -> VoiceProfile:
        profile = self._profiles.get(profile_id)
        if profile is None:
            raise ProfileNotFoundError(f"Voice profile {profile_id} not found")
        return profile

    async def find_profile_by_name(self, organization_id: str, display_name: str) -> Optional[VoiceProfile]:
        wanted = display_name.casefold()
        for profile in self._profiles.values():
            if profile.organization_id == organization_id and profile.display_name.casefold() == wanted:
                return replace(profile)
        return None

    async def find_profiles_by_emails(self, organization_id: str, emails: list[str]) -> list[VoiceProfile]:
        wanted = {e.casefold() for e in emails}
        return [
            replace(p) for p in self._profiles.values()
            if p.organization_id == organization_id and p.email and p.email.casefold() in wanted
        ]

    async def get_profile(self, profile_id: str) -> Optional[VoiceProfile]:
        profile = self._profiles.get(profile_id)
        return replace(profile) if profile else None

    async def create_profile(
        self,
        organization_id: str,
        display_name: str,
        first_meeting_id: Optional[str] = None,
        last_meeting_id: Optional[str] = None,
        confidence: float = 0.5,
        email: Optional[str] = None,
    ) -> VoiceProfile:
        profile = VoiceProfile(
            id=uuid.uuid4().hex,
            organization_id=organization_id,
            display_name=display_name,
            email=email,
            sample_count=1,
            confidence=confidence,
            first_meeting_id=first_meeting_id,
            last_meeting_id=last_meeting_id,
        )
        self._profiles[profile.id] = profile
        self._persist()
        return replace(profile)

    async def update_profile(self, profile_id: str, last_meeting_id: Optional[str]) -> VoiceProfile:
        profile = self._require(profile_id)
        profile.sample_count += 1
        if last_meeting_id:
            profile.last_meeting_id = last_meeting_id
        self._persist()
        return replace(profile)

    async def save_profile(self, profile: VoiceProfile) -> VoiceProfile:
        self._require(profile.id)
        self._profiles[profile.id] = replace(profile)
        self._persist()
        return replace(profile)

    async def delete_profile(self, profile_id: str) -> None:
        self._require(profile_id)
        del self._profiles[profile_id]
        self._persist()

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
        match = SpeakerMatch(
            meeting_id=meeting_id,
            speaker_label=speaker_label,
            voice_profile_id=voice_profile_id,
            match_method=MatchMethod(match_method),
            confidence=confidence,
            detected_phrase=detected_phrase,
            detected_at_ms=detected_at_ms,
        )
        self._matches[(meeting_id, speaker_label)] = match
        self._persist()
        return replace(match)

    async def list_speaker_matches(self, meeting_id: str) -> list[SpeakerMatch]:
        return [
            replace(m) for (mid, _), m in sorted(self._matches.items())
            if mid == meeting_id
        ]

    async def reassign_speaker_matches(self, from_profile_id: str, to_profile_id: str) -> int:
        moved = 0
        for match in self._matches.values():
            if match.voice_profile_id == from_profile_id:
                match.voice_profile_id = to_profile_id
                moved += 1
        if moved:
            self._persist()
        return moved

    async def list_org_name_patterns(self, organization_id: str) -> list[CustomNamePattern]:
        return list(self._patterns.get(organization_id, []))

    async def replace_org_name_patterns(self, organization_id: str, patterns: list[CustomNamePattern]) -> None:
        self._patterns.pop(organization_id, None)
        self._patterns[organization_id] = list(patterns)
        self._persist()
        logger.info(f"Replaced name patterns for {organization_id}: {len(patterns)} patterns")
