"""SpeakerRecognitionUseCase — builds the per-meeting speaker map.

Resolution phases, earlier phases pre-empting later ones per speaker label:
  1. manual aliases supplied by the caller,
  2. calendar participants (loads candidate profiles; informational only),
  3. introduction detection, which finds or creates voice profiles and
     records a speaker match for each detected speaker,
  4. anything left keeps its raw label and is logged as unresolved.

The identity store is injected; a store failure for one speaker is logged
and leaves that speaker unresolved without stopping the others.
"""

import logging
import re
from dataclasses import replace
from typing import Dict, List, Optional

from transcript_intel.domain.models import (
    CustomNamePattern, DetectedName, MatchMethod, RecognitionResult,
    SpeakerIdentification, TranscriptSegment, VoiceProfile,
)
from transcript_intel.errors import MeetingNotFoundError, ProfileNotFoundError
from transcript_intel.name_detection import (
    DEFAULT_INTRODUCTION_WINDOW_MINUTES, DEFAULT_LATE_DETECTION_PENALTY,
    NameDetector, compile_custom_patterns,
)
from transcript_intel.ports.identity_store import IdentityStorePort
from transcript_intel.ports.meeting_store import MeetingStorePort

logger = logging.getLogger(__name__)

NEW_PROFILE_CONFIDENCE = 0.5
CONFIRMATION_STEP = 0.1

# Approximate timing for segments re-parsed from stored text.
PARSED_MS_PER_WORD = 300
PARSED_SEGMENT_GAP_MS = 1000
_TRANSCRIPT_BLOCK = re.compile(r"^(Speaker \d+):\s*(.+?)(?=\n\s*\n|\Z)", re.MULTILINE | re.DOTALL)


def parse_transcript_segments(full_text: str) -> List[TranscriptSegment]:
    """Rebuild segments from "Speaker N: text" blocks separated by blank lines.

    Blocks whose label is not a raw "Speaker N" (already renamed) are skipped.
    Timestamps are synthesized: 0.3 s per word plus a 1 s gap between blocks.
    """
    segments: List[TranscriptSegment] = []
    timestamp_ms = 0
    for match in _TRANSCRIPT_BLOCK.finditer(full_text):
        text = " ".join(match.group(2).split())
        duration_ms = len(text.split()) * PARSED_MS_PER_WORD
        segments.append(TranscriptSegment(
            speaker_label=match.group(1),
            text=text,
            start_ms=timestamp_ms,
            end_ms=timestamp_ms + duration_ms,
            confidence=1.0,
        ))
        timestamp_ms += duration_ms + PARSED_SEGMENT_GAP_MS
    return segments


class SpeakerRecognitionUseCase:
    def __init__(
        self,
        identity_store: IdentityStorePort,
        meeting_store: Optional[MeetingStorePort] = None,
        introduction_window_minutes: float = DEFAULT_INTRODUCTION_WINDOW_MINUTES,
        late_detection_penalty: float = DEFAULT_LATE_DETECTION_PENALTY,
    ):
        self._store = identity_store
        self._meetings = meeting_store
        self._window_minutes = introduction_window_minutes
        self._late_penalty = late_detection_penalty

    async def _build_detector(self, organization_id: str) -> NameDetector:
        patterns = await self._store.list_org_name_patterns(organization_id)
        return NameDetector(
            custom_patterns=patterns,
            introduction_window_minutes=self._window_minutes,
            late_detection_penalty=self._late_penalty,
        )

    async def recognize_speakers(
        self,
        segments: List[TranscriptSegment],
        organization_id: str,
        meeting_id: str,
        calendar_participants: Optional[List[str]] = None,
        existing_aliases: Optional[Dict[str, str]] = None,
    ) -> RecognitionResult:
        result = RecognitionResult()
        speakers = list(dict.fromkeys(s.speaker_label for s in segments))

        # 1. Manual aliases are final.
        if existing_aliases:
            result.speaker_map.update(existing_aliases)

        # 2. Calendar participants: we learn who should be present, not which
        # label they spoke under.
        if calendar_participants:
            await self._load_calendar_profiles(organization_id, meeting_id, calendar_participants)

        # 3. Introductions.
        detector = await self._build_detector(organization_id)
        detections = sorted(
            detector.detect_with_introduction_focus(segments).values(),
            key=lambda d: (-d.confidence, d.timestamp_ms, d.speaker_label),
        )
        result.detections = detections

        for detection in detections:
            if detection.speaker_label in result.speaker_map:
                continue
            try:
                profile = await self._find_or_create_by_name(organization_id, detection.name, meeting_id)
                await self._record_match(meeting_id, profile, detection)
            except Exception as e:
                logger.error(
                    f"Failed to create/match voice profile for {detection.speaker_label} "
                    f"({detection.name!r}) in meeting {meeting_id}: {e}"
                )
                continue

            result.speaker_map[detection.speaker_label] = detection.name
            if profile.sample_count == 1:
                result.new_profile_ids.append(profile.id)
            else:
                result.matched_profile_ids.append(profile.id)
            logger.info(
                f"Detected speaker name: meeting={meeting_id} label={detection.speaker_label} "
                f"name={detection.name} confidence={detection.confidence:.2f} "
                f"pattern={detection.pattern_id}"
            )

        # 4. Unresolved speakers keep their raw labels.
        result.unresolved_speakers = [s for s in speakers if s not in result.speaker_map]
        if result.unresolved_speakers:
            logger.info(f"Speakers without identification in {meeting_id}: {result.unresolved_speakers}")

        return result

    async def reprocess_meeting(self, meeting_id: str) -> RecognitionResult:
        """Re-run recognition from a meeting's stored transcript text."""
        meeting = await self._meetings.get_meeting(meeting_id) if self._meetings else None
        if meeting is None or not meeting.full_text:
            raise MeetingNotFoundError(f"Meeting or transcript not found: {meeting_id}")

        segments = parse_transcript_segments(meeting.full_text)
        logger.info(f"Reprocessing meeting {meeting_id}: {len(segments)} segments")
        return await self.recognize_speakers(
            segments,
            organization_id=meeting.organization_id,
            meeting_id=meeting.id,
        )

    async def update_org_patterns(
        self, organization_id: str, patterns: List[CustomNamePattern]
    ) -> List[CustomNamePattern]:
        """Replace the organization's custom patterns as a whole.

        Every pattern is compiled first; one bad pattern rejects the whole set
        and leaves the stored patterns untouched.
        """
        compile_custom_patterns(patterns)
        await self._store.replace_org_name_patterns(organization_id, list(patterns))
        return list(patterns)

    async def merge_profiles(self, keep_id: str, merge_id: str) -> VoiceProfile:
        """Fold merge_id into keep_id and delete merge_id. Never run automatically."""
        if keep_id == merge_id:
            raise ValueError("Cannot merge a profile into itself")

        keep = await self._store.get_profile(keep_id)
        merge = await self._store.get_profile(merge_id)
        if keep is None or merge is None:
            raise ProfileNotFoundError(f"Profile not found: {keep_id if keep is None else merge_id}")
        if keep.organization_id != merge.organization_id:
            raise ValueError("Cannot merge profiles from different organizations")

        moved = await self._store.reassign_speaker_matches(merge_id, keep_id)
        updated = await self._store.save_profile(replace(
            keep,
            sample_count=keep.sample_count + merge.sample_count,
            total_duration_ms=keep.total_duration_ms + merge.total_duration_ms,
            confidence=max(keep.confidence, merge.confidence),
            email=keep.email or merge.email,
        ))
        await self._store.delete_profile(merge_id)
        logger.info(f"Merged profile {merge_id} into {keep_id} ({moved} matches moved)")
        return updated

    async def confirm_match(self, profile_id: str, confirmed: bool) -> VoiceProfile:
        """Nudge a profile's confidence up or down after user feedback."""
        profile = await self._store.get_profile(profile_id)
        if profile is None:
            raise ProfileNotFoundError(f"Profile not found: {profile_id}")
        step = CONFIRMATION_STEP if confirmed else -CONFIRMATION_STEP
        confidence = min(1.0, max(0.0, profile.confidence + step))
        return await self._store.save_profile(replace(profile, confidence=confidence))

    async def get_meeting_speakers(self, meeting_id: str) -> List[SpeakerIdentification]:
        identifications = []
        for match in await self._store.list_speaker_matches(meeting_id):
            profile = await self._store.get_profile(match.voice_profile_id)
            if profile is None:
                continue
            identifications.append(SpeakerIdentification(
                speaker_label=match.speaker_label,
                display_name=profile.display_name,
                voice_profile_id=profile.id,
                match_method=match.match_method,
                confidence=match.confidence,
            ))
        return identifications

    async def _load_calendar_profiles(
        self, organization_id: str, meeting_id: str, emails: List[str]
    ) -> Dict[str, VoiceProfile]:
        try:
            profiles = await self._store.find_profiles_by_emails(organization_id, emails)
        except Exception as e:
            logger.error(f"Failed to load calendar participant profiles for {meeting_id}: {e}")
            return {}
        by_email = {p.email: p for p in profiles if p.email}
        logger.info(
            f"Loaded calendar participant profiles: meeting={meeting_id} "
            f"participants={len(emails)} matched={len(by_email)}"
        )
        return by_email

    async def _find_or_create_by_name(
        self, organization_id: str, display_name: str, meeting_id: str
    ) -> VoiceProfile:
        # Read-then-write with no transaction: two concurrent first sightings
        # of the same name can both create a profile.
        existing = await self._store.find_profile_by_name(organization_id, display_name)
        if existing:
            return await self._store.update_profile(existing.id, last_meeting_id=meeting_id)
        return await self._store.create_profile(
            organization_id=organization_id,
            display_name=display_name,
            first_meeting_id=meeting_id,
            last_meeting_id=meeting_id,
            confidence=NEW_PROFILE_CONFIDENCE,
        )

    async def _record_match(self, meeting_id: str, profile: VoiceProfile, detection: DetectedName) -> None:
        await self._store.upsert_speaker_match(
            meeting_id=meeting_id,
            speaker_label=detection.speaker_label,
            voice_profile_id=profile.id,
            match_method=MatchMethod.INTRODUCTION,
            confidence=detection.confidence,
            detected_phrase=detection.matched_phrase,
            detected_at_ms=detection.timestamp_ms,
        )
