"""Framework-agnostic domain models for transcript intelligence.

Vendor payloads (pydantic DTOs in models.py) are mapped into these at the
boundary; every processing stage works on these dataclasses only.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Word:
    """A single recognized word with timing and vendor confidence."""
    text: str
    start_ms: int
    end_ms: int
    confidence: float
    speaker_index: Optional[int] = None
    punctuated_text: Optional[str] = None

    @property
    def display_text(self) -> str:
        return self.punctuated_text or self.text


@dataclass
class TranscriptSegment:
    """A contiguous run of speech attributed to one speaker."""
    speaker_label: str
    text: str
    start_ms: int
    end_ms: int
    confidence: float
    words: list[Word] = field(default_factory=list)

    @property
    def duration_ms(self) -> int:
        return max(0, self.end_ms - self.start_ms)


@dataclass(frozen=True)
class LowConfidenceRange:
    """Character span [start, end) in a segment's original text."""
    start: int
    end: int


@dataclass
class ProcessedSegment(TranscriptSegment):
    """A segment plus its display-ready derivatives."""
    cleaned_text: str = ""
    display_speaker: str = ""
    low_confidence_ranges: list[LowConfidenceRange] = field(default_factory=list)


@dataclass
class Speaker:
    """Per-speaker talk time and word count."""
    id: str
    label: str
    total_speaking_time_ms: int
    word_count: int


@dataclass
class ProcessedTranscript:
    """Normalized transcript for one meeting."""
    segments: list[TranscriptSegment]
    full_text: str
    word_count: int
    speakers: list[Speaker]
    duration_ms: int
    language: str
    average_confidence: float
    quality_warning: bool


@dataclass(frozen=True)
class DetectedName:
    """A self-introduction found in a segment."""
    name: str
    speaker_label: str
    matched_phrase: str
    timestamp_ms: int
    confidence: float
    pattern_id: str


@dataclass(frozen=True)
class CustomNamePattern:
    """Organization-supplied introduction pattern as stored."""
    pattern: str
    name_group: int = 1
    priority: int = 0


class MatchMethod(str, Enum):
    """How a speaker label was bound to a voice profile."""
    INTRODUCTION = "introduction"
    MANUAL = "manual"
    CALENDAR = "calendar"
    VOICE = "voice"


@dataclass
class VoiceProfile:
    """A recognized individual, scoped to an organization."""
    id: str
    organization_id: str
    display_name: str
    email: Optional[str] = None
    sample_count: int = 1
    total_duration_ms: int = 0
    confidence: float = 0.5
    first_meeting_id: Optional[str] = None
    last_meeting_id: Optional[str] = None


@dataclass
class SpeakerMatch:
    """Binding of a raw speaker label in one meeting to a voice profile."""
    meeting_id: str
    speaker_label: str
    voice_profile_id: str
    match_method: MatchMethod
    confidence: float
    detected_phrase: Optional[str] = None
    detected_at_ms: Optional[int] = None


@dataclass
class SpeakerIdentification:
    speaker_label: str
    display_name: str
    voice_profile_id: str
    match_method: MatchMethod
    confidence: float


@dataclass
class RecognitionResult:
    """Outcome of one speaker-recognition run for a meeting."""
    speaker_map: dict[str, str] = field(default_factory=dict)
    detections: list[DetectedName] = field(default_factory=list)
    new_profile_ids: list[str] = field(default_factory=list)
    matched_profile_ids: list[str] = field(default_factory=list)
    unresolved_speakers: list[str] = field(default_factory=list)


@dataclass
class MeetingRecord:
    """The stored, cleaned transcript of a meeting."""
    id: str
    organization_id: str
    full_text: Optional[str] = None
