from typing import List, Optional, Dict

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Vendor (speech-to-text) response shape. Only the fields the pipeline reads
# are declared; anything else the vendor sends is ignored.
# ---------------------------------------------------------------------------

class VendorWord(BaseModel):
    """A word as returned by the speech-to-text vendor (times in seconds)"""
    word: str
    start: float
    end: float
    confidence: float = Field(ge=0.0, le=1.0)
    speaker: Optional[int] = None
    punctuated_word: Optional[str] = None


class VendorSentence(BaseModel):
    text: str
    start: float
    end: float


class VendorParagraph(BaseModel):
    sentences: List[VendorSentence] = []
    speaker: Optional[int] = None
    start: float = 0.0
    end: float = 0.0


class VendorParagraphs(BaseModel):
    paragraphs: List[VendorParagraph] = []


class VendorAlternative(BaseModel):
    transcript: str = ""
    confidence: float = 0.0
    words: List[VendorWord] = []
    paragraphs: Optional[VendorParagraphs] = None


class VendorChannel(BaseModel):
    alternatives: List[VendorAlternative]


class VendorUtterance(BaseModel):
    """A vendor-delimited speaker turn"""
    start: float
    end: float
    confidence: float = 0.0
    transcript: str
    speaker: int
    words: List[VendorWord] = []
    channel: int = 0
    id: Optional[str] = None


class VendorResults(BaseModel):
    channels: List[VendorChannel]
    utterances: Optional[List[VendorUtterance]] = None


class VendorMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    duration: float
    request_id: Optional[str] = None


class VendorResponse(BaseModel):
    """Top-level vendor transcription response"""
    metadata: VendorMetadata
    results: VendorResults


# ---------------------------------------------------------------------------
# HTTP request/response bodies
# ---------------------------------------------------------------------------

class ProcessTranscriptBody(BaseModel):
    meeting_id: str
    organization_id: Optional[str] = None
    language: str = "en"
    response: Dict
    speaker_aliases: Dict[str, str] = {}
    calendar_participants: List[str] = []


class LowConfidenceRangeOut(BaseModel):
    start: int
    end: int


class SegmentOut(BaseModel):
    """A processed segment as returned to API callers"""
    speaker: str
    display_speaker: str
    text: str
    cleaned_text: str
    start_ms: int
    end_ms: int
    confidence: float
    low_confidence_ranges: List[LowConfidenceRangeOut] = []


class SpeakerOut(BaseModel):
    id: str
    label: str
    total_speaking_time_ms: int
    word_count: int


class DetectedNameOut(BaseModel):
    name: str
    speaker_label: str
    matched_phrase: str
    timestamp_ms: int
    confidence: float
    pattern_id: str


class RecognitionOut(BaseModel):
    speaker_map: Dict[str, str]
    detections: List[DetectedNameOut]
    new_profile_ids: List[str]
    matched_profile_ids: List[str]
    unresolved_speakers: List[str] = []


class ProcessTranscriptResponse(BaseModel):
    meeting_id: str
    skipped: bool = False
    skip_reason: Optional[str] = None
    text: str
    word_count: int
    duration_ms: int
    language: str
    average_confidence: float
    quality_warning: bool
    segments: List[SegmentOut] = []
    speakers: List[SpeakerOut] = []
    recognition: Optional[RecognitionOut] = None


class NamePatternIn(BaseModel):
    pattern: str
    name_group: int = 1
    priority: int = 0


class NamePatternsBody(BaseModel):
    patterns: List[NamePatternIn]


class MergeProfilesBody(BaseModel):
    keep_id: str
    merge_id: str


class ConfirmMatchBody(BaseModel):
    confirmed: bool


class VoiceProfileOut(BaseModel):
    id: str
    organization_id: str
    display_name: str
    email: Optional[str] = None
    sample_count: int
    total_duration_ms: int
    confidence: float
    first_meeting_id: Optional[str] = None
    last_meeting_id: Optional[str] = None


class SpeakerIdentificationOut(BaseModel):
    speaker_label: str
    display_name: str
    voice_profile_id: str
    match_method: str
    confidence: float
