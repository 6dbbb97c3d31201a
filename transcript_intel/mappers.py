"""Vendor DTO -> domain and domain -> response DTO mappers.

Processing code only ever sees domain dataclasses; pydantic models live at
the edges (vendor payload in, HTTP response out).
"""

from typing import Optional

from transcript_intel.domain.models import (
    Word, ProcessedSegment, ProcessedTranscript, DetectedName,
    RecognitionResult, VoiceProfile, SpeakerIdentification,
)
from transcript_intel.models import (
    VendorWord, SegmentOut, SpeakerOut, LowConfidenceRangeOut,
    DetectedNameOut, RecognitionOut, ProcessTranscriptResponse,
    VoiceProfileOut, SpeakerIdentificationOut,
)
from transcript_intel.timing import seconds_to_ms


def word_from_vendor(dto: VendorWord) -> Word:
    """Convert a vendor word (seconds) to a domain Word (milliseconds)."""
    return Word(
        text=dto.word,
        start_ms=seconds_to_ms(dto.start),
        end_ms=seconds_to_ms(dto.end),
        confidence=dto.confidence,
        speaker_index=dto.speaker,
        punctuated_text=dto.punctuated_word,
    )


def words_from_vendor(dtos: list[VendorWord]) -> list[Word]:
    return [word_from_vendor(dto) for dto in dtos]


def segment_to_dto(seg: ProcessedSegment) -> SegmentOut:
    return SegmentOut(
        speaker=seg.speaker_label,
        display_speaker=seg.display_speaker,
        text=seg.text,
        cleaned_text=seg.cleaned_text,
        start_ms=seg.start_ms,
        end_ms=seg.end_ms,
        confidence=seg.confidence,
        low_confidence_ranges=[
            LowConfidenceRangeOut(start=r.start, end=r.end)
            for r in seg.low_confidence_ranges
        ],
    )


def detection_to_dto(detection: DetectedName) -> DetectedNameOut:
    return DetectedNameOut(
        name=detection.name,
        speaker_label=detection.speaker_label,
        matched_phrase=detection.matched_phrase,
        timestamp_ms=detection.timestamp_ms,
        confidence=detection.confidence,
        pattern_id=detection.pattern_id,
    )


def recognition_to_dto(result: RecognitionResult) -> RecognitionOut:
    return RecognitionOut(
        speaker_map=dict(result.speaker_map),
        detections=[detection_to_dto(d) for d in result.detections],
        new_profile_ids=list(result.new_profile_ids),
        matched_profile_ids=list(result.matched_profile_ids),
        unresolved_speakers=list(result.unresolved_speakers),
    )


def transcript_to_dto(
    meeting_id: str,
    transcript: ProcessedTranscript,
    segments: list[ProcessedSegment],
    text: str,
    recognition: Optional[RecognitionResult] = None,
    skip_reason: Optional[str] = None,
) -> ProcessTranscriptResponse:
    """Build the API response for a processed transcription job."""
    return ProcessTranscriptResponse(
        meeting_id=meeting_id,
        skipped=skip_reason is not None,
        skip_reason=skip_reason,
        text=text,
        word_count=transcript.word_count,
        duration_ms=transcript.duration_ms,
        language=transcript.language,
        average_confidence=transcript.average_confidence,
        quality_warning=transcript.quality_warning,
        segments=[segment_to_dto(s) for s in segments],
        speakers=[
            SpeakerOut(
                id=s.id,
                label=s.label,
                total_speaking_time_ms=s.total_speaking_time_ms,
                word_count=s.word_count,
            )
            for s in transcript.speakers
        ],
        recognition=recognition_to_dto(recognition) if recognition else None,
    )


def profile_to_dto(profile: VoiceProfile) -> VoiceProfileOut:
    return VoiceProfileOut(
        id=profile.id,
        organization_id=profile.organization_id,
        display_name=profile.display_name,
        email=profile.email,
        sample_count=profile.sample_count,
        total_duration_ms=profile.total_duration_ms,
        confidence=profile.confidence,
        first_meeting_id=profile.first_meeting_id,
        last_meeting_id=profile.last_meeting_id,
    )


def identification_to_dto(ident: SpeakerIdentification) -> SpeakerIdentificationOut:
    return SpeakerIdentificationOut(
        speaker_label=ident.speaker_label,
        display_name=ident.display_name,
        voice_profile_id=ident.voice_profile_id,
        match_method=ident.match_method.value,
        confidence=ident.confidence,
    )
