"""Diarization normalizer: vendor response -> ordered TranscriptSegments.

Three sources of speaker turns are tried in order:
  1. vendor utterances (one segment per utterance),
  2. per-word speaker tags (consecutive words grouped by speaker),
  3. no diarization signal: vendor paragraphs/sentences, or fixed-duration
     chunks as a last resort, all attributed to a single speaker.

A merge pass then joins adjacent same-speaker segments separated by a small
gap. Segment confidence is always the mean of the contained word confidences.
"""

import logging
from itertools import groupby
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from transcript_intel.domain.models import (
    ProcessedTranscript, Speaker, TranscriptSegment, Word,
)
from transcript_intel.errors import MalformedTranscriptError
from transcript_intel.mappers import words_from_vendor
from transcript_intel.models import VendorAlternative, VendorResponse, VendorUtterance
from transcript_intel.segments import (
    get_average_confidence, get_full_text, get_word_count, mean_confidence,
)
from transcript_intel.timing import calculate_duration, seconds_to_ms

logger = logging.getLogger(__name__)

DEFAULT_MAX_GAP_MS = 1500
DEFAULT_CHUNK_DURATION_MS = 30_000
CONFIDENCE_WARNING_THRESHOLD = 0.7
SINGLE_SPEAKER_LABEL = "Speaker 1"


def speaker_label(index: int) -> str:
    """Vendor speaker indexes are zero-based; labels are one-based."""
    return f"Speaker {index + 1}"


def _segment_from_words(label: str, words: List[Word]) -> TranscriptSegment:
    start_ms = words[0].start_ms
    return TranscriptSegment(
        speaker_label=label,
        text=" ".join(w.display_text for w in words),
        start_ms=start_ms,
        end_ms=max(start_ms, words[-1].end_ms),
        confidence=mean_confidence(words),
        words=list(words),
    )


def utterances_to_segments(utterances: List[VendorUtterance]) -> List[TranscriptSegment]:
    """Map each vendor utterance 1:1 to a segment."""
    segments: List[TranscriptSegment] = []
    for utt in utterances:
        words = words_from_vendor(utt.words)
        text = utt.transcript.strip() or " ".join(w.display_text for w in words)
        start_ms = seconds_to_ms(utt.start)
        segments.append(TranscriptSegment(
            speaker_label=speaker_label(utt.speaker),
            text=text,
            start_ms=start_ms,
            end_ms=max(start_ms, seconds_to_ms(utt.end)),
            confidence=mean_confidence(words, fallback=utt.confidence),
            words=words,
        ))
    return segments


def group_words_by_speaker(words: List[Word]) -> List[TranscriptSegment]:
    """Start a new segment whenever the word's speaker tag changes.

    Words without a tag are attributed to speaker 0.
    """
    return [
        _segment_from_words(speaker_label(speaker), list(group))
        for speaker, group in groupby(words, key=lambda w: w.speaker_index or 0)
    ]


def segment_by_duration(words: List[Word], duration_ms: int = DEFAULT_CHUNK_DURATION_MS) -> List[TranscriptSegment]:
    """Chunk words into fixed windows measured from each chunk's first word."""
    chunks: List[List[Word]] = []
    chunk_start = 0
    for word in words:
        if not chunks or word.start_ms - chunk_start >= duration_ms:
            chunks.append([word])
            chunk_start = word.start_ms
        else:
            chunks[-1].append(word)
    return [_segment_from_words(SINGLE_SPEAKER_LABEL, chunk) for chunk in chunks]


def alternative_to_segments(
    alternative: VendorAlternative,
    chunk_duration_ms: int = DEFAULT_CHUNK_DURATION_MS,
) -> List[TranscriptSegment]:
    """Segment an undiarized alternative by vendor sentences, else by time."""
    words = words_from_vendor(alternative.words)
    if not words:
        return []

    paragraphs = alternative.paragraphs.paragraphs if alternative.paragraphs else []
    if not paragraphs:
        return segment_by_duration(words, chunk_duration_ms)

    segments: List[TranscriptSegment] = []
    for paragraph in paragraphs:
        for sentence in paragraph.sentences:
            start_ms = seconds_to_ms(sentence.start)
            end_ms = max(start_ms, seconds_to_ms(sentence.end))
            contained = [w for w in words if w.start_ms >= start_ms and w.end_ms <= end_ms]
            segments.append(TranscriptSegment(
                speaker_label=SINGLE_SPEAKER_LABEL,
                text=sentence.text,
                start_ms=start_ms,
                end_ms=end_ms,
                confidence=mean_confidence(contained),
                words=contained,
            ))
    return segments


def order_segments(segments: List[TranscriptSegment]) -> List[TranscriptSegment]:
    """Drop blank segments, sort by start, and clamp overlaps.

    A segment that starts before its predecessor ends is moved to start at
    that end, so the result is time-ordered and non-overlapping.
    """
    ordered = sorted((s for s in segments if s.text.strip()), key=lambda s: s.start_ms)
    result: List[TranscriptSegment] = []
    for seg in ordered:
        if result and seg.start_ms < result[-1].end_ms:
            start_ms = result[-1].end_ms
            seg = TranscriptSegment(
                speaker_label=seg.speaker_label,
                text=seg.text,
                start_ms=start_ms,
                end_ms=max(start_ms, seg.end_ms),
                confidence=seg.confidence,
                words=list(seg.words),
            )
        result.append(seg)
    return result


def merge_adjacent_segments(
    segments: List[TranscriptSegment],
    max_gap_ms: int = DEFAULT_MAX_GAP_MS,
) -> List[TranscriptSegment]:
    """Merge a segment into its predecessor when same speaker and gap <= max_gap_ms.

    Returns new segment objects; the input list is left untouched. Running
    the pass twice gives the same result as running it once.
    """
    merged: List[TranscriptSegment] = []
    for seg in segments:
        if merged:
            current = merged[-1]
            gap = seg.start_ms - current.end_ms
            if seg.speaker_label == current.speaker_label and gap <= max_gap_ms:
                words = current.words + seg.words
                merged[-1] = TranscriptSegment(
                    speaker_label=current.speaker_label,
                    text=f"{current.text} {seg.text}",
                    start_ms=current.start_ms,
                    end_ms=max(current.end_ms, seg.end_ms),
                    confidence=mean_confidence(
                        words, fallback=(current.confidence + seg.confidence) / 2
                    ),
                    words=words,
                )
                continue
        merged.append(TranscriptSegment(
            speaker_label=seg.speaker_label,
            text=seg.text,
            start_ms=seg.start_ms,
            end_ms=seg.end_ms,
            confidence=seg.confidence,
            words=list(seg.words),
        ))
    return merged


def extract_speakers_from_words(words: List[Word]) -> List[Speaker]:
    stats: Dict[int, Dict[str, int]] = {}
    for word in words:
        if word.speaker_index is None:
            continue
        entry = stats.setdefault(word.speaker_index, {"time_ms": 0, "words": 0})
        entry["time_ms"] += calculate_duration(word.start_ms, word.end_ms)
        entry["words"] += 1
    return _speakers_from_stats(stats)


def extract_speakers_from_utterances(utterances: List[VendorUtterance]) -> List[Speaker]:
    stats: Dict[int, Dict[str, int]] = {}
    for utt in utterances:
        entry = stats.setdefault(utt.speaker, {"time_ms": 0, "words": 0})
        entry["time_ms"] += calculate_duration(seconds_to_ms(utt.start), seconds_to_ms(utt.end))
        entry["words"] += len(utt.words)
    return _speakers_from_stats(stats)


def _speakers_from_stats(stats: Dict[int, Dict[str, int]]) -> List[Speaker]:
    return [
        Speaker(
            id=f"speaker_{index}",
            label=speaker_label(index),
            total_speaking_time_ms=data["time_ms"],
            word_count=data["words"],
        )
        for index, data in sorted(stats.items())
    ]


def calculate_speaker_stats(segments: List[TranscriptSegment]) -> Dict[str, dict]:
    """Per-speaker talk time, word count, segment count and mean segment length."""
    stats: Dict[str, dict] = {}
    for seg in segments:
        entry = stats.setdefault(seg.speaker_label, {
            "total_time_ms": 0,
            "word_count": 0,
            "segment_count": 0,
            "average_segment_length_ms": 0,
        })
        entry["total_time_ms"] += seg.duration_ms
        entry["word_count"] += len(seg.words) if seg.words else len(seg.text.split())
        entry["segment_count"] += 1

    for entry in stats.values():
        entry["average_segment_length_ms"] = round(entry["total_time_ms"] / entry["segment_count"])
    return stats


def get_dominant_speaker(speakers: List[Speaker]) -> Optional[Speaker]:
    if not speakers:
        return None
    return max(speakers, key=lambda s: s.total_speaking_time_ms)


def calculate_talk_ratio(speakers: List[Speaker]) -> Dict[str, float]:
    total = sum(s.total_speaking_time_ms for s in speakers)
    return {
        s.label: (s.total_speaking_time_ms / total if total > 0 else 0.0)
        for s in speakers
    }


def parse_vendor_response(raw: Union[dict, VendorResponse]) -> VendorResponse:
    """Validate a raw vendor payload. Missing channels/alternatives are fatal."""
    if isinstance(raw, VendorResponse):
        response = raw
    else:
        try:
            response = VendorResponse.model_validate(raw)
        except ValidationError as e:
            raise MalformedTranscriptError(f"Invalid vendor response: {e}") from e

    if not response.results.channels:
        raise MalformedTranscriptError("No channels in vendor response")
    if not response.results.channels[0].alternatives:
        raise MalformedTranscriptError("No alternatives in vendor response")
    return response


def normalize_response(
    raw: Union[dict, VendorResponse],
    language: str = "en",
    max_gap_ms: int = DEFAULT_MAX_GAP_MS,
    chunk_duration_ms: int = DEFAULT_CHUNK_DURATION_MS,
    quality_threshold: float = CONFIDENCE_WARNING_THRESHOLD,
) -> ProcessedTranscript:
    """Convert a vendor response into a normalized ProcessedTranscript."""
    response = parse_vendor_response(raw)
    alternative = response.results.channels[0].alternatives[0]
    duration_ms = seconds_to_ms(response.metadata.duration)
    utterances = response.results.utterances

    if utterances:
        source = "utterances"
        segments = utterances_to_segments(utterances)
        speakers = extract_speakers_from_utterances(utterances)
    elif any(w.speaker is not None for w in alternative.words):
        source = "word speaker tags"
        words = words_from_vendor(alternative.words)
        segments = group_words_by_speaker(words)
        speakers = extract_speakers_from_words(words)
    else:
        source = "paragraphs" if alternative.paragraphs and alternative.paragraphs.paragraphs else "time chunks"
        segments = alternative_to_segments(alternative, chunk_duration_ms)
        speakers = [Speaker(
            id="speaker_0",
            label=SINGLE_SPEAKER_LABEL,
            total_speaking_time_ms=duration_ms,
            word_count=len(alternative.words),
        )]

    raw_count = len(segments)
    segments = merge_adjacent_segments(order_segments(segments), max_gap_ms)
    logger.info(f"Normalized {raw_count} segments from {source} into {len(segments)} merged segments")

    average_confidence = get_average_confidence(segments)
    quality_warning = average_confidence < quality_threshold
    if quality_warning:
        logger.warning(f"Low confidence transcription: average {average_confidence:.2f}")

    return ProcessedTranscript(
        segments=segments,
        full_text=get_full_text(segments),
        word_count=get_word_count(segments),
        speakers=speakers,
        duration_ms=duration_ms,
        language=language,
        average_confidence=average_confidence,
        quality_warning=quality_warning,
    )
