"""Helpers over lists of TranscriptSegment: text, counts, lookup, validation."""

from typing import List, Optional

from transcript_intel.domain.models import TranscriptSegment
from transcript_intel.timing import format_timestamp


def mean_confidence(words, fallback: float = 0.0) -> float:
    """Arithmetic mean of word confidences, or fallback when there are none."""
    if not words:
        return fallback
    return sum(w.confidence for w in words) / len(words)


def get_full_text(segments: List[TranscriptSegment]) -> str:
    return " ".join(s.text for s in segments)


def get_word_count(segments: List[TranscriptSegment]) -> int:
    total = 0
    for seg in segments:
        if seg.words:
            total += len(seg.words)
        else:
            total += len(seg.text.split())
    return total


def get_average_confidence(segments: List[TranscriptSegment]) -> float:
    if not segments:
        return 0.0
    return sum(s.confidence for s in segments) / len(segments)


def search_segments(
    segments: List[TranscriptSegment],
    term: str,
    case_sensitive: bool = False,
) -> List[TranscriptSegment]:
    if not case_sensitive:
        term = term.lower()
        return [s for s in segments if term in s.text.lower()]
    return [s for s in segments if term in s.text]


def get_segment_at_time(segments: List[TranscriptSegment], time_ms: int) -> Optional[TranscriptSegment]:
    for seg in segments:
        if seg.start_ms <= time_ms <= seg.end_ms:
            return seg
    return None


def split_long_segment(segment: TranscriptSegment, max_words: int = 50) -> List[TranscriptSegment]:
    """Break a segment into chunks of at most max_words words.

    Segments without a word list, or already short enough, come back unchanged.
    """
    if not segment.words or len(segment.words) <= max_words:
        return [segment]

    chunks: List[TranscriptSegment] = []
    for i in range(0, len(segment.words), max_words):
        chunk_words = segment.words[i:i + max_words]
        chunks.append(TranscriptSegment(
            speaker_label=segment.speaker_label,
            text=" ".join(w.display_text for w in chunk_words),
            start_ms=chunk_words[0].start_ms,
            end_ms=chunk_words[-1].end_ms,
            confidence=mean_confidence(chunk_words),
            words=list(chunk_words),
        ))
    return chunks


def validate_segment(segment: TranscriptSegment) -> List[str]:
    """Return a list of integrity problems; empty when the segment is sound."""
    errors: List[str] = []
    if not segment.speaker_label:
        errors.append("Missing speaker")
    if not segment.text or not segment.text.strip():
        errors.append("Empty text")
    if segment.start_ms < 0:
        errors.append("Invalid start time (negative)")
    if segment.end_ms < segment.start_ms:
        errors.append("End time before start time")
    if segment.confidence < 0 or segment.confidence > 1:
        errors.append("Invalid confidence (should be 0-1)")
    return errors


def format_segments_for_display(segments: List[TranscriptSegment]) -> List[str]:
    return [
        f"[{format_timestamp(seg.start_ms)}] {seg.speaker_label}: {seg.text}"
        for seg in segments
    ]
