"""Post-processing for transcript segments.

Pure text transformations: filler removal, sentence-boundary repair,
low-confidence span detection, and speaker alias resolution.
"""

import re
import logging
from dataclasses import dataclass, field, replace
from typing import List, Dict, Optional

from transcript_intel.domain.models import (
    LowConfidenceRange, ProcessedSegment, TranscriptSegment, Word,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.7

# Filler categories, applied in this order. Each match is replaced by a
# space; whitespace and punctuation are normalized afterwards.
_SINGLE_WORD = re.compile(r"\b(?:um|uh|eh|ah|er|mm|hmm|mhm|erm)\b", re.IGNORECASE)

_TIC_WORDS = [
    "like", "basically", "actually", "literally", "honestly", "obviously",
    "clearly", "definitely", "absolutely", "totally", "really", "very",
    "just", "so", "well", "now", "okay", "ok", "right", "yeah", "yep",
    "yup", "nope", "anyway", "anyways",
]
# A tic only counts as filler when followed by another tic or a
# pronoun/determiner ("so like I", "basically the").
_TIC_CONTEXT = [
    "like", "basically", "actually", "literally", "honestly", "obviously",
    "I", "you", "we", "they", "it", "the", "a", "an", "this", "that",
]
_VERBAL_TICS = re.compile(
    r"\b(?:" + "|".join(_TIC_WORDS) + r")\b"
    r"(?=\s*,?\s*(?:" + "|".join(_TIC_CONTEXT) + r")\b)",
    re.IGNORECASE,
)

_FILLER_PHRASES = [
    "you know", "I mean", "kind of", "sort of", "type of", "in a sense",
    "at the end of the day", "to be honest", "to be fair", "if you will",
    "as it were", "if that makes sense", "does that make sense",
]
_PHRASES = re.compile(
    r"\b(?:" + "|".join(p.replace(" ", r"\s+") for p in _FILLER_PHRASES) + r")\b",
    re.IGNORECASE,
)

# "the the" -> "the"
_REPETITION = re.compile(r"\b(\w+)\s+\1\b", re.IGNORECASE)

# "I - I think", "so - we" (hyphen or en/em dash)
_FALSE_START = re.compile(r"\b(?:I|we|they|it|the|so|but|and)\s*[-–—]\s*", re.IGNORECASE)

_MULTI_SPACE = re.compile(r"\s+")
_SPACE_BEFORE_PUNCT = re.compile(r"\s+([.,!?])")
_DUPLICATE_PUNCT = re.compile(r"([.,!?])\s*([.,!?])")
_DOUBLE_COMMA = re.compile(r"\s*,\s*,")
_COMMA_PERIOD = re.compile(r",\s*\.")
_LEADING_PUNCT = re.compile(r"^[\s,.;:!?]+")
_TRAILING_COMMA = re.compile(r"[\s,;:]+$")

_SENTENCE_START = re.compile(r"([.!?])\s+([^\W\d_])")
_TERMINAL_PUNCT = re.compile(r"[.!?]$")


def _normalize_whitespace(text: str) -> str:
    text = _MULTI_SPACE.sub(" ", text)
    text = _SPACE_BEFORE_PUNCT.sub(r"\1", text)
    text = _DUPLICATE_PUNCT.sub(r"\1", text)
    text = _DOUBLE_COMMA.sub(",", text)
    text = _COMMA_PERIOD.sub(".", text)
    text = _LEADING_PUNCT.sub("", text)
    text = _TRAILING_COMMA.sub("", text)
    return text.strip()


def _remove_fillers_once(text: str) -> str:
    cleaned = _SINGLE_WORD.sub(" ", text)
    cleaned = _VERBAL_TICS.sub(" ", cleaned)
    cleaned = _PHRASES.sub(" ", cleaned)
    cleaned = _REPETITION.sub(r"\1", cleaned)
    cleaned = _FALSE_START.sub(" ", cleaned)
    return _normalize_whitespace(cleaned)


def remove_filler_words(text: str) -> str:
    """Strip disfluencies, verbal tics, filler phrases, stammers and false starts.

    The pass is repeated until the text stops changing, so applying this
    function to its own output is a no-op. Every substitution shortens the
    text, which bounds the loop.
    """
    cleaned = _remove_fillers_once(text)
    while True:
        again = _remove_fillers_once(cleaned)
        if again == cleaned:
            return cleaned
        cleaned = again


def clean_sentence_boundaries(text: str) -> str:
    """Capitalize sentence starts and make sure the text ends with . ! or ?

    Empty input stays empty.
    """
    cleaned = text.strip()
    if not cleaned:
        return ""

    cleaned = _SENTENCE_START.sub(lambda m: f"{m.group(1)} {m.group(2).upper()}", cleaned)
    cleaned = cleaned[0].upper() + cleaned[1:]
    if not _TERMINAL_PUNCT.search(cleaned):
        cleaned += "."
    return cleaned


def find_low_confidence_ranges(words: List[Word], threshold: float) -> List[LowConfidenceRange]:
    """Character ranges of consecutive words below threshold.

    Offsets assume the words are joined by single spaces, which is how
    segment text is built from the word list.
    """
    ranges: List[LowConfidenceRange] = []
    current: Optional[List[int]] = None
    position = 0

    for word in words:
        start = position
        end = position + len(word.display_text)
        if word.confidence < threshold:
            if current is None:
                current = [start, end]
            else:
                current[1] = end
        elif current is not None:
            ranges.append(LowConfidenceRange(current[0], current[1]))
            current = None
        position = end + 1

    if current is not None:
        ranges.append(LowConfidenceRange(current[0], current[1]))
    return ranges


def resolve_speaker(speaker_label: str, aliases: Dict[str, str]) -> str:
    """Exact-key alias lookup, falling back to the raw label."""
    return aliases.get(speaker_label, speaker_label)


@dataclass
class PostProcessorOptions:
    remove_fillers: bool = True
    clean_sentence_boundaries: bool = True
    highlight_low_confidence: bool = True
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    speaker_aliases: Dict[str, str] = field(default_factory=dict)


class TranscriptPostProcessor:
    """Applies the configured cleanup passes to segments."""

    def __init__(self, options: Optional[PostProcessorOptions] = None):
        self._options = options or PostProcessorOptions()

    @property
    def options(self) -> PostProcessorOptions:
        return self._options

    def update_options(self, **changes) -> None:
        """Merge changes into the current options (e.g. after aliases load)."""
        self._options = replace(self._options, **changes)

    def process_segment(self, segment: TranscriptSegment) -> ProcessedSegment:
        opts = self._options
        cleaned_text = segment.text

        if opts.remove_fillers:
            cleaned_text = remove_filler_words(cleaned_text)
        if opts.clean_sentence_boundaries:
            cleaned_text = clean_sentence_boundaries(cleaned_text)

        low_confidence_ranges: List[LowConfidenceRange] = []
        if opts.highlight_low_confidence and segment.words:
            low_confidence_ranges = find_low_confidence_ranges(segment.words, opts.confidence_threshold)

        return ProcessedSegment(
            speaker_label=segment.speaker_label,
            text=segment.text,
            start_ms=segment.start_ms,
            end_ms=segment.end_ms,
            confidence=segment.confidence,
            words=list(segment.words),
            cleaned_text=cleaned_text,
            display_speaker=resolve_speaker(segment.speaker_label, opts.speaker_aliases),
            low_confidence_ranges=low_confidence_ranges,
        )

    def process_transcript(self, segments: List[TranscriptSegment]) -> List[ProcessedSegment]:
        processed = [self.process_segment(seg) for seg in segments]
        logger.debug(f"Post-processed {len(processed)} segments")
        return processed

    def get_full_text(self, processed: List[ProcessedSegment]) -> str:
        return "\n\n".join(f"{s.display_speaker}: {s.cleaned_text}" for s in processed)
