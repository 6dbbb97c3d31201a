"""Self-introduction name detection.

Patterns are held in an explicitly ordered list: for each segment the first
pattern that matches and yields a plausible name wins, even if a later
pattern would have scored higher. Organization patterns are placed ahead of
the built-ins.
"""

import logging
import re
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional

from transcript_intel.domain.models import CustomNamePattern, DetectedName, TranscriptSegment
from transcript_intel.errors import InvalidPatternError

logger = logging.getLogger(__name__)

DEFAULT_INTRODUCTION_WINDOW_MINUTES = 5
DEFAULT_LATE_DETECTION_PENALTY = 0.9
CUSTOM_PATTERN_CONFIDENCE = 0.9
# A speaker with a detection at or above this confidence is not re-scanned.
SETTLED_CONFIDENCE = 0.9


@dataclass(frozen=True)
class PatternDescriptor:
    pattern_id: str
    regex: re.Pattern
    capture_group: int
    base_confidence: float


def _builtin(pattern_id: str, regex: str, confidence: float) -> PatternDescriptor:
    return PatternDescriptor(pattern_id, re.compile(regex, re.IGNORECASE), 1, confidence)


# Most specific first. Names are matched case-insensitively and title-cased
# afterwards.
DEFAULT_PATTERNS: tuple = (
    _builtin(
        "intro_im",
        r"\b(?:hi|hey|hello|good\s+(?:morning|afternoon|evening))[,.\s]+(?:everyone[,.\s]+)?"
        r"(?:i['’]m|i\s+am)\s+([A-Za-z]+)(?:\s|$|,|\.)",
        0.95,
    ),
    _builtin(
        "intro_name_is",
        r"\b(?:my\s+name\s+is|my\s+name['’]s)\s+([A-Za-z]+(?:\s+[A-Za-z]+)?)"
        r"(?:(?:\s+(?:and|from|at|with))|[,.]|$)",
        0.95,
    ),
    _builtin("intro_this_is", r"\bthis\s+is\s+([A-Za-z]+)(?:\s+(?:from|at|with|speaking))", 0.9),
    _builtin("intro_speaking", r"\b([A-Za-z]+)\s+(?:here|speaking)(?:\s|$|,|\.)", 0.85),
    _builtin(
        "intro_joining",
        r"\b([A-Za-z]+)\s+(?:joining|hopping\s+on|jumping\s+on)(?:\s+(?:from|the|a))?",
        0.8,
    ),
    _builtin("intro_its", r"\b(?:it['’]s|its)\s+([A-Za-z]+)(?:\s+(?:here|from|at))?(?:\s|$|,|\.)", 0.75),
    # Often addresses someone else, hence the low score.
    _builtin("thanks_name", r"\b(?:thanks|thank\s+you)[,\s]+([A-Za-z]+)", 0.6),
)

FALSE_POSITIVE_NAMES = frozenset({
    "hi", "hey", "hello", "good", "morning", "afternoon", "evening",
    "everyone", "guys", "team", "folks", "all",
    "thanks", "thank", "okay", "ok", "sure", "yes", "no",
    "just", "well", "now", "here", "there",
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
    "zoom", "teams", "meet", "slack", "google",
})


def normalize_name(name: str) -> str:
    """Title-case each whitespace-delimited token."""
    return " ".join(part[:1].upper() + part[1:].lower() for part in name.split())


def is_valid_name(name: str) -> bool:
    normalized = normalize_name(name)
    if len(normalized) < 2:
        return False
    if any(token.lower() in FALSE_POSITIVE_NAMES for token in normalized.split()):
        return False
    return normalized[0].isalpha()


def compile_custom_patterns(patterns: Iterable[CustomNamePattern]) -> List[PatternDescriptor]:
    """Compile organization patterns, highest priority first.

    Raises InvalidPatternError for a malformed regex or an out-of-range group,
    so a bad pattern is rejected when registered rather than mid-meeting.
    """
    compiled = []
    for index, custom in enumerate(patterns):
        try:
            regex = re.compile(custom.pattern, re.IGNORECASE)
        except re.error as e:
            raise InvalidPatternError(custom.pattern, str(e)) from e
        if not 0 <= custom.name_group <= regex.groups:
            raise InvalidPatternError(
                custom.pattern,
                f"name group {custom.name_group} not in pattern (has {regex.groups} groups)",
            )
        compiled.append((custom.priority, PatternDescriptor(
            f"custom_{index}", regex, custom.name_group, CUSTOM_PATTERN_CONFIDENCE,
        )))
    compiled.sort(key=lambda item: item[0], reverse=True)
    return [descriptor for _, descriptor in compiled]


class NameDetector:
    """Finds self-introduced names in transcript segments."""

    def __init__(
        self,
        custom_patterns: Optional[Iterable[CustomNamePattern]] = None,
        introduction_window_minutes: float = DEFAULT_INTRODUCTION_WINDOW_MINUTES,
        late_detection_penalty: float = DEFAULT_LATE_DETECTION_PENALTY,
    ):
        custom = compile_custom_patterns(custom_patterns or [])
        self._patterns: tuple = tuple(custom) + DEFAULT_PATTERNS
        self._window_ms = int(introduction_window_minutes * 60_000)
        self._late_penalty = late_detection_penalty

    @property
    def patterns(self) -> tuple:
        return self._patterns

    def detect_in_segment(self, segment: TranscriptSegment) -> Optional[DetectedName]:
        """Return the detection from the first pattern that yields a valid name."""
        for pattern in self._patterns:
            match = pattern.regex.search(segment.text)
            if not match:
                continue
            raw_name = match.group(pattern.capture_group)
            if raw_name and is_valid_name(raw_name):
                return DetectedName(
                    name=normalize_name(raw_name),
                    speaker_label=segment.speaker_label,
                    matched_phrase=match.group(0),
                    timestamp_ms=segment.start_ms,
                    confidence=pattern.base_confidence,
                    pattern_id=pattern.pattern_id,
                )
        return None

    def detect_in_transcript(self, segments: List[TranscriptSegment]) -> Dict[str, DetectedName]:
        """Best detection per speaker label, scanning segments in time order."""
        detections: Dict[str, DetectedName] = {}
        for segment in sorted(segments, key=lambda s: s.start_ms):
            existing = detections.get(segment.speaker_label)
            if existing and existing.confidence >= SETTLED_CONFIDENCE:
                continue
            detection = self.detect_in_segment(segment)
            if detection and (existing is None or detection.confidence > existing.confidence):
                detections[segment.speaker_label] = detection
        return detections

    def get_introduction_window(self, segments: List[TranscriptSegment]) -> List[TranscriptSegment]:
        return [s for s in segments if s.start_ms <= self._window_ms]

    def detect_with_introduction_focus(self, segments: List[TranscriptSegment]) -> Dict[str, DetectedName]:
        """Detect in the introduction window first, then elsewhere for the rest.

        Detections found outside the window get their confidence multiplied by
        the late-detection penalty and never replace a window detection.
        """
        detections = self.detect_in_transcript(self.get_introduction_window(segments))

        missing = {s.speaker_label for s in segments} - set(detections)
        if missing:
            remaining = [s for s in segments if s.speaker_label in missing]
            late = self.detect_in_transcript(remaining)
            for speaker, detection in late.items():
                detections[speaker] = replace(
                    detection, confidence=detection.confidence * self._late_penalty
                )
            if late:
                logger.debug(f"Late detections for {sorted(late)}")

        return detections
