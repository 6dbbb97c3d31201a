"""Exceptions raised by the transcript pipeline."""


class TranscriptIntelError(Exception):
    """Base class for pipeline errors."""


class MalformedTranscriptError(TranscriptIntelError):
    """The vendor response is missing channels/alternatives or fails validation."""


class InvalidPatternError(TranscriptIntelError):
    """A custom name pattern cannot be compiled or used."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid name pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


class MeetingNotFoundError(TranscriptIntelError):
    pass


class ProfileNotFoundError(TranscriptIntelError):
    pass
