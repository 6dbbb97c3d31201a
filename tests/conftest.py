"""Shared fixtures: in-memory stores and segment/vendor-payload builders."""

import pytest

from transcript_intel.ports.progress import ProgressPort
from transcript_intel.adapters.memory import InMemoryIdentityStore, InMemoryMeetingStore
from transcript_intel.domain.models import TranscriptSegment, Word
from transcript_intel.use_cases.recognize_speakers import SpeakerRecognitionUseCase


def make_segment(speaker, text, start_ms=0, end_ms=None, confidence=0.9, words=None):
    if end_ms is None:
        end_ms = start_ms + 1000
    return TranscriptSegment(
        speaker_label=speaker,
        text=text,
        start_ms=start_ms,
        end_ms=end_ms,
        confidence=confidence,
        words=words or [],
    )


def make_words(rows, speaker_index=None):
    """rows: list of (text, start_ms, end_ms, confidence)."""
    return [
        Word(text=t, start_ms=s, end_ms=e, confidence=c, speaker_index=speaker_index)
        for t, s, e, c in rows
    ]


def vendor_word(word, start, end, confidence=0.95, speaker=None):
    data = {"word": word, "start": start, "end": end, "confidence": confidence}
    if speaker is not None:
        data["speaker"] = speaker
    return data


def vendor_response(words=None, utterances=None, paragraphs=None, duration=60.0):
    alternative = {
        "transcript": " ".join(w["word"] for w in words or []),
        "confidence": 0.9,
        "words": words or [],
    }
    if paragraphs is not None:
        alternative["paragraphs"] = {"paragraphs": paragraphs}
    results = {"channels": [{"alternatives": [alternative]}]}
    if utterances is not None:
        results["utterances"] = utterances
    return {"metadata": {"duration": duration, "request_id": "req-1"}, "results": results}


@pytest.fixture
def identity_store():
    return InMemoryIdentityStore()


@pytest.fixture
def meeting_store():
    return InMemoryMeetingStore()


class RecordingProgress(ProgressPort):
    """Keeps reported (job_id, stage) pairs in order."""

    def __init__(self):
        self.reports = []

    def report(self, job_id, stage, progress=0.0, detail=None):
        self.reports.append((job_id, stage))


@pytest.fixture
def progress():
    return RecordingProgress()


@pytest.fixture
def recognition(identity_store, meeting_store):
    return SpeakerRecognitionUseCase(identity_store, meeting_store)
