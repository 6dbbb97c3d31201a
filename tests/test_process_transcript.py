import logging

import pytest

from transcript_intel.errors import MalformedTranscriptError
from transcript_intel.ports.progress import PIPELINE_STAGES
from transcript_intel.post_processing import PostProcessorOptions
from transcript_intel.use_cases.process_transcript import (
    ProcessTranscriptRequest, ProcessTranscriptUseCase,
)
from transcript_intel.use_cases.recognize_speakers import SpeakerRecognitionUseCase

from conftest import vendor_response, vendor_word


def _meeting_response(duration=120.0):
    utterances = [
        {
            "speaker": 0, "start": 0.0, "end": 3.0, "confidence": 0.9,
            "transcript": "Hi everyone, I'm Sarah um from marketing",
            "words": [
                vendor_word("Hi", 0.0, 0.3, 0.95, 0),
                vendor_word("everyone,", 0.3, 0.8, 0.95, 0),
                vendor_word("I'm", 0.8, 1.0, 0.95, 0),
                vendor_word("Sarah", 1.0, 1.5, 0.95, 0),
                vendor_word("um", 1.5, 1.8, 0.4, 0),
                vendor_word("from", 1.8, 2.2, 0.95, 0),
                vendor_word("marketing", 2.2, 3.0, 0.95, 0),
            ],
        },
        {
            "speaker": 1, "start": 4.0, "end": 6.0, "confidence": 0.9,
            "transcript": "so uh what is the agenda",
            "words": [
                vendor_word("so", 4.0, 4.2, 0.9, 1),
                vendor_word("uh", 4.2, 4.5, 0.9, 1),
                vendor_word("what", 4.5, 4.8, 0.9, 1),
                vendor_word("is", 4.8, 5.0, 0.9, 1),
                vendor_word("the", 5.0, 5.2, 0.9, 1),
                vendor_word("agenda", 5.2, 6.0, 0.9, 1),
            ],
        },
    ]
    return vendor_response(utterances=utterances, duration=duration)


@pytest.fixture
def pipeline(recognition, meeting_store, progress):
    return ProcessTranscriptUseCase(recognition, meeting_store, progress)


@pytest.mark.asyncio
async def test_full_pipeline(pipeline, meeting_store, identity_store):
    result = await pipeline.execute(ProcessTranscriptRequest(
        meeting_id="meeting-1",
        response=_meeting_response(),
        organization_id="org-1",
    ))

    assert not result.skipped
    assert result.recognition.speaker_map == {"Speaker 1": "Sarah"}
    assert [s.display_speaker for s in result.segments] == ["Sarah", "Speaker 2"]
    assert result.segments[0].cleaned_text == "Hi everyone, I'm Sarah from marketing."
    assert result.segments[1].cleaned_text == "So what is the agenda."
    assert result.full_text == (
        "Sarah: Hi everyone, I'm Sarah from marketing.\n\n"
        "Speaker 2: So what is the agenda."
    )

    stored = await meeting_store.get_meeting("meeting-1")
    assert stored.full_text == result.full_text
    assert stored.organization_id == "org-1"
    assert await identity_store.find_profile_by_name("org-1", "Sarah") is not None


@pytest.mark.asyncio
async def test_caller_aliases_override_detected_names(pipeline):
    result = await pipeline.execute(ProcessTranscriptRequest(
        meeting_id="meeting-1",
        response=_meeting_response(),
        organization_id="org-1",
        speaker_aliases={"Speaker 1": "Dr. Sarah Lee", "Speaker 2": "Tom"},
    ))
    assert [s.display_speaker for s in result.segments] == ["Dr. Sarah Lee", "Tom"]


@pytest.mark.asyncio
async def test_progress_stages_are_reported(pipeline, progress):
    await pipeline.execute(ProcessTranscriptRequest(
        meeting_id="meeting-1", response=_meeting_response(), organization_id="org-1",
    ))
    assert [stage for _, stage in progress.reports] == list(PIPELINE_STAGES)
    assert len({job_id for job_id, _ in progress.reports}) == 1


@pytest.mark.asyncio
async def test_recognition_summary_is_logged(pipeline, caplog):
    with caplog.at_level(logging.INFO, logger="transcript_intel.use_cases.process_transcript"):
        await pipeline.execute(ProcessTranscriptRequest(
            meeting_id="meeting-1", response=_meeting_response(), organization_id="org-1",
        ))
    summary = [r.getMessage() for r in caplog.records if "Speaker recognition complete" in r.getMessage()]
    assert summary == [
        "Speaker recognition complete for meeting-1: identified=1 new_profiles=1 "
        "matched_profiles=0 unresolved=1"
    ]


@pytest.mark.asyncio
async def test_response_without_duration_is_rejected(pipeline):
    response = _meeting_response()
    del response["metadata"]
    with pytest.raises(MalformedTranscriptError):
        await pipeline.execute(ProcessTranscriptRequest(meeting_id="meeting-1", response=response))


@pytest.mark.asyncio
async def test_without_organization_skips_recognition_and_storage(pipeline, meeting_store):
    result = await pipeline.execute(ProcessTranscriptRequest(
        meeting_id="meeting-1", response=_meeting_response(),
    ))
    assert result.recognition is None
    assert [s.display_speaker for s in result.segments] == ["Speaker 1", "Speaker 2"]
    assert await meeting_store.get_meeting("meeting-1") is None


@pytest.mark.asyncio
async def test_short_meeting_is_skipped(pipeline, meeting_store):
    result = await pipeline.execute(ProcessTranscriptRequest(
        meeting_id="meeting-1", response=_meeting_response(duration=12.0), organization_id="org-1",
    ))
    assert result.skipped
    assert "too short" in result.skip_reason
    assert result.segments == []
    assert await meeting_store.get_meeting("meeting-1") is None


@pytest.mark.asyncio
async def test_recognition_failure_does_not_stop_processing(meeting_store, progress):
    class BrokenRecognition(SpeakerRecognitionUseCase):
        async def recognize_speakers(self, *args, **kwargs):
            raise RuntimeError("boom")

    pipeline = ProcessTranscriptUseCase(BrokenRecognition(None), meeting_store, progress)
    result = await pipeline.execute(ProcessTranscriptRequest(
        meeting_id="meeting-1",
        response=_meeting_response(),
        organization_id="org-1",
        speaker_aliases={"Speaker 2": "Tom"},
    ))

    assert result.recognition is None
    assert [s.display_speaker for s in result.segments] == ["Speaker 1", "Tom"]


@pytest.mark.asyncio
async def test_options_are_respected(recognition, meeting_store, progress):
    pipeline = ProcessTranscriptUseCase(
        recognition, meeting_store, progress,
        options=PostProcessorOptions(remove_fillers=False, clean_sentence_boundaries=False),
    )
    result = await pipeline.execute(ProcessTranscriptRequest(
        meeting_id="meeting-1", response=_meeting_response(),
    ))
    assert result.segments[1].cleaned_text == "so uh what is the agenda"
    assert result.segments[0].low_confidence_ranges


@pytest.mark.asyncio
async def test_malformed_response_propagates(pipeline):
    with pytest.raises(MalformedTranscriptError):
        await pipeline.execute(ProcessTranscriptRequest(
            meeting_id="meeting-1", response={"metadata": {"duration": 60.0}, "results": {"channels": []}},
        ))
