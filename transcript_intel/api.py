"""HTTP surface for the transcript pipeline.

Thin FastAPI layer: request bodies are validated by pydantic, mapped to
use-case calls, and pipeline errors are turned into HTTP status codes.
"""

import logging
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request

from transcript_intel.config import Config, create_store_adapters, get_config
from transcript_intel.domain.models import CustomNamePattern
from transcript_intel.errors import (
    InvalidPatternError, MalformedTranscriptError, MeetingNotFoundError, ProfileNotFoundError,
)
from transcript_intel.mappers import (
    identification_to_dto, profile_to_dto, recognition_to_dto, transcript_to_dto,
)
from transcript_intel.models import (
    ConfirmMatchBody, MergeProfilesBody, NamePatternsBody, ProcessTranscriptBody,
    ProcessTranscriptResponse, RecognitionOut, SpeakerIdentificationOut, VoiceProfileOut,
)
from transcript_intel.use_cases.process_transcript import (
    ProcessTranscriptRequest, ProcessTranscriptUseCase,
)
from transcript_intel.use_cases.recognize_speakers import SpeakerRecognitionUseCase

logger = logging.getLogger(__name__)


def _recognition(request: Request) -> SpeakerRecognitionUseCase:
    return request.app.state.recognition


def create_app(cfg: Optional[Config] = None) -> FastAPI:
    cfg = cfg or get_config()
    adapters = create_store_adapters(cfg)

    recognition = SpeakerRecognitionUseCase(
        identity_store=adapters["identity_store"],
        meeting_store=adapters["meeting_store"],
        introduction_window_minutes=cfg.introduction_window_minutes,
        late_detection_penalty=cfg.late_detection_penalty,
    )
    pipeline = ProcessTranscriptUseCase(
        recognition=recognition,
        meeting_store=adapters["meeting_store"],
        progress=adapters["progress"],
        options=cfg.post_processor_options(),
        max_gap_ms=cfg.max_merge_gap_ms,
        chunk_duration_ms=cfg.chunk_duration_ms,
        quality_threshold=cfg.quality_warning_threshold,
        min_duration_ms=cfg.min_meeting_duration_ms,
    )

    app = FastAPI(
        title="Transcript Intelligence",
        description="Diarization normalization, transcript cleanup and speaker recognition",
        version="0.1.0",
    )
    app.state.config = cfg
    app.state.adapters = adapters
    app.state.recognition = recognition
    app.state.pipeline = pipeline

    @app.get("/health")
    async def health():
        return {"status": "ok", "config": cfg.as_dict()}

    @app.post("/v1/transcripts/process", response_model=ProcessTranscriptResponse)
    async def process_transcript(body: ProcessTranscriptBody, request: Request):
        req = ProcessTranscriptRequest(
            meeting_id=body.meeting_id,
            response=body.response,
            organization_id=body.organization_id,
            language=body.language,
            speaker_aliases=body.speaker_aliases,
            calendar_participants=body.calendar_participants,
        )
        try:
            result = await request.app.state.pipeline.execute(req)
        except MalformedTranscriptError as e:
            raise HTTPException(status_code=422, detail=str(e))

        return transcript_to_dto(
            result.meeting_id,
            result.transcript,
            result.segments,
            result.full_text,
            recognition=result.recognition,
            skip_reason=result.skip_reason,
        )

    @app.post("/v1/meetings/{meeting_id}/speakers/reprocess", response_model=RecognitionOut)
    async def reprocess_meeting(meeting_id: str, request: Request):
        try:
            result = await _recognition(request).reprocess_meeting(meeting_id)
        except MeetingNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return recognition_to_dto(result)

    @app.get("/v1/meetings/{meeting_id}/speakers", response_model=List[SpeakerIdentificationOut])
    async def meeting_speakers(meeting_id: str, request: Request):
        identifications = await _recognition(request).get_meeting_speakers(meeting_id)
        return [identification_to_dto(i) for i in identifications]

    @app.put("/v1/organizations/{organization_id}/name-patterns")
    async def update_name_patterns(organization_id: str, body: NamePatternsBody, request: Request):
        patterns = [
            CustomNamePattern(pattern=p.pattern, name_group=p.name_group, priority=p.priority)
            for p in body.patterns
        ]
        try:
            saved = await _recognition(request).update_org_patterns(organization_id, patterns)
        except InvalidPatternError as e:
            raise HTTPException(status_code=422, detail=str(e))
        logger.info(f"Updated {len(saved)} name patterns for organization {organization_id}")
        return {"organization_id": organization_id, "patterns": [p.pattern for p in saved]}

    @app.post("/v1/voice-profiles/merge", response_model=VoiceProfileOut)
    async def merge_profiles(body: MergeProfilesBody, request: Request):
        try:
            profile = await _recognition(request).merge_profiles(body.keep_id, body.merge_id)
        except ProfileNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return profile_to_dto(profile)

    @app.post("/v1/voice-profiles/{profile_id}/confirm", response_model=VoiceProfileOut)
    async def confirm_match(profile_id: str, body: ConfirmMatchBody, request: Request):
        try:
            profile = await _recognition(request).confirm_match(profile_id, body.confirmed)
        except ProfileNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return profile_to_dto(profile)

    return app
