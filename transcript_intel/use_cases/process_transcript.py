"""ProcessTranscriptUseCase — runs one vendor transcript through the pipeline.

normalize -> recognize speakers -> post-process -> store cleaned text.
Accepts its collaborators via dependency injection.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from transcript_intel.diarization import (
    CONFIDENCE_WARNING_THRESHOLD, DEFAULT_CHUNK_DURATION_MS, DEFAULT_MAX_GAP_MS,
    normalize_response,
)
from transcript_intel.domain.models import (
    ProcessedSegment, ProcessedTranscript, RecognitionResult,
)
from transcript_intel.ports.meeting_store import MeetingStorePort
from transcript_intel.ports.progress import (
    NORMALIZING, POST_PROCESSING, RECOGNIZING, STORING, ProgressPort,
)
from transcript_intel.post_processing import PostProcessorOptions, TranscriptPostProcessor
from transcript_intel.use_cases.recognize_speakers import SpeakerRecognitionUseCase

logger = logging.getLogger(__name__)

DEFAULT_MIN_MEETING_DURATION_MS = 30_000


@dataclass
class ProcessTranscriptRequest:
    """All parameters for processing one meeting transcript."""
    meeting_id: str
    response: dict
    organization_id: Optional[str] = None
    language: str = "en"
    speaker_aliases: Dict[str, str] = field(default_factory=dict)
    calendar_participants: List[str] = field(default_factory=list)


@dataclass
class ProcessTranscriptResult:
    meeting_id: str
    transcript: ProcessedTranscript
    segments: List[ProcessedSegment] = field(default_factory=list)
    full_text: str = ""
    recognition: Optional[RecognitionResult] = None
    skipped: bool = False
    skip_reason: Optional[str] = None


class ProcessTranscriptUseCase:
    def __init__(
        self,
        recognition: SpeakerRecognitionUseCase,
        meeting_store: MeetingStorePort,
        progress: ProgressPort,
        options: Optional[PostProcessorOptions] = None,
        max_gap_ms: int = DEFAULT_MAX_GAP_MS,
        chunk_duration_ms: int = DEFAULT_CHUNK_DURATION_MS,
        quality_threshold: float = CONFIDENCE_WARNING_THRESHOLD,
        min_duration_ms: int = DEFAULT_MIN_MEETING_DURATION_MS,
    ):
        self._recognition = recognition
        self._meetings = meeting_store
        self._progress = progress
        self._options = options or PostProcessorOptions()
        self._max_gap_ms = max_gap_ms
        self._chunk_duration_ms = chunk_duration_ms
        self._quality_threshold = quality_threshold
        self._min_duration_ms = min_duration_ms

    async def execute(self, req: ProcessTranscriptRequest) -> ProcessTranscriptResult:
        """Run the full pipeline. Raises MalformedTranscriptError for bad input."""
        job_id = uuid.uuid4().hex[:12]

        # 1. Normalize vendor response
        self._progress.report(job_id, NORMALIZING, detail=req.meeting_id)
        transcript = normalize_response(
            req.response,
            language=req.language,
            max_gap_ms=self._max_gap_ms,
            chunk_duration_ms=self._chunk_duration_ms,
            quality_threshold=self._quality_threshold,
        )

        if transcript.duration_ms < self._min_duration_ms:
            reason = f"meeting too short ({transcript.duration_ms} ms < {self._min_duration_ms} ms)"
            logger.info(f"Skipping {req.meeting_id}: {reason}")
            return ProcessTranscriptResult(
                meeting_id=req.meeting_id,
                transcript=transcript,
                skipped=True,
                skip_reason=reason,
            )

        # 2. Speaker recognition (best effort)
        aliases = dict(req.speaker_aliases)
        recognition: Optional[RecognitionResult] = None
        if req.organization_id:
            self._progress.report(job_id, RECOGNIZING)
            try:
                recognition = await self._recognition.recognize_speakers(
                    transcript.segments,
                    organization_id=req.organization_id,
                    meeting_id=req.meeting_id,
                    calendar_participants=req.calendar_participants,
                    existing_aliases=req.speaker_aliases,
                )
                for label, name in recognition.speaker_map.items():
                    aliases.setdefault(label, name)
                logger.info(
                    f"Speaker recognition complete for {req.meeting_id}: "
                    f"identified={len(recognition.speaker_map)} "
                    f"new_profiles={len(recognition.new_profile_ids)} "
                    f"matched_profiles={len(recognition.matched_profile_ids)} "
                    f"unresolved={len(recognition.unresolved_speakers)}"
                )
            except Exception as e:
                logger.error(f"Speaker recognition failed for {req.meeting_id}: {e}")

        # 3. Post-processing with the merged aliases
        self._progress.report(job_id, POST_PROCESSING)
        processor = TranscriptPostProcessor(self._options)
        processor.update_options(speaker_aliases=aliases)
        segments = processor.process_transcript(transcript.segments)
        full_text = processor.get_full_text(segments)

        # 4. Store cleaned text for later re-processing
        self._progress.report(job_id, STORING)
        if req.organization_id:
            await self._meetings.save_transcript(req.meeting_id, req.organization_id, full_text)

        if transcript.quality_warning:
            logger.warning(
                f"Meeting {req.meeting_id} transcribed with low confidence "
                f"({transcript.average_confidence:.2f})"
            )

        return ProcessTranscriptResult(
            meeting_id=req.meeting_id,
            transcript=transcript,
            segments=segments,
            full_text=full_text,
            recognition=recognition,
        )
