import os
import logging
from functools import lru_cache
from typing import Dict, Optional, Any

from dotenv import load_dotenv

from transcript_intel.diarization import (
    CONFIDENCE_WARNING_THRESHOLD, DEFAULT_CHUNK_DURATION_MS, DEFAULT_MAX_GAP_MS,
)
from transcript_intel.name_detection import (
    DEFAULT_INTRODUCTION_WINDOW_MINUTES, DEFAULT_LATE_DETECTION_PENALTY,
)
from transcript_intel.post_processing import DEFAULT_CONFIDENCE_THRESHOLD, PostProcessorOptions
from transcript_intel.use_cases.process_transcript import DEFAULT_MIN_MEETING_DURATION_MS

logger = logging.getLogger(__name__)

load_dotenv()

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8001
DEFAULT_STORE = "memory"
DEFAULT_STORE_PATH = "/data/identity-store.json"


def _env_flag(name: str, default: str = "true") -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class Config:
    def __init__(self):
        self.host = os.environ.get("HOST", DEFAULT_HOST)
        self.port = int(os.environ.get("PORT", DEFAULT_PORT))
        self.debug = os.environ.get("DEBUG", "0") == "1"
        self.store = os.environ.get("STORE", DEFAULT_STORE).lower()
        self.store_path = os.environ.get("STORE_PATH", DEFAULT_STORE_PATH)

        # Post-processing
        self.remove_fillers = _env_flag("REMOVE_FILLERS")
        self.clean_sentence_boundaries = _env_flag("CLEAN_SENTENCE_BOUNDARIES")
        self.highlight_low_confidence = _env_flag("HIGHLIGHT_LOW_CONFIDENCE")
        self.confidence_threshold = float(os.environ.get("CONFIDENCE_THRESHOLD", DEFAULT_CONFIDENCE_THRESHOLD))

        # Normalization
        self.max_merge_gap_ms = int(os.environ.get("MAX_MERGE_GAP_MS", DEFAULT_MAX_GAP_MS))
        self.chunk_duration_ms = int(os.environ.get("CHUNK_DURATION_MS", DEFAULT_CHUNK_DURATION_MS))
        self.quality_warning_threshold = float(
            os.environ.get("QUALITY_WARNING_THRESHOLD", CONFIDENCE_WARNING_THRESHOLD)
        )
        self.min_meeting_duration_ms = int(
            os.environ.get("MIN_MEETING_DURATION_MS", DEFAULT_MIN_MEETING_DURATION_MS)
        )

        # Name detection
        self.introduction_window_minutes = float(
            os.environ.get("INTRODUCTION_WINDOW_MINUTES", DEFAULT_INTRODUCTION_WINDOW_MINUTES)
        )
        self.late_detection_penalty = float(
            os.environ.get("LATE_DETECTION_PENALTY", DEFAULT_LATE_DETECTION_PENALTY)
        )

    def post_processor_options(self, speaker_aliases: Optional[Dict[str, str]] = None) -> PostProcessorOptions:
        return PostProcessorOptions(
            remove_fillers=self.remove_fillers,
            clean_sentence_boundaries=self.clean_sentence_boundaries,
            highlight_low_confidence=self.highlight_low_confidence,
            confidence_threshold=self.confidence_threshold,
            speaker_aliases=dict(speaker_aliases or {}),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "store": self.store,
            "store_path": self.store_path if self.store == "json" else None,
            "remove_fillers": self.remove_fillers,
            "clean_sentence_boundaries": self.clean_sentence_boundaries,
            "highlight_low_confidence": self.highlight_low_confidence,
            "confidence_threshold": self.confidence_threshold,
            "max_merge_gap_ms": self.max_merge_gap_ms,
            "chunk_duration_ms": self.chunk_duration_ms,
            "quality_warning_threshold": self.quality_warning_threshold,
            "min_meeting_duration_ms": self.min_meeting_duration_ms,
            "introduction_window_minutes": self.introduction_window_minutes,
            "late_detection_penalty": self.late_detection_penalty,
        }


@lru_cache(maxsize=1)
def get_config() -> Config:
    return Config()


def create_store_adapters(cfg: Config) -> Dict[str, Any]:
    """Create identity store, meeting store and progress adapters based on STORE."""
    from transcript_intel.adapters.local import JsonFileIdentityStore, LogProgressAdapter
    from transcript_intel.adapters.memory import InMemoryIdentityStore, InMemoryMeetingStore

    store = cfg.store

    if store == "memory":
        identity_store = InMemoryIdentityStore()
    elif store == "json":
        identity_store = JsonFileIdentityStore(cfg.store_path)
    else:
        raise ValueError(f"Unknown STORE: {store!r}. Valid options: memory, json")

    adapters = {
        "identity_store": identity_store,
        "meeting_store": InMemoryMeetingStore(),
        "progress": LogProgressAdapter(),
    }
    logger.info(f"Store adapters: {store} -> {', '.join(type(v).__name__ for v in adapters.values())}")
    return adapters
