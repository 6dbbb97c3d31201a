"""ProgressPort — abstract interface for reporting transcript pipeline stages."""

from abc import ABC, abstractmethod
from typing import Optional

NORMALIZING = "normalizing"
RECOGNIZING = "recognizing"
POST_PROCESSING = "post_processing"
STORING = "storing"

PIPELINE_STAGES = (NORMALIZING, RECOGNIZING, POST_PROCESSING, STORING)


class ProgressPort(ABC):
    @abstractmethod
    def report(
        self,
        job_id: str,
        stage: str,
        progress: float = 0.0,
        detail: Optional[str] = None,
    ) -> None:
        """Report that a job entered one of PIPELINE_STAGES.

        Called synchronously from the pipeline; implementations must not block.
        """
