"""ProgressPort — abstract interface for reporting call-analysis progress."""

from abc import ABC, abstractmethod
from typing import Optional


class ProgressPort(ABC):
    @abstractmethod
    def report(self, job_id: str, stage: str, detail: Optional[str] = None) -> None:
        """Report entering a stage: fetching, transcribing, analyzing, saving."""

    @abstractmethod
    def finish(self, job_id: str, error: Optional[str] = None) -> None:
        """Report that the job ended. error is set when it failed."""
