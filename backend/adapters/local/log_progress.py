"""LogProgressAdapter — logs each analysis stage with time since the job started."""

import logging
import threading
import time
from typing import Optional

from ports.progress import ProgressPort

logger = logging.getLogger(__name__)


class LogProgressAdapter(ProgressPort):
    def __init__(self):
        self._started: dict[str, float] = {}
        self._lock = threading.Lock()

    def _elapsed(self, job_id: str, pop: bool = False) -> float:
        now = time.monotonic()
        with self._lock:
            if pop:
                started = self._started.pop(job_id, now)
            else:
                started = self._started.setdefault(job_id, now)
        return now - started

    def report(self, job_id: str, stage: str, detail: Optional[str] = None) -> None:
        msg = f"[{job_id}] {stage} (+{self._elapsed(job_id):.1f}s)"
        if detail:
            msg += f": {detail}"
        logger.info(msg)

    def finish(self, job_id: str, error: Optional[str] = None) -> None:
        elapsed = self._elapsed(job_id, pop=True)
        if error:
            logger.error(f"[{job_id}] failed after {elapsed:.1f}s: {error}")
        else:
            logger.info(f"[{job_id}] done in {elapsed:.1f}s")
