import threading
from typing import Dict, Optional, Tuple

from schemas import MatchResult


class AnalysisCache:
    """
    Process-lifetime store of match results keyed by the exact
    (resume text, job description text) pair.

    No normalization is applied to the key and nothing is ever evicted.
    """

    def __init__(self):
        self._entries: Dict[Tuple[str, str], MatchResult] = {}
        self._lock = threading.Lock()

    def get(self, resume_text: str, jd_text: str) -> Optional[MatchResult]:
        with self._lock:
            return self._entries.get((resume_text, jd_text))

    def set(self, resume_text: str, jd_text: str, result: MatchResult) -> None:
        with self._lock:
            self._entries[(resume_text, jd_text)] = result

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


analysis_cache = AnalysisCache()
