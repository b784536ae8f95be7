"""
Session-scoped storage for analysis results.

An ``AnalysisStore`` holds the latest multi-drug result and the drug result a
user selected for detail view. ``AnalysisSessionRegistry`` keeps one store per
session id; the application owns a single registry on ``app.state``.
"""
import logging
import threading
from collections import OrderedDict
from typing import Optional

from pharmaguard.core.config import get_pipeline_config
from pharmaguard.schemas.pharma_schema import AnalysisResult, MultiDrugAnalysisResult

logger = logging.getLogger(__name__)


class AnalysisStore:
    """Results held for one session."""

    def __init__(self):
        self._multi: Optional[MultiDrugAnalysisResult] = None
        self._selected: Optional[AnalysisResult] = None

    def set_multi_drug_result(self, result: MultiDrugAnalysisResult) -> None:
        self._multi = result

    def get_multi_drug_result(self) -> Optional[MultiDrugAnalysisResult]:
        return self._multi

    def set_selected_drug(self, result: AnalysisResult) -> None:
        self._selected = result

    def get_selected_drug(self) -> Optional[AnalysisResult]:
        return self._selected

    def select_drug(self, drug: str) -> Optional[AnalysisResult]:
        """Select the stored multi-drug entry for ``drug`` (case-insensitive)."""
        if self._multi is None:
            return None
        wanted = drug.strip().upper()
        for result in self._multi.results:
            if result.drug == wanted:
                self._selected = result
                return result
        return None

    def clear(self) -> None:
        self._multi = None
        self._selected = None

    @property
    def is_empty(self) -> bool:
        return self._multi is None and self._selected is None


class AnalysisSessionRegistry:
    """
    Maps session ids to their ``AnalysisStore``.

    Holds at most ``max_sessions`` stores (``pipeline.max_sessions`` from the
    config when not given); the least recently used session is evicted first.
    """

    def __init__(self, max_sessions: Optional[int] = None):
        self._stores: "OrderedDict[str, AnalysisStore]" = OrderedDict()
        self._lock = threading.Lock()
        self._max_sessions = max_sessions

    @property
    def max_sessions(self) -> int:
        return self._max_sessions or get_pipeline_config().max_sessions

    def get(self, session_id: str) -> AnalysisStore:
        """Store for ``session_id``, created on first use."""
        with self._lock:
            store = self._stores.get(session_id)
            if store is not None:
                self._stores.move_to_end(session_id)
                return store

            store = AnalysisStore()
            self._stores[session_id] = store
            logger.debug("Created analysis store for session %s", session_id)
            while len(self._stores) > self.max_sessions:
                evicted, old = self._stores.popitem(last=False)
                old.clear()
                logger.info("Evicted analysis store for session %s", evicted)
            return store

    def peek(self, session_id: str) -> Optional[AnalysisStore]:
        with self._lock:
            store = self._stores.get(session_id)
            if store is not None:
                self._stores.move_to_end(session_id)
            return store

    def drop(self, session_id: str) -> bool:
        """Clear and forget a session; returns whether it existed."""
        with self._lock:
            store = self._stores.pop(session_id, None)
        if store is None:
            return False
        store.clear()
        return True

    def __len__(self) -> int:
        return len(self._stores)
