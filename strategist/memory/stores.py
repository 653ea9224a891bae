import copy
import logging
import threading
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from strategist.core.types import (
    TREND_UP, TREND_FLAT, TREND_DOWN,
    SignalObject, LensAnalysis, DialecticCritique,
    ThemeCluster, ThesisRecord, LensPerformance, StrategicMemorySnapshot,
)

logger = logging.getLogger(__name__)


class SignalStore:
    """Append-only record of every evaluated signal."""

    def __init__(self):
        self._lock = threading.Lock()
        self._signals: List[SignalObject] = []

    def add(self, signal: SignalObject) -> None:
        with self._lock:
            self._signals.append(signal)

    def all(self) -> List[SignalObject]:
        with self._lock:
            return list(self._signals)

    def __len__(self) -> int:
        with self._lock:
            return len(self._signals)


class ThemeClusterStore:
    """Per-theme rolling intensity series with derived cluster statistics.

    `temporal_trend` compares only the last two intensities of a theme:
    a single observation is always "flat".
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._clusters: Dict[str, ThemeCluster] = {}
        self._series: Dict[str, List[int]] = {}

    def add_signal(self, signal: SignalObject) -> ThemeCluster:
        with self._lock:
            series = self._series.setdefault(signal.theme, [])
            series.append(signal.intensity_score)
            previous = self._clusters.get(signal.theme)
            cluster = ThemeCluster(
                theme=signal.theme,
                signal_frequency=(previous.signal_frequency if previous else 0) + 1,
                intensity_average=float(np.mean(series)),
                temporal_trend=self._compute_trend(series),
            )
            self._clusters[signal.theme] = cluster
            return copy.deepcopy(cluster)

    def get(self, theme: str) -> Optional[ThemeCluster]:
        with self._lock:
            cluster = self._clusters.get(theme)
            return copy.deepcopy(cluster) if cluster else None

    def all(self) -> List[ThemeCluster]:
        with self._lock:
            return [copy.deepcopy(c) for c in self._clusters.values()]

    def to_frame(self) -> pd.DataFrame:
        """Cluster table indexed by theme."""
        return theme_cluster_frame(self.all())

    @staticmethod
    def _compute_trend(series: List[int]) -> str:
        if len(series) < 2:
            return TREND_FLAT
        last, prev = series[-1], series[-2]
        if last > prev:
            return TREND_UP
        if last < prev:
            return TREND_DOWN
        return TREND_FLAT


class StrategicThesisStore:
    """Keyed thesis records; mutated explicitly by monthly recalibration only."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: Dict[str, ThesisRecord] = {}

    def upsert(self, record: ThesisRecord) -> None:
        if not record.thesis_id:
            raise ValueError("thesis_id is required")
        with self._lock:
            self._records[record.thesis_id] = copy.deepcopy(record)

    def get(self, thesis_id: str) -> Optional[ThesisRecord]:
        with self._lock:
            record = self._records.get(thesis_id)
            return copy.deepcopy(record) if record else None

    def all(self) -> List[ThesisRecord]:
        with self._lock:
            return [copy.deepcopy(r) for r in self._records.values()]


class LensPerformanceStore:
    """Per-lens activation, confidence drift, critique and blind-spot statistics."""

    def __init__(self):
        self._lock = threading.Lock()
        self._data: Dict[str, LensPerformance] = {}

    def record_activation(self, lens_name: str, confidence: float) -> None:
        with self._lock:
            entry = self._data.setdefault(lens_name, LensPerformance(lens_name=lens_name))
            entry.activation_frequency += 1
            entry.confidence_drift.append(confidence)

    def record_critique(self, critique: DialecticCritique) -> None:
        with self._lock:
            entry = self._data.get(critique.lens_name)
            if entry is None:
                logger.debug("Ignoring critique from inactive lens %s", critique.lens_name)
                return
            entry.critique_patterns.append(critique.critique)

    def record_blind_spot(self, lens_name: str, blind_spot: str) -> None:
        with self._lock:
            entry = self._data.get(lens_name)
            if entry is None:
                logger.debug("Ignoring blind spot for inactive lens %s", lens_name)
                return
            entry.blind_spot_recurrence[blind_spot] = entry.blind_spot_recurrence.get(blind_spot, 0) + 1

    def activation_frequency(self, lens_name: str) -> int:
        with self._lock:
            entry = self._data.get(lens_name)
            return entry.activation_frequency if entry else 0

    def get(self, lens_name: str) -> Optional[LensPerformance]:
        with self._lock:
            entry = self._data.get(lens_name)
            return copy.deepcopy(entry) if entry else None

    def all(self) -> List[LensPerformance]:
        with self._lock:
            return [copy.deepcopy(e) for e in self._data.values()]

    def to_frame(self) -> pd.DataFrame:
        """Summary table indexed by lens name; see `lens_performance_frame`."""
        return lens_performance_frame(self.all())


class StrategicMemoryStores:
    """The four stores owned by one orchestrator instance.

    Pass the same instance to several orchestrators to aggregate across
    tenants; every mutating store method is lock-protected.
    """

    def __init__(
        self,
        signal_store: Optional[SignalStore] = None,
        theme_cluster_store: Optional[ThemeClusterStore] = None,
        strategic_thesis_store: Optional[StrategicThesisStore] = None,
        lens_performance_store: Optional[LensPerformanceStore] = None,
    ):
        self.signal_store = signal_store if signal_store is not None else SignalStore()
        self.theme_cluster_store = theme_cluster_store if theme_cluster_store is not None else ThemeClusterStore()
        self.strategic_thesis_store = (
            strategic_thesis_store if strategic_thesis_store is not None else StrategicThesisStore()
        )
        self.lens_performance_store = (
            lens_performance_store if lens_performance_store is not None else LensPerformanceStore()
        )

    def snapshot(self) -> StrategicMemorySnapshot:
        return StrategicMemorySnapshot(
            signals=self.signal_store.all(),
            theme_clusters=self.theme_cluster_store.all(),
            theses=self.strategic_thesis_store.all(),
            lens_performance=self.lens_performance_store.all(),
        )


def average_lens_confidence(analyses: List[LensAnalysis]) -> float:
    """Arithmetic mean of lens confidences; 0.0 for an empty list."""
    if not analyses:
        return 0.0
    return float(np.mean([a.confidence for a in analyses]))


THEME_CLUSTER_COLUMNS = ['theme', 'signal_frequency', 'intensity_average', 'temporal_trend']
LENS_PERFORMANCE_COLUMNS = [
    'lens_name', 'activation_frequency', 'mean_confidence', 'last_confidence', 'critique_count', 'top_blind_spot',
]


def theme_cluster_frame(clusters: List[ThemeCluster]) -> pd.DataFrame:
    """Cluster table indexed by theme, in the order given."""
    rows = [c.to_dict() for c in clusters]
    return pd.DataFrame(rows, columns=THEME_CLUSTER_COLUMNS).set_index('theme')


def lens_performance_frame(entries: List[LensPerformance]) -> pd.DataFrame:
    """Lens summary table indexed by lens name.

    Columns: activation_frequency, mean_confidence, last_confidence,
    critique_count, top_blind_spot. Confidence columns are NaN for a lens
    with no recorded activations.
    """
    rows = []
    for entry in entries:
        drift = entry.confidence_drift
        top_blind_spot = None
        if entry.blind_spot_recurrence:
            top_blind_spot = max(entry.blind_spot_recurrence.items(), key=lambda kv: kv[1])[0]
        rows.append({
            'lens_name': entry.lens_name,
            'activation_frequency': entry.activation_frequency,
            'mean_confidence': float(np.mean(drift)) if drift else np.nan,
            'last_confidence': drift[-1] if drift else np.nan,
            'critique_count': len(entry.critique_patterns),
            'top_blind_spot': top_blind_spot,
        })
    return pd.DataFrame(rows, columns=LENS_PERFORMANCE_COLUMNS).set_index('lens_name')
