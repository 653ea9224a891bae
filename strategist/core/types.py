from datetime import datetime, timezone
from dataclasses import dataclass, field, asdict
from typing import Optional, List, Dict, Any

# --- Cadence / phase / state constants
CADENCE_DAILY = "daily"
CADENCE_WEEKLY = "weekly"
CADENCE_MONTHLY = "monthly"
CADENCES = (CADENCE_DAILY, CADENCE_WEEKLY, CADENCE_MONTHLY)

PHASE_1 = "phase1"
PHASE_2 = "phase2"
PHASE_3 = "phase3"
PHASE_4 = "phase4"
PHASES = (PHASE_1, PHASE_2, PHASE_3, PHASE_4)

STATE_SIGNAL_INTAKE = "signal_intake"
STATE_LENS_SELECTION = "lens_selection"
STATE_PARALLEL_LENS_ANALYSIS = "parallel_lens_analysis"
STATE_DIALECTIC = "dialectic"
STATE_SYNTHESIS = "synthesis"
STATE_EDITORIAL = "editorial"
STATE_PUBLISH = "publish"
STATE_ABORT = "abort"

# Fixed execution order of the orchestrator states
ORCHESTRATOR_STATES = (
    STATE_SIGNAL_INTAKE,
    STATE_LENS_SELECTION,
    STATE_PARALLEL_LENS_ANALYSIS,
    STATE_DIALECTIC,
    STATE_SYNTHESIS,
    STATE_EDITORIAL,
    STATE_PUBLISH,
    STATE_ABORT,
)

# Per-state cost weights (reporting only, never used for throttling)
STATE_COST_UNITS: Dict[str, int] = {
    STATE_SIGNAL_INTAKE: 1,
    STATE_LENS_SELECTION: 1,
    STATE_PARALLEL_LENS_ANALYSIS: 3,
    STATE_DIALECTIC: 2,
    STATE_SYNTHESIS: 3,
    STATE_EDITORIAL: 1,
    STATE_PUBLISH: 1,
    STATE_ABORT: 1,
}

# --- Theme taxonomy
THEME_TECHNOLOGY = "technology"
THEME_FINANCE = "finance"
THEME_GEOPOLITICS = "geopolitics"
THEME_DEFAULT = "default"

# --- Trend labels
TREND_UP = "up"
TREND_FLAT = "flat"
TREND_DOWN = "down"

INSUFFICIENT_SIGNAL_TYPE = "insufficient_signal"
GLOBAL_THESIS_ID = "global"


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def clamp_score(value: float, min_value: float, max_value: float) -> float:
    """Clamp value into [min_value, max_value]."""
    return max(min_value, min(max_value, value))


class _DictMixin:
    """Shared `to_dict` for JSON serialization of pipeline artifacts."""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# --- Signal intake
@dataclass
class SignalInput:
    """Raw caller input for one orchestrator run"""
    text: str
    source_type: str
    timestamp: Optional[str] = None


@dataclass(frozen=True)
class SignalObject(_DictMixin):
    """Scored, classified extraction from free-text input.

    Immutable once evaluated; the orchestrator appends it to the SignalStore.
    """
    signal_id: str  # sha256("{source_type}:{text}")[:16]
    theme: str  # technology | finance | geopolitics | default
    relevance_score: int  # 0-100
    intensity_score: int  # 0-100
    entities: List[str]
    summary: str
    source_type: str
    timestamp: str


# --- Lens stages
@dataclass
class LensSelection(_DictMixin):
    """Lenses chosen for a signal, in ranked order (3-5 entries)"""
    selected_lenses: List[str]
    selection_rationale: str


@dataclass
class LensAnalysis(_DictMixin):
    """Single lens output"""
    lens_name: str
    core_thesis: str
    assumptions: List[str]
    risk_factors: List[str]
    confidence: float  # 0-1


@dataclass
class DialecticCritique(_DictMixin):
    """Directed critique edge: lens_name -> target_lens"""
    lens_name: str
    target_lens: str
    critique: str
    confidence_adjustment: float  # -0.2..0.2
    blind_spot: str = ""


# --- Terminal artifacts
@dataclass
class StrategicSynthesis(_DictMixin):
    """Aggregated base/alternative narrative.

    `is_stub` marks the placeholder produced by phase1 runs so downstream
    renderers never mistake it for a real synthesis.
    """
    base_case: str
    alternative_case: str
    confidence: float
    key_uncertainties: List[str]
    monitoring_signals: List[str]
    narrative_summary: str
    is_stub: bool = False


@dataclass
class InsufficientSignalBrief(_DictMixin):
    """Terminal outcome when aggregate confidence is below threshold"""
    confidence: float
    reason: str
    key_uncertainties: List[str]
    monitoring_signals: List[str]
    type: str = INSUFFICIENT_SIGNAL_TYPE


@dataclass
class EditorialReviewResult(_DictMixin):
    passed: bool
    revised: Optional[StrategicSynthesis] = None
    errors: List[str] = field(default_factory=list)


# --- Orchestration
@dataclass
class OrchestrationTraceEntry(_DictMixin):
    state: str
    started_at: str
    finished_at: str
    cost_units: int
    note: str = "ok"


@dataclass
class OrchestrationResult:
    """Sole output contract of the strategic research orchestrator.

    Exactly one of `synthesis` / `insufficient_brief` is set on a normal
    completion; phase-gated exits may leave both empty.
    """
    state: str  # "publish" | "abort"
    signal: SignalObject
    selected_lenses: LensSelection
    lens_analyses: List[LensAnalysis]
    critiques: List[DialecticCritique]
    synthesis: Optional[StrategicSynthesis] = None
    insufficient_brief: Optional[InsufficientSignalBrief] = None
    trace: List[OrchestrationTraceEntry] = field(default_factory=list)

    @property
    def published(self) -> bool:
        return self.state == STATE_PUBLISH

    @property
    def confidence(self) -> float:
        """Headline confidence for reporting (synthesis first, then brief)."""
        if self.synthesis is not None:
            return self.synthesis.confidence
        if self.insufficient_brief is not None:
            return self.insufficient_brief.confidence
        return 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "state": self.state,
            "signal": self.signal.to_dict(),
            "selected_lenses": self.selected_lenses.to_dict(),
            "lens_analyses": [a.to_dict() for a in self.lens_analyses],
            "critiques": [c.to_dict() for c in self.critiques],
            "synthesis": self.synthesis.to_dict() if self.synthesis else None,
            "insufficient_brief": self.insufficient_brief.to_dict() if self.insufficient_brief else None,
            "trace": [t.to_dict() for t in self.trace],
        }


# --- Memory records
@dataclass
class ThemeCluster(_DictMixin):
    theme: str
    signal_frequency: int
    intensity_average: float
    temporal_trend: str  # up | flat | down


@dataclass
class ThesisRecord(_DictMixin):
    """Cross-run thesis state, recalibrated on monthly cadence"""
    thesis_id: str
    core_theses: List[str] = field(default_factory=list)
    confidence_history: List[float] = field(default_factory=list)
    revision_log: List[str] = field(default_factory=list)
    contradictions: List[str] = field(default_factory=list)
    open_questions: List[str] = field(default_factory=list)


@dataclass
class LensPerformance(_DictMixin):
    lens_name: str
    activation_frequency: int = 0
    confidence_drift: List[float] = field(default_factory=list)
    critique_patterns: List[str] = field(default_factory=list)
    blind_spot_recurrence: Dict[str, int] = field(default_factory=dict)


@dataclass
class StrategicMemorySnapshot(_DictMixin):
    """Point-in-time copy of all four memory stores"""
    signals: List[SignalObject]
    theme_clusters: List[ThemeCluster]
    theses: List[ThesisRecord]
    lens_performance: List[LensPerformance]
