"""Schema validators for every pipeline artifact.

Each `validate_*` function is a pure predicate returning a list of error
strings; an empty list means the artifact is accepted. `raise_if_invalid`
turns a non-empty list into a `SchemaValidationError` for the fail-fast
orchestrator contract.
"""
from typing import List

from strategist.core.types import (
    SignalObject, LensSelection, LensAnalysis, DialecticCritique, StrategicSynthesis,
    InsufficientSignalBrief,
)

MIN_SELECTED_LENSES: int = 3
MAX_SELECTED_LENSES: int = 5
MAX_CONFIDENCE_ADJUSTMENT: float = 0.2


class SchemaValidationError(ValueError):
    """Stage output violated its schema; fatal to the run."""

    def __init__(self, stage: str, errors: List[str]):
        self.stage = stage
        self.errors = list(errors)
        super().__init__(f"[{stage}] schema validation failed: {'; '.join(self.errors)}")


def _is_int_score(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 100


def _is_unit_interval(value) -> bool:
    return isinstance(value, (int, float)) and 0.0 <= value <= 1.0


def validate_signal_object(signal: SignalObject) -> List[str]:
    errors: List[str] = []
    if not signal.signal_id:
        errors.append("signal_id is required")
    if not signal.theme:
        errors.append("theme is required")
    if not _is_int_score(signal.relevance_score):
        errors.append("relevance_score must be integer 0-100")
    if not _is_int_score(signal.intensity_score):
        errors.append("intensity_score must be integer 0-100")
    if not isinstance(signal.entities, list):
        errors.append("entities must be a list of strings")
    if not signal.summary:
        errors.append("summary is required")
    if not signal.source_type:
        errors.append("source_type is required")
    if not signal.timestamp:
        errors.append("timestamp is required")
    return errors


def validate_lens_selection(selection: LensSelection, max_lenses: int = MAX_SELECTED_LENSES) -> List[str]:
    errors: List[str] = []
    count = len(selection.selected_lenses)
    if count < MIN_SELECTED_LENSES or count > MAX_SELECTED_LENSES:
        errors.append(f"selected_lenses size must be between {MIN_SELECTED_LENSES} and {MAX_SELECTED_LENSES}")
    elif count > max_lenses:
        errors.append(f"selected_lenses size must not exceed {max_lenses} for this cadence")
    if len(set(selection.selected_lenses)) != count:
        errors.append("selected_lenses must be unique")
    if not selection.selection_rationale:
        errors.append("selection_rationale is required")
    return errors


def validate_lens_analysis(analysis: LensAnalysis) -> List[str]:
    errors: List[str] = []
    if not analysis.lens_name:
        errors.append("lens_name is required")
    if not analysis.core_thesis:
        errors.append("core_thesis is required")
    if not analysis.assumptions:
        errors.append("assumptions must be non-empty")
    if not analysis.risk_factors:
        errors.append("risk_factors must be non-empty")
    if not _is_unit_interval(analysis.confidence):
        errors.append("confidence must be 0-1")
    return errors


def validate_dialectic_critique(critique: DialecticCritique) -> List[str]:
    errors: List[str] = []
    if not critique.lens_name:
        errors.append("lens_name is required")
    if not critique.target_lens:
        errors.append("target_lens is required")
    if not critique.critique:
        errors.append("critique is required")
    if not -MAX_CONFIDENCE_ADJUSTMENT <= critique.confidence_adjustment <= MAX_CONFIDENCE_ADJUSTMENT:
        errors.append(f"confidence_adjustment must be in [-{MAX_CONFIDENCE_ADJUSTMENT}, {MAX_CONFIDENCE_ADJUSTMENT}]")
    return errors


def validate_strategic_synthesis(synthesis: StrategicSynthesis) -> List[str]:
    errors: List[str] = []
    if not synthesis.base_case:
        errors.append("base_case is required")
    if not synthesis.alternative_case:
        errors.append("alternative_case is required")
    if not _is_unit_interval(synthesis.confidence):
        errors.append("confidence must be 0-1")
    if not synthesis.key_uncertainties:
        errors.append("key_uncertainties must be non-empty")
    if not synthesis.monitoring_signals:
        errors.append("monitoring_signals must be non-empty")
    if not synthesis.narrative_summary:
        errors.append("narrative_summary is required")
    return errors


def validate_insufficient_brief(brief: InsufficientSignalBrief) -> List[str]:
    errors: List[str] = []
    if not _is_unit_interval(brief.confidence):
        errors.append("confidence must be 0-1")
    if not brief.reason:
        errors.append("reason is required")
    if not brief.key_uncertainties:
        errors.append("key_uncertainties must be non-empty")
    if not brief.monitoring_signals:
        errors.append("monitoring_signals must be non-empty")
    return errors


def raise_if_invalid(errors: List[str], stage: str) -> None:
    """Raise SchemaValidationError for `stage` when errors is non-empty."""
    if errors:
        raise SchemaValidationError(stage, errors)
