import logging
from typing import Dict, List, Optional

from strategist.core.types import (
    CADENCE_DAILY, GLOBAL_THESIS_ID,
    THEME_TECHNOLOGY, THEME_FINANCE, THEME_GEOPOLITICS, THEME_DEFAULT,
    SignalObject, LensSelection,
)
from strategist.memory.stores import StrategicThesisStore, LensPerformanceStore

logger = logging.getLogger(__name__)

DEFAULT_LENS_MATRIX: Dict[str, List[str]] = {
    THEME_TECHNOLOGY: ["MarketStructureLens", "PolicyRiskLens", "ExecutionLens", "AdoptionLens", "CapitalFlowLens"],
    THEME_GEOPOLITICS: ["ScenarioLens", "PolicyRiskLens", "SecondOrderLens", "SupplyChainLens", "CapitalFlowLens"],
    THEME_FINANCE: ["LiquidityLens", "BalanceSheetLens", "PolicyRiskLens", "BehavioralLens", "SecondOrderLens"],
    THEME_DEFAULT: ["ExecutionLens", "PolicyRiskLens", "SecondOrderLens", "AdoptionLens", "ScenarioLens"],
}


class LensSelectionAgent:
    """
    Ranks the theme's candidate lenses and keeps the top `max_lens`.

    Composite score per candidate:
        1 - 0.02 * activation_frequency
          + 0.05 * (global thesis mentions the theme)
          + 0.08 * (intensity > 60)

    The sort is stable, so ties keep matrix order and repeated runs over
    identical store state produce the same ring of critiques downstream.
    Selection reads the stores only; activation is recorded after analysis.

    A candidate pool smaller than MIN_LENSES is returned as-is so that schema
    validation rejects it; the selection is never padded.
    """

    MIN_LENSES: int = 3
    MAX_LENSES: int = 5
    DAILY_MAX_LENSES: int = 3

    BASE_SCORE: float = 1.0
    ACTIVATION_PENALTY: float = 0.02
    THESIS_OVERLAP_BONUS: float = 0.05
    INTENSITY_BONUS: float = 0.08
    INTENSITY_BONUS_THRESHOLD: int = 60

    def __init__(self, matrix: Optional[Dict[str, List[str]]] = None):
        self.matrix = matrix if matrix is not None else DEFAULT_LENS_MATRIX
        if THEME_DEFAULT not in self.matrix:
            raise ValueError(f"lens matrix must define a '{THEME_DEFAULT}' candidate list")

    def max_lenses_for(self, cadence: str) -> int:
        return self.DAILY_MAX_LENSES if cadence == CADENCE_DAILY else self.MAX_LENSES

    def candidates_for(self, theme: str) -> List[str]:
        return list(self.matrix.get(theme) or self.matrix[THEME_DEFAULT])

    def score_candidates(
        self,
        signal: SignalObject,
        thesis_store: StrategicThesisStore,
        lens_performance_store: LensPerformanceStore,
    ) -> List[tuple]:
        """Return (lens, score) pairs sorted by score descending, ties in matrix order."""
        global_thesis = thesis_store.get(GLOBAL_THESIS_ID)
        thesis_overlap = bool(global_thesis and any(signal.theme in t for t in global_thesis.core_theses))
        intensity_hot = signal.intensity_score > self.INTENSITY_BONUS_THRESHOLD

        scored = []
        for lens in self.candidates_for(signal.theme):
            score = (
                self.BASE_SCORE
                - self.ACTIVATION_PENALTY * lens_performance_store.activation_frequency(lens)
                + (self.THESIS_OVERLAP_BONUS if thesis_overlap else 0.0)
                + (self.INTENSITY_BONUS if intensity_hot else 0.0)
            )
            scored.append((lens, score))
        return sorted(scored, key=lambda item: item[1], reverse=True)

    def select(
        self,
        signal: SignalObject,
        cadence: str,
        thesis_store: StrategicThesisStore,
        lens_performance_store: LensPerformanceStore,
    ) -> LensSelection:
        max_lens = self.max_lenses_for(cadence)
        ranked = self.score_candidates(signal, thesis_store, lens_performance_store)
        selected = [lens for lens, _ in ranked[:max_lens]]
        logger.debug("Lens ranking", extra={"theme": signal.theme, "ranking": ranked})
        return LensSelection(
            selected_lenses=selected,
            selection_rationale=(
                f"Theme={signal.theme}; intensity={signal.intensity_score}; cadence={cadence}; "
                f"selected by score ordering."
            ),
        )
