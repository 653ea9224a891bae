import logging
from typing import List

from strategist.core.types import (
    CADENCE_DAILY, CADENCE_WEEKLY, CADENCE_MONTHLY, TREND_FLAT,
    LensAnalysis, DialecticCritique, StrategicSynthesis,
)
from strategist.memory.stores import ThemeClusterStore, average_lens_confidence

logger = logging.getLogger(__name__)


class ChiefSynthesizerAgent:
    """
    Aggregates adjusted lens analyses into a base/alternative narrative.

    - base case narrates the top-ranked lens and the theme's current trend
    - confidence is recomputed from the adjusted analyses, never carried over
    - the narrative always names an unresolved tension: the first critique's
      lens pair, or an insufficient-evidence fallback when there are none
    """

    ALTERNATIVE_CASE: str = (
        "Alternative case: if policy or liquidity constraints bind early, "
        "the narrative turns from expansion to defense."
    )
    KEY_UNCERTAINTIES: List[str] = [
        "Whether key actors respond in sync.",
        "Whether cross-theme spillover exceeds expectations.",
    ]
    MONITORING_SIGNALS: List[str] = [
        "Frequency of changes in official policy wording",
        "Co-movement of capital flows and volatility",
        "Inflection in supply-chain and channel inventory",
    ]
    CADENCE_GUIDANCE = {
        CADENCE_DAILY: "Track with a short daily note.",
        CADENCE_WEEKLY: "Track weekly and keep both response paths open.",
        CADENCE_MONTHLY: "Run a monthly thesis re-estimation and rebalance lens weights.",
    }

    def unresolved_tension(self, critiques: List[DialecticCritique]) -> str:
        if critiques:
            first = critiques[0]
            return (
                f"Unresolved tension: {first.lens_name} and {first.target_lens} still conflict "
                f"on speed versus persistence."
            )
        return "Unresolved tension: insufficient evidence across lenses."

    def synthesize(
        self,
        analyses: List[LensAnalysis],
        critiques: List[DialecticCritique],
        theme_cluster_store: ThemeClusterStore,
        cadence: str,
        theme: str,
    ) -> StrategicSynthesis:
        if cadence not in self.CADENCE_GUIDANCE:
            raise ValueError(f"Unknown cadence: {cadence}")
        cluster = theme_cluster_store.get(theme)
        trend = cluster.temporal_trend if cluster else TREND_FLAT
        lead = analyses[0].lens_name if analyses else "primary"

        narrative = f"{self.unresolved_tension(critiques)} {self.CADENCE_GUIDANCE[cadence]}"
        return StrategicSynthesis(
            base_case=(
                f"Base case: the signal-driven {lead} narrative becomes the main line "
                f"over the short cycle, trend={trend}."
            ),
            alternative_case=self.ALTERNATIVE_CASE,
            confidence=round(average_lens_confidence(analyses), 3),
            key_uncertainties=list(self.KEY_UNCERTAINTIES),
            monitoring_signals=list(self.MONITORING_SIGNALS),
            narrative_summary=narrative,
        )

    def stub(self, analyses: List[LensAnalysis]) -> StrategicSynthesis:
        """Placeholder synthesis for phase1 exits; flagged with is_stub."""
        lead = analyses[0].lens_name if analyses else "N/A"
        return StrategicSynthesis(
            base_case=f"Stub base case from {lead}",
            alternative_case="Stub alternative case",
            confidence=round(average_lens_confidence(analyses), 3),
            key_uncertainties=["Stub uncertainty"],
            monitoring_signals=["Stub monitoring signal"],
            narrative_summary="Stub synthesis",
            is_stub=True,
        )
