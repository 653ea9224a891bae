import logging

from strategist.core.types import SignalObject, LensAnalysis, clamp_score

logger = logging.getLogger(__name__)


class LensAnalysisAgent:
    """Templated single-lens analysis.

    Each call depends only on the lens name and the signal, so analyses for
    different lenses may run concurrently.
    """

    MIN_CONFIDENCE: float = 0.2
    MAX_CONFIDENCE: float = 0.9

    def confidence_for(self, signal: SignalObject) -> float:
        raw = (signal.relevance_score + signal.intensity_score) / 200
        return round(clamp_score(raw, self.MIN_CONFIDENCE, self.MAX_CONFIDENCE), 3)

    def analyze(self, lens_name: str, signal: SignalObject) -> LensAnalysis:
        if not lens_name:
            raise ValueError("lens_name is required")
        return LensAnalysis(
            lens_name=lens_name,
            core_thesis=(
                f"{lens_name} expects this signal to reorder {signal.theme} priorities "
                f"and shift the upcoming decision window."
            ),
            assumptions=[
                f"Signal {signal.signal_id} keeps developing over the next two weeks.",
                f"Actors exposed to {signal.theme} produce second-order reactions.",
            ],
            risk_factors=[
                "Source data may carry sampling bias.",
                "Regulatory or policy timing may interrupt the expected path.",
            ],
            confidence=self.confidence_for(signal),
        )
