import logging
from typing import Dict, List

from strategist.core.types import LensAnalysis, DialecticCritique, clamp_score

logger = logging.getLogger(__name__)


class DialecticAgent:
    """
    Ring critique across lens analyses.

    Analysis i critiques analysis (i + 1) mod n, so for n >= 2 every lens is
    critic exactly once and target exactly once. Fewer than two analyses
    produce no critiques.

    The adjustment is always negative and depends on the critic's own
    confidence only: an overconfident critic (> 0.7) pulls harder.
    """

    OVERCONFIDENCE_THRESHOLD: float = 0.7
    OVERCONFIDENT_ADJUSTMENT: float = -0.06
    DEFAULT_ADJUSTMENT: float = -0.03

    BLIND_SPOT_CROSS_THEME_SPEED: str = "cross-theme transmission speed"

    def adjustment_for(self, critic: LensAnalysis) -> float:
        if critic.confidence > self.OVERCONFIDENCE_THRESHOLD:
            return self.OVERCONFIDENT_ADJUSTMENT
        return self.DEFAULT_ADJUSTMENT

    def critique(self, analyses: List[LensAnalysis]) -> List[DialecticCritique]:
        n = len(analyses)
        if n < 2:
            return []
        critiques = []
        for idx, current in enumerate(analyses):
            target = analyses[(idx + 1) % n]
            critiques.append(DialecticCritique(
                lens_name=current.lens_name,
                target_lens=target.lens_name,
                critique=(
                    f"The weakest assumption of {target.lens_name} is that external conditions extend linearly; "
                    f"its systemic blind spot is ignoring {self.BLIND_SPOT_CROSS_THEME_SPEED}."
                ),
                confidence_adjustment=self.adjustment_for(current),
                blind_spot=self.BLIND_SPOT_CROSS_THEME_SPEED,
            ))
        return critiques


def apply_critiques(analyses: List[LensAnalysis], critiques: List[DialecticCritique]) -> List[LensAnalysis]:
    """Return new analyses with each confidence shifted by the critiques targeting it.

    Adjustments targeting the same lens are summed; the result is clamped to
    [0, 1] and rounded to three places. Input analyses are left untouched.
    """
    adjustments: Dict[str, float] = {}
    for c in critiques:
        adjustments[c.target_lens] = adjustments.get(c.target_lens, 0.0) + c.confidence_adjustment

    return [
        LensAnalysis(
            lens_name=a.lens_name,
            core_thesis=a.core_thesis,
            assumptions=list(a.assumptions),
            risk_factors=list(a.risk_factors),
            confidence=round(clamp_score(a.confidence + adjustments.get(a.lens_name, 0.0), 0.0, 1.0), 3),
        )
        for a in analyses
    ]
