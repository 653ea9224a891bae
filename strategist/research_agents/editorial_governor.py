import re
import logging
from dataclasses import replace

from strategist.core.types import StrategicSynthesis, EditorialReviewResult

logger = logging.getLogger(__name__)


class EditorialGovernorAgent:
    """
    Pre-publication checks on a synthesis.

    Rules:
      - base and alternative cases are non-empty
      - at least two monitoring signals
      - narrative references an unresolved tension or conflict

    On any failure exactly one revision is made: the fixed disclaimer is
    appended to the narrative and only the tension rule is re-checked. Other
    violations are reported, not healed.
    """

    TENSION_PATTERN = re.compile(r"unresolved tension|conflict|未解决张力|冲突", re.IGNORECASE)
    DISCLAIMER: str = "Unresolved tension remains; avoid forming a false consensus."
    MIN_MONITORING_SIGNALS: int = 2

    ERROR_MISSING_CASES = "missing base/alternative case"
    ERROR_SPARSE_MONITORING = "monitoring signals too sparse"
    ERROR_MISSING_TENSION = "narrative must mention unresolved tension"

    def has_tension_marker(self, narrative: str) -> bool:
        return bool(self.TENSION_PATTERN.search(narrative or ""))

    def check(self, synthesis: StrategicSynthesis) -> list:
        errors = []
        if not synthesis.base_case or not synthesis.alternative_case:
            errors.append(self.ERROR_MISSING_CASES)
        if len(synthesis.monitoring_signals) < self.MIN_MONITORING_SIGNALS:
            errors.append(self.ERROR_SPARSE_MONITORING)
        if not self.has_tension_marker(synthesis.narrative_summary):
            errors.append(self.ERROR_MISSING_TENSION)
        return errors

    def review(self, synthesis: StrategicSynthesis) -> EditorialReviewResult:
        errors = self.check(synthesis)
        if not errors:
            return EditorialReviewResult(passed=True, errors=[])

        narrative = synthesis.narrative_summary.rstrip()
        revised = replace(
            synthesis,
            narrative_summary=f"{narrative} {self.DISCLAIMER}".strip(),
            key_uncertainties=list(synthesis.key_uncertainties),
            monitoring_signals=list(synthesis.monitoring_signals),
        )
        remaining = errors
        if self.has_tension_marker(revised.narrative_summary):
            remaining = [e for e in errors if e != self.ERROR_MISSING_TENSION]

        if remaining:
            logger.warning("Editorial revision failed", extra={"errors": remaining})
        else:
            logger.info("Editorial revision appended tension disclaimer")
        return EditorialReviewResult(passed=not remaining, revised=revised, errors=remaining)
