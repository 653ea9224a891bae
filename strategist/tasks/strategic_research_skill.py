import logging
from typing import Callable, Optional

from strategist.core.config import AppConfig, OrchestratorConfig
from strategist.core.types import SignalInput, OrchestrationResult, STATE_ABORT
from strategist.memory.memory_journal import StrategicMemoryJournal, StrategicMemoryJournalInput
from strategist.memory.stores import StrategicMemoryStores
from strategist.orchestration.strategic_research_orchestrator import StrategicResearchOrchestrator
from strategist.tasks.task_types import TASK_STRATEGIC_RESEARCH, StrategicResearchTask, SkillResult

logger = logging.getLogger(__name__)

EMPTY_TEXT_HINT = "Strategic research task needs text input. Example: 战略研究: weekly phase4 AI chip export limits"

OrchestratorFactory = Callable[[OrchestratorConfig, Optional[StrategicMemoryStores]], StrategicResearchOrchestrator]


class StrategicResearchSkill:
    """Runs a StrategicResearchTask through the orchestrator and renders a report section.

    Stores are shared across tasks handled by this skill instance when passed
    in; otherwise every run gets fresh stores. The journal is optional and is
    written after the orchestrator returns. Cadence and phase come from the
    task; the insufficient-signal threshold comes from `threshold` or, when
    omitted, from `config.orchestrator`.
    """

    kind = TASK_STRATEGIC_RESEARCH
    SHORT_SUMMARY_MAX_CHARS: int = 320

    def __init__(
        self,
        stores: Optional[StrategicMemoryStores] = None,
        journal: Optional[StrategicMemoryJournal] = None,
        threshold: Optional[float] = None,
        orchestrator_factory: Optional[OrchestratorFactory] = None,
        config: Optional[AppConfig] = None,
    ):
        self.config = config or AppConfig.from_env()
        self.stores = stores
        self.journal = journal
        self.threshold = threshold if threshold is not None else self.config.orchestrator.insufficient_signal_threshold
        self.orchestrator_factory = orchestrator_factory or StrategicResearchOrchestrator

    def run(self, task: StrategicResearchTask, request_id: str) -> SkillResult:
        text = (task.text or "").strip()
        if not text:
            raise ValueError(EMPTY_TEXT_HINT)

        config = OrchestratorConfig(
            cadence=task.cadence,
            phase=task.phase,
            insufficient_signal_threshold=self.threshold,
        )
        orchestrator = self.orchestrator_factory(config, self.stores)
        result = orchestrator.run(SignalInput(text=text, source_type=task.source_type))

        if self.journal is not None:
            self.journal.persist(StrategicMemoryJournalInput(
                request_id=request_id,
                cadence=task.cadence,
                phase=task.phase,
                result=result,
                snapshot=orchestrator.snapshot(),
            ))
        return self.render(task, result)

    def render(self, task: StrategicResearchTask, result: OrchestrationResult) -> SkillResult:
        if result.insufficient_brief is not None:
            brief = result.insufficient_brief
            return SkillResult(
                title="Strategic research brief (insufficient signal)",
                short_summary=f"Insufficient signal: confidence={brief.confidence}; keep monitoring.",
                report_section="\n".join([
                    "## Strategic research brief (insufficient signal)",
                    "",
                    f"- confidence: {brief.confidence}",
                    f"- reason: {brief.reason}",
                    f"- key_uncertainties: {'; '.join(brief.key_uncertainties)}",
                    f"- monitoring_signals: {'; '.join(brief.monitoring_signals)}",
                    "",
                ]),
            )

        lenses = ", ".join(result.selected_lenses.selected_lenses)
        synthesis = result.synthesis
        if synthesis is None or synthesis.is_stub:
            return SkillResult(
                title="Strategic research (phase output)",
                short_summary=f"Completed through {task.phase}, lenses={lenses}"[:self.SHORT_SUMMARY_MAX_CHARS],
                report_section="\n".join([
                    "## Strategic research (phase output)",
                    "",
                    f"- cadence: {task.cadence}",
                    f"- phase: {task.phase}",
                    f"- theme: {result.signal.theme}",
                    f"- selected_lenses: {lenses}",
                    "",
                ]),
            )

        if result.state == STATE_ABORT:
            return SkillResult(
                title="Strategic research (withheld)",
                short_summary="Editorial review rejected the synthesis; nothing published.",
                report_section="\n".join([
                    "## Strategic research (withheld)",
                    "",
                    f"- signal_id: {result.signal.signal_id}",
                    f"- theme: {result.signal.theme}",
                    f"- trace: {' -> '.join(t.state for t in result.trace)}",
                    "",
                ]),
            )

        short_summary = " | ".join([
            f"Base: {synthesis.base_case}",
            f"Alt: {synthesis.alternative_case}",
            f"Conf: {synthesis.confidence}",
        ])[:self.SHORT_SUMMARY_MAX_CHARS]
        return SkillResult(
            title="Strategic research brief",
            short_summary=short_summary,
            report_section="\n".join([
                "## Strategic research brief",
                "",
                f"- cadence: {task.cadence}",
                f"- phase: {task.phase}",
                f"- signal_id: {result.signal.signal_id}",
                f"- theme: {result.signal.theme}",
                f"- confidence: {synthesis.confidence}",
                "",
                "### Base Case",
                synthesis.base_case,
                "",
                "### Alternative Case",
                synthesis.alternative_case,
                "",
                "### Key Uncertainties",
                *[f"- {v}" for v in synthesis.key_uncertainties],
                "",
                "### Monitoring Signals",
                *[f"- {v}" for v in synthesis.monitoring_signals],
                "",
                "### Narrative Summary",
                synthesis.narrative_summary,
                "",
            ]),
        )
