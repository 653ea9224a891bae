import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, TypeVar

from strategist.core.config import OrchestratorConfig
from strategist.core.types import (
    CADENCE_MONTHLY, PHASE_1, PHASE_2, GLOBAL_THESIS_ID,
    STATE_SIGNAL_INTAKE, STATE_LENS_SELECTION, STATE_PARALLEL_LENS_ANALYSIS,
    STATE_DIALECTIC, STATE_SYNTHESIS, STATE_EDITORIAL, STATE_PUBLISH, STATE_ABORT,
    STATE_COST_UNITS,
    SignalInput, SignalObject, LensSelection, LensAnalysis, DialecticCritique,
    StrategicSynthesis, InsufficientSignalBrief, OrchestrationResult, OrchestrationTraceEntry,
    ThesisRecord, StrategicMemorySnapshot, utc_now_iso,
)
from strategist.core.validators import (
    SchemaValidationError, raise_if_invalid,
    validate_signal_object, validate_lens_selection, validate_lens_analysis,
    validate_dialectic_critique, validate_strategic_synthesis, validate_insufficient_brief,
)
from strategist.memory.stores import StrategicMemoryStores, average_lens_confidence
from strategist.research_agents.signal_evaluator import SignalEvaluatorAgent
from strategist.research_agents.lens_selection import LensSelectionAgent
from strategist.research_agents.lens_analysis import LensAnalysisAgent
from strategist.research_agents.dialectic import DialecticAgent, apply_critiques
from strategist.research_agents.chief_synthesizer import ChiefSynthesizerAgent
from strategist.research_agents.editorial_governor import EditorialGovernorAgent

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StrategicResearchOrchestrator:
    """
    Deterministic state machine for one strategic research run.

    States (fixed order):
      signal_intake -> lens_selection -> parallel_lens_analysis
        -> [dialectic] -> [synthesis] -> [editorial] -> publish | abort

    Branches:
      - phase1: stop after lens analysis with a stub synthesis (is_stub=True)
      - aggregate adjusted confidence below threshold: InsufficientSignalBrief,
        synthesis and editorial skipped
      - phase2: stop after synthesis, editorial skipped
      - phase3/phase4: full chain; monthly cadence also recalibrates the
        global thesis record
      - editorial rejection after its single revision: state "abort"

    Every stage output is validated before acceptance; a validation failure
    raises SchemaValidationError and no result is returned. Each executed
    stage appends a trace entry with its fixed cost units, and the terminal
    publish/abort state closes the trace with a note naming the branch.

    The stores are owned by this instance unless a shared
    StrategicMemoryStores is injected.
    """

    RECALIBRATION_MAX_THESES: int = 3
    INSUFFICIENT_REASON: str = "Aggregate lens confidence below threshold"
    INSUFFICIENT_UNCERTAINTIES: List[str] = ["Signal continuity uncertain", "Cross-lens corroboration is weak"]
    INSUFFICIENT_MONITORING: List[str] = ["Signal recurrence frequency", "Independent source confirmation"]

    def __init__(
        self,
        config: Optional[OrchestratorConfig] = None,
        stores: Optional[StrategicMemoryStores] = None,
        max_workers: Optional[int] = None,
    ):
        self.config = config if config is not None else OrchestratorConfig()
        self.config.validate()
        self.stores = stores if stores is not None else StrategicMemoryStores()
        self.max_workers = max_workers
        logger.debug(
            "Initializing StrategicResearchOrchestrator",
            extra={"cadence": self.config.cadence, "phase": self.config.phase},
        )
        self.signal_evaluator = SignalEvaluatorAgent()
        self.lens_selection = LensSelectionAgent()
        self.lens_analysis = LensAnalysisAgent()
        self.dialectic = DialecticAgent()
        self.synthesizer = ChiefSynthesizerAgent()
        self.editorial = EditorialGovernorAgent()

    @property
    def cadence(self) -> str:
        return self.config.cadence

    @property
    def phase(self) -> Optional[str]:
        return self.config.phase

    def snapshot(self) -> StrategicMemorySnapshot:
        """Copy of all four stores for the external memory journal."""
        return self.stores.snapshot()

    def run(self, signal_input: SignalInput) -> OrchestrationResult:
        """
        Execute one pipeline run.

        Args:
            signal_input: text, source type and optional timestamp

        Returns:
            OrchestrationResult with state "publish" or "abort" and the full trace

        Raises:
            SchemaValidationError: If any stage output fails its validator
        """
        trace: List[OrchestrationTraceEntry] = []
        logger.info("Running strategic research pipeline", extra={"cadence": self.cadence, "phase": self.phase})

        logger.info("[1/6] Running signal intake...")
        signal = self._with_trace(trace, STATE_SIGNAL_INTAKE, lambda: self._intake(signal_input))

        logger.info("[2/6] Running lens selection...")
        selection = self._with_trace(trace, STATE_LENS_SELECTION, lambda: self._select(signal))

        logger.info("[3/6] Running parallel lens analysis...", extra={"lenses": selection.selected_lenses})
        analyses = self._with_trace(trace, STATE_PARALLEL_LENS_ANALYSIS, lambda: self._analyze(selection, signal))

        if self.phase == PHASE_1:
            logger.info("phase1 gate reached; returning stub synthesis")
            stub = self.synthesizer.stub(analyses)
            raise_if_invalid(validate_strategic_synthesis(stub), STATE_PARALLEL_LENS_ANALYSIS)
            return OrchestrationResult(
                state=self._finish(trace, STATE_PUBLISH, "phase1 stub"),
                signal=signal,
                selected_lenses=selection,
                lens_analyses=analyses,
                critiques=[],
                synthesis=stub,
                trace=trace,
            )

        logger.info("[4/6] Running dialectic critique...")
        critiques = self._with_trace(trace, STATE_DIALECTIC, lambda: self._critique(analyses))
        adjusted = apply_critiques(analyses, critiques)

        aggregate_confidence = average_lens_confidence(adjusted)
        if aggregate_confidence < self.config.insufficient_signal_threshold:
            logger.info(
                "Aggregate confidence below threshold; emitting insufficient signal brief",
                extra={"confidence": aggregate_confidence, "threshold": self.config.insufficient_signal_threshold},
            )
            brief = self._insufficient_brief(aggregate_confidence)
            return OrchestrationResult(
                state=self._finish(trace, STATE_PUBLISH, "insufficient signal"),
                signal=signal,
                selected_lenses=selection,
                lens_analyses=adjusted,
                critiques=critiques,
                insufficient_brief=brief,
                trace=trace,
            )

        logger.info("[5/6] Running synthesis...")
        synthesis = self._with_trace(trace, STATE_SYNTHESIS, lambda: self._synthesize(adjusted, critiques, signal))

        if self.phase == PHASE_2:
            logger.info("phase2 gate reached; skipping editorial")
            return OrchestrationResult(
                state=self._finish(trace, STATE_PUBLISH, "phase2 gate"),
                signal=signal,
                selected_lenses=selection,
                lens_analyses=adjusted,
                critiques=critiques,
                synthesis=synthesis,
                trace=trace,
            )

        logger.info("[6/6] Running editorial review...")
        review = self._with_trace(trace, STATE_EDITORIAL, lambda: self.editorial.review(synthesis))

        if self.cadence == CADENCE_MONTHLY:
            self._recalibrate_monthly_thesis(adjusted, critiques, synthesis)

        final_synthesis = review.revised if review.revised is not None else synthesis
        if review.passed and review.revised is not None:
            raise_if_invalid(validate_strategic_synthesis(final_synthesis), STATE_EDITORIAL)

        if review.passed:
            state = self._finish(trace, STATE_PUBLISH, "editorial passed")
        else:
            logger.warning("Editorial rejected synthesis; aborting", extra={"errors": review.errors})
            state = self._finish(trace, STATE_ABORT, "; ".join(review.errors))
        logger.info("Pipeline completed", extra={"state": state})
        return OrchestrationResult(
            state=state,
            signal=signal,
            selected_lenses=selection,
            lens_analyses=adjusted,
            critiques=critiques,
            synthesis=final_synthesis,
            trace=trace,
        )

    # --- stages

    def _intake(self, signal_input: SignalInput) -> SignalObject:
        signal = self.signal_evaluator.evaluate(signal_input)
        raise_if_invalid(validate_signal_object(signal), STATE_SIGNAL_INTAKE)
        self.stores.signal_store.add(signal)
        self.stores.theme_cluster_store.add_signal(signal)
        return signal

    def _select(self, signal: SignalObject) -> LensSelection:
        selection = self.lens_selection.select(
            signal,
            self.cadence,
            self.stores.strategic_thesis_store,
            self.stores.lens_performance_store,
        )
        max_lenses = self.lens_selection.max_lenses_for(self.cadence)
        raise_if_invalid(validate_lens_selection(selection, max_lenses=max_lenses), STATE_LENS_SELECTION)
        return selection

    def _analyze(self, selection: LensSelection, signal: SignalObject) -> List[LensAnalysis]:
        lenses = selection.selected_lenses
        workers = self.max_workers or len(lenses)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            analyses = list(pool.map(lambda lens: self.lens_analysis.analyze(lens, signal), lenses))

        for analysis in analyses:
            raise_if_invalid(validate_lens_analysis(analysis), STATE_PARALLEL_LENS_ANALYSIS)
        # bookkeeping after the join: exactly once per lens per run
        for analysis in analyses:
            self.stores.lens_performance_store.record_activation(analysis.lens_name, analysis.confidence)
        return analyses

    def _critique(self, analyses: List[LensAnalysis]) -> List[DialecticCritique]:
        critiques = self.dialectic.critique(analyses)
        for critique in critiques:
            raise_if_invalid(validate_dialectic_critique(critique), STATE_DIALECTIC)
        for critique in critiques:
            self.stores.lens_performance_store.record_critique(critique)
            if critique.blind_spot:
                self.stores.lens_performance_store.record_blind_spot(critique.target_lens, critique.blind_spot)
        return critiques

    def _synthesize(
        self,
        adjusted: List[LensAnalysis],
        critiques: List[DialecticCritique],
        signal: SignalObject,
    ) -> StrategicSynthesis:
        synthesis = self.synthesizer.synthesize(
            adjusted,
            critiques,
            self.stores.theme_cluster_store,
            self.cadence,
            signal.theme,
        )
        raise_if_invalid(validate_strategic_synthesis(synthesis), STATE_SYNTHESIS)
        return synthesis

    def _insufficient_brief(self, aggregate_confidence: float) -> InsufficientSignalBrief:
        brief = InsufficientSignalBrief(
            confidence=round(aggregate_confidence, 3),
            reason=self.INSUFFICIENT_REASON,
            key_uncertainties=list(self.INSUFFICIENT_UNCERTAINTIES),
            monitoring_signals=list(self.INSUFFICIENT_MONITORING),
        )
        raise_if_invalid(validate_insufficient_brief(brief), STATE_DIALECTIC)
        return brief

    def _recalibrate_monthly_thesis(
        self,
        adjusted: List[LensAnalysis],
        critiques: List[DialecticCritique],
        synthesis: StrategicSynthesis,
    ) -> None:
        store = self.stores.strategic_thesis_store
        record = store.get(GLOBAL_THESIS_ID) or ThesisRecord(thesis_id=GLOBAL_THESIS_ID)
        record.core_theses = [a.core_thesis for a in adjusted][:self.RECALIBRATION_MAX_THESES]
        record.confidence_history.append(round(average_lens_confidence(adjusted), 3))
        record.revision_log.append(f"monthly recalibration @ {utc_now_iso()}")
        for c in critiques:
            pair = f"{c.lens_name} vs {c.target_lens}"
            if pair not in record.contradictions:
                record.contradictions.append(pair)
        for question in synthesis.key_uncertainties:
            if question not in record.open_questions:
                record.open_questions.append(question)
        store.upsert(record)
        logger.info("Recalibrated global thesis", extra={"revisions": len(record.revision_log)})

    # --- helpers

    def _finish(self, trace: List[OrchestrationTraceEntry], state: str, note: str) -> str:
        now = utc_now_iso()
        trace.append(OrchestrationTraceEntry(
            state=state,
            started_at=now,
            finished_at=now,
            cost_units=STATE_COST_UNITS[state],
            note=note,
        ))
        return state

    def _with_trace(self, trace: List[OrchestrationTraceEntry], state: str, fn: Callable[[], T]) -> T:
        started = utc_now_iso()
        try:
            result = fn()
        except SchemaValidationError:
            logger.exception("Stage %s failed validation", state)
            raise
        trace.append(OrchestrationTraceEntry(
            state=state,
            started_at=started,
            finished_at=utc_now_iso(),
            cost_units=STATE_COST_UNITS[state],
            note="ok",
        ))
        return result
