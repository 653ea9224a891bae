"""Tests for StrategicResearchOrchestrator."""
from dataclasses import replace
from unittest.mock import patch

import pytest

from strategist.core.config import OrchestratorConfig
from strategist.core.types import SignalInput
from strategist.core.validators import SchemaValidationError
from strategist.orchestration.strategic_research_orchestrator import StrategicResearchOrchestrator
from strategist.research_agents.editorial_governor import EditorialGovernorAgent
from strategist.research_agents.lens_selection import LensSelectionAgent


def _states(result):
    return [entry.state for entry in result.trace]


class TestStrategicResearchOrchestrator:
    """Test suite for StrategicResearchOrchestrator."""

    def test_initialization(self, weekly_phase4_config):
        """Test orchestrator wiring."""
        orchestrator = StrategicResearchOrchestrator(weekly_phase4_config)

        assert orchestrator.cadence == "weekly"
        assert orchestrator.phase == "phase4"
        for attr in ("signal_evaluator", "lens_selection", "lens_analysis", "dialectic", "synthesizer", "editorial"):
            assert hasattr(orchestrator, attr)

    def test_invalid_config_rejected(self):
        """Test construction validates the config."""
        with pytest.raises(ValueError, match="cadence"):
            StrategicResearchOrchestrator(OrchestratorConfig(cadence="hourly"))

    def test_full_run_publishes_synthesis(self, weekly_phase4_config, high_signal_input):
        """Test phase4 weekly run over a strong signal."""
        result = StrategicResearchOrchestrator(weekly_phase4_config).run(high_signal_input)

        assert result.state == "publish"
        assert result.signal.theme == "technology"
        assert len(result.selected_lenses.selected_lenses) == 5
        assert result.synthesis is not None
        assert result.insufficient_brief is None
        assert result.synthesis.confidence == pytest.approx(0.64)
        assert "Unresolved tension" in result.synthesis.narrative_summary
        assert _states(result) == [
            "signal_intake", "lens_selection", "parallel_lens_analysis", "dialectic", "synthesis", "editorial",
            "publish",
        ]
        assert [entry.cost_units for entry in result.trace] == [1, 1, 3, 2, 3, 1, 1]
        assert result.trace[-1].note == "editorial passed"

    def test_chip_example_yields_insufficient_brief(self, weekly_phase4_config, chip_export_input):
        """Test low aggregate confidence ends with a brief and no synthesis."""
        result = StrategicResearchOrchestrator(weekly_phase4_config).run(chip_export_input)

        assert result.state == "publish"
        assert result.signal.theme == "technology"
        assert 3 <= len(result.selected_lenses.selected_lenses) <= 5
        assert result.synthesis is None
        assert result.insufficient_brief is not None
        assert result.insufficient_brief.confidence == pytest.approx(0.295)
        assert len(result.insufficient_brief.key_uncertainties) == 2
        assert _states(result)[-2:] == ["dialectic", "publish"]
        assert result.trace[-1].note == "insufficient signal"

    def test_threshold_is_configurable(self, chip_export_input):
        """Test a lower threshold lets the weak signal through to synthesis."""
        config = OrchestratorConfig(cadence="weekly", phase="phase4", insufficient_signal_threshold=0.2)
        result = StrategicResearchOrchestrator(config).run(chip_export_input)

        assert result.synthesis is not None
        assert result.insufficient_brief is None

    def test_ring_critiques_and_adjusted_confidence(self, weekly_phase4_config, high_signal_input):
        """Test every lens is critic and target once and confidences are adjusted."""
        result = StrategicResearchOrchestrator(weekly_phase4_config).run(high_signal_input)
        lenses = result.selected_lenses.selected_lenses

        assert len(result.critiques) == len(lenses)
        assert sorted(c.lens_name for c in result.critiques) == sorted(lenses)
        assert sorted(c.target_lens for c in result.critiques) == sorted(lenses)
        assert all(a.confidence == pytest.approx(0.64) for a in result.lens_analyses)

    @pytest.mark.parametrize("cadence", ["daily", "weekly", "monthly"])
    def test_phase1_stops_after_analysis(self, cadence, high_signal_input):
        """Test phase1 returns a stub synthesis at parallel_lens_analysis."""
        config = OrchestratorConfig(cadence=cadence, phase="phase1")
        result = StrategicResearchOrchestrator(config).run(high_signal_input)

        assert result.state == "publish"
        assert _states(result)[-2:] == ["parallel_lens_analysis", "publish"]
        assert result.synthesis.is_stub is True
        assert result.critiques == []
        assert result.insufficient_brief is None

    def test_phase1_with_weak_signal_still_stubs(self, chip_export_input):
        """Test phase1 ignores the confidence branch."""
        result = StrategicResearchOrchestrator(OrchestratorConfig(phase="phase1")).run(chip_export_input)

        assert result.synthesis.is_stub is True
        assert result.insufficient_brief is None

    def test_phase1_invalid_stub_fails_fast(self, high_signal_input, sample_synthesis, stores):
        """Test a malformed phase1 stub raises at parallel_lens_analysis instead of publishing."""
        orchestrator = StrategicResearchOrchestrator(OrchestratorConfig(phase="phase1"), stores=stores)
        broken = replace(sample_synthesis, monitoring_signals=[], is_stub=True)

        with patch.object(orchestrator.synthesizer, "stub", return_value=broken):
            with pytest.raises(SchemaValidationError) as excinfo:
                orchestrator.run(high_signal_input)
        assert excinfo.value.stage == "parallel_lens_analysis"
        assert "monitoring_signals must be non-empty" in excinfo.value.errors

    def test_phase2_skips_editorial(self, high_signal_input):
        """Test phase2 ends after synthesis."""
        result = StrategicResearchOrchestrator(OrchestratorConfig(phase="phase2")).run(high_signal_input)

        assert _states(result)[-2:] == ["synthesis", "publish"]
        assert "editorial" not in _states(result)
        assert result.synthesis is not None
        assert result.synthesis.is_stub is False

    def test_daily_cadence_selects_three(self, high_signal_input):
        """Test daily runs use at most three lenses."""
        result = StrategicResearchOrchestrator(OrchestratorConfig(cadence="daily")).run(high_signal_input)

        assert len(result.selected_lenses.selected_lenses) == 3
        assert len(result.critiques) == 3

    def test_store_side_effects(self, weekly_phase4_config, high_signal_input, stores):
        """Test stores record signal, cluster, activations and critiques once per run."""
        orchestrator = StrategicResearchOrchestrator(weekly_phase4_config, stores=stores)
        result = orchestrator.run(high_signal_input)

        assert stores.signal_store.all() == [result.signal]
        assert stores.theme_cluster_store.get("technology").signal_frequency == 1
        for lens in result.selected_lenses.selected_lenses:
            perf = stores.lens_performance_store.get(lens)
            assert perf.activation_frequency == 1
            assert perf.confidence_drift == [pytest.approx(0.67)]
            assert len(perf.critique_patterns) == 1
            assert sum(perf.blind_spot_recurrence.values()) == 1

    def test_activation_history_rotates_daily_lenses(self, high_signal_input, stores):
        """Test repeated daily runs penalize already-used lenses."""
        orchestrator = StrategicResearchOrchestrator(OrchestratorConfig(cadence="daily"), stores=stores)
        first = orchestrator.run(high_signal_input)
        second = orchestrator.run(high_signal_input)

        assert first.selected_lenses.selected_lenses == ["MarketStructureLens", "PolicyRiskLens", "ExecutionLens"]
        assert second.selected_lenses.selected_lenses == ["AdoptionLens", "CapitalFlowLens", "MarketStructureLens"]
        assert first.signal.signal_id == second.signal.signal_id

    def test_monthly_recalibrates_global_thesis(self, high_signal_input, stores):
        """Test monthly cadence updates the global thesis record."""
        orchestrator = StrategicResearchOrchestrator(OrchestratorConfig(cadence="monthly"), stores=stores)
        orchestrator.run(high_signal_input)

        record = stores.strategic_thesis_store.get("global")
        assert record is not None
        assert len(record.core_theses) == 3
        assert record.confidence_history == [pytest.approx(0.64)]
        assert len(record.revision_log) == 1
        assert record.open_questions
        assert record.contradictions

    def test_weekly_does_not_touch_thesis_store(self, weekly_phase4_config, high_signal_input, stores):
        """Test non-monthly runs leave theses alone."""
        StrategicResearchOrchestrator(weekly_phase4_config, stores=stores).run(high_signal_input)

        assert stores.strategic_thesis_store.all() == []

    def test_small_lens_pool_fails_fast(self, weekly_phase4_config, high_signal_input, stores):
        """Test an undersized candidate pool raises at lens_selection."""
        orchestrator = StrategicResearchOrchestrator(weekly_phase4_config, stores=stores)
        orchestrator.lens_selection = LensSelectionAgent(matrix={"default": ["ALens", "BLens"]})

        with pytest.raises(SchemaValidationError) as excinfo:
            orchestrator.run(high_signal_input)
        assert excinfo.value.stage == "lens_selection"
        assert stores.lens_performance_store.all() == []

    def test_invalid_signal_fails_fast(self, weekly_phase4_config):
        """Test empty text fails signal_intake validation."""
        with pytest.raises(SchemaValidationError, match="signal_intake"):
            StrategicResearchOrchestrator(weekly_phase4_config).run(SignalInput(text="  ", source_type="telegram"))

    def test_editorial_rejection_aborts(self, weekly_phase4_config, high_signal_input, sample_synthesis):
        """Test an unhealable synthesis ends in abort with the full trace."""
        orchestrator = StrategicResearchOrchestrator(weekly_phase4_config)
        sparse = replace(sample_synthesis, monitoring_signals=["Only one"])

        with patch.object(orchestrator.synthesizer, "synthesize", return_value=sparse):
            result = orchestrator.run(high_signal_input)

        assert result.state == "abort"
        assert result.synthesis is not None
        assert _states(result)[-2:] == ["editorial", "abort"]
        assert result.trace[-1].note == EditorialGovernorAgent.ERROR_SPARSE_MONITORING
        assert result.trace[-1].cost_units == 1

    def test_editorial_revision_publishes(self, weekly_phase4_config, high_signal_input, sample_synthesis):
        """Test a narrative without tension is revised and then published."""
        orchestrator = StrategicResearchOrchestrator(weekly_phase4_config)
        bland = replace(sample_synthesis, narrative_summary="Everyone agrees.")

        with patch.object(orchestrator.synthesizer, "synthesize", return_value=bland):
            result = orchestrator.run(high_signal_input)

        assert result.state == "publish"
        assert result.synthesis.narrative_summary.endswith(orchestrator.editorial.DISCLAIMER)

    def test_result_serializes(self, weekly_phase4_config, high_signal_input):
        """Test to_dict produces plain structures."""
        payload = StrategicResearchOrchestrator(weekly_phase4_config).run(high_signal_input).to_dict()

        assert payload["state"] == "publish"
        assert payload["insufficient_brief"] is None
        assert payload["trace"][0]["state"] == "signal_intake"
        assert payload["signal"]["theme"] == "technology"
