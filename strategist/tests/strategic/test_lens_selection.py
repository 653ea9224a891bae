"""Tests for LensSelectionAgent."""
import pytest

from strategist.core.types import ThesisRecord
from strategist.core.validators import validate_lens_selection
from strategist.research_agents.lens_selection import LensSelectionAgent, DEFAULT_LENS_MATRIX


class TestLensSelectionAgent:
    """Test suite for LensSelectionAgent."""

    def test_weekly_selects_full_matrix_in_order(self, make_signal, stores):
        """Test ties keep matrix order and weekly cadence allows five lenses."""
        selection = LensSelectionAgent().select(
            make_signal(), "weekly", stores.strategic_thesis_store, stores.lens_performance_store
        )

        assert selection.selected_lenses == DEFAULT_LENS_MATRIX["technology"]
        assert validate_lens_selection(selection) == []

    def test_daily_caps_at_three(self, make_signal, stores):
        """Test daily cadence keeps only the top three."""
        selection = LensSelectionAgent().select(
            make_signal(), "daily", stores.strategic_thesis_store, stores.lens_performance_store
        )

        assert selection.selected_lenses == ["MarketStructureLens", "PolicyRiskLens", "ExecutionLens"]

    def test_activation_penalty_reorders(self, make_signal, stores):
        """Test frequently used lenses drop behind unused ones."""
        for lens in ("MarketStructureLens", "PolicyRiskLens", "ExecutionLens"):
            stores.lens_performance_store.record_activation(lens, 0.5)

        selection = LensSelectionAgent().select(
            make_signal(), "daily", stores.strategic_thesis_store, stores.lens_performance_store
        )

        assert selection.selected_lenses == ["AdoptionLens", "CapitalFlowLens", "MarketStructureLens"]

    def test_unknown_theme_falls_back_to_default(self, make_signal, stores):
        """Test unknown themes use the default candidate list."""
        selection = LensSelectionAgent().select(
            make_signal(theme="climate"), "weekly", stores.strategic_thesis_store, stores.lens_performance_store
        )

        assert selection.selected_lenses == DEFAULT_LENS_MATRIX["default"]

    def test_thesis_overlap_and_intensity_bonus(self, make_signal, stores):
        """Test composite score includes thesis overlap and intensity bonuses."""
        stores.strategic_thesis_store.upsert(
            ThesisRecord(thesis_id="global", core_theses=["Lens expects technology priorities to shift"])
        )
        agent = LensSelectionAgent()
        ranked = agent.score_candidates(
            make_signal(intensity=61), stores.strategic_thesis_store, stores.lens_performance_store
        )

        assert all(score == pytest.approx(1.13) for _, score in ranked)

    def test_no_intensity_bonus_at_threshold(self, make_signal, stores):
        """Test intensity of exactly 60 earns no bonus."""
        ranked = LensSelectionAgent().score_candidates(
            make_signal(intensity=60), stores.strategic_thesis_store, stores.lens_performance_store
        )

        assert all(score == pytest.approx(1.0) for _, score in ranked)

    def test_small_pool_is_not_padded(self, make_signal, stores):
        """Test a two-lens pool yields an invalid selection rather than padding."""
        agent = LensSelectionAgent(matrix={"default": ["ALens", "BLens"]})
        selection = agent.select(make_signal(), "weekly", stores.strategic_thesis_store, stores.lens_performance_store)

        assert selection.selected_lenses == ["ALens", "BLens"]
        assert validate_lens_selection(selection)

    def test_selection_does_not_mutate_store(self, make_signal, stores):
        """Test selection only reads lens performance."""
        LensSelectionAgent().select(make_signal(), "weekly", stores.strategic_thesis_store, stores.lens_performance_store)

        assert stores.lens_performance_store.all() == []

    def test_matrix_requires_default(self):
        """Test a matrix without a default list is rejected."""
        with pytest.raises(ValueError, match="default"):
            LensSelectionAgent(matrix={"technology": ["A", "B", "C"]})
