"""Shared test fixtures for strategic research tests."""
import pytest

from strategist.core.config import OrchestratorConfig
from strategist.core.types import (
    SignalInput, SignalObject, LensAnalysis, DialecticCritique, StrategicSynthesis,
)
from strategist.memory.stores import StrategicMemoryStores


# Low-signal example: technology theme, relevance 40, intensity 25 -> confidence 0.325
CHIP_EXPORT_TEXT = "AI芯片出口限制可能扰动市场"

# High-signal example: technology theme, relevance 34, intensity 100 -> confidence 0.67
HIGH_SIGNAL_TEXT = "AI risk! AI risk! AI risk! AI risk!"


@pytest.fixture(autouse=True)
def _clear_strategic_env(monkeypatch):
    """Keep environment overrides from leaking into configs under test."""
    for key in (
        "STRATEGIC_CADENCE", "STRATEGIC_PHASE", "STRATEGIC_INSUFFICIENT_THRESHOLD", "STRATEGIC_MEMORY_DIR",
        "STRATEGIC_SOURCE_TYPE", "STRATEGIC_DEFAULT_CADENCE", "STRATEGIC_DEFAULT_PHASE", "AGENT_ROLE",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def chip_export_input():
    return SignalInput(text=CHIP_EXPORT_TEXT, source_type="telegram")


@pytest.fixture
def high_signal_input():
    return SignalInput(text=HIGH_SIGNAL_TEXT, source_type="telegram", timestamp="2026-01-05T08:00:00+00:00")


@pytest.fixture
def stores():
    return StrategicMemoryStores()


@pytest.fixture
def weekly_phase4_config():
    return OrchestratorConfig(cadence="weekly", phase="phase4")


@pytest.fixture
def make_signal():
    """Factory for SignalObject with overridable fields."""
    def _make(theme="technology", relevance=60, intensity=40, signal_id="sig-0001", **kwargs):
        fields = dict(
            signal_id=signal_id,
            theme=theme,
            relevance_score=relevance,
            intensity_score=intensity,
            entities=["Nvidia"],
            summary="Nvidia export controls tighten",
            source_type="telegram",
            timestamp="2026-01-05T08:00:00+00:00",
        )
        fields.update(kwargs)
        return SignalObject(**fields)
    return _make


@pytest.fixture
def make_analysis():
    """Factory for LensAnalysis with a given lens name and confidence."""
    def _make(lens_name, confidence=0.5):
        return LensAnalysis(
            lens_name=lens_name,
            core_thesis=f"{lens_name} thesis on technology",
            assumptions=["Signal persists."],
            risk_factors=["Sampling bias."],
            confidence=confidence,
        )
    return _make


@pytest.fixture
def sample_critique():
    return DialecticCritique(
        lens_name="MarketStructureLens",
        target_lens="PolicyRiskLens",
        critique="PolicyRiskLens assumes linear continuation.",
        confidence_adjustment=-0.03,
        blind_spot="cross-theme transmission speed",
    )


@pytest.fixture
def sample_synthesis():
    return StrategicSynthesis(
        base_case="Base case: MarketStructureLens narrative leads, trend=up.",
        alternative_case="Alternative case: defensive turn.",
        confidence=0.64,
        key_uncertainties=["Whether key actors respond in sync."],
        monitoring_signals=["Policy wording", "Capital flows"],
        narrative_summary="Unresolved tension: MarketStructureLens and PolicyRiskLens still conflict.",
    )
