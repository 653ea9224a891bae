import pytest

from strategist.core.types import SignalObject, LensAnalysis, DialecticCritique
from strategist.memory.stores import average_lens_confidence
from strategist.research_agents.dialectic import DialecticAgent, apply_critiques
from strategist.research_agents.lens_analysis import LensAnalysisAgent


def make_signal(relevance, intensity, theme="finance"):
    return SignalObject(
        signal_id="s1",
        theme=theme,
        relevance_score=relevance,
        intensity_score=intensity,
        entities=[],
        summary="rates",
        source_type="telegram",
        timestamp="2026-01-05T08:00:00+00:00",
    )


def make_analysis(name, confidence):
    return LensAnalysis(
        lens_name=name,
        core_thesis="thesis",
        assumptions=["a"],
        risk_factors=["r"],
        confidence=confidence,
    )


@pytest.mark.parametrize("relevance, intensity, expected", [
    (0, 0, 0.2),
    (20, 20, 0.2),
    (50, 50, 0.5),
    (90, 90, 0.9),
    (100, 100, 0.9),
    (40, 25, 0.325),
])
def test_lens_confidence_band(relevance, intensity, expected):
    agent = LensAnalysisAgent()

    assert agent.confidence_for(make_signal(relevance, intensity)) == pytest.approx(expected)


def test_ring_pulls_mean_down_by_critic_adjustments():
    analyses = [make_analysis("A", 0.8), make_analysis("B", 0.5), make_analysis("C", 0.4)]
    critiques = DialecticAgent().critique(analyses)

    before = average_lens_confidence(analyses)
    after = average_lens_confidence(apply_critiques(analyses, critiques))

    # one -0.06 (overconfident A) and two -0.03 spread over three lenses
    assert after == pytest.approx(before - 0.04)


def test_critique_only_moves_its_target():
    analyses = [make_analysis("A", 0.5), make_analysis("B", 0.5), make_analysis("C", 0.5)]
    critiques = [DialecticCritique("A", "C", "c", 0.1)]

    adjusted = apply_critiques(analyses, critiques)

    assert [a.confidence for a in adjusted] == [0.5, 0.5, 0.6]


def test_adjusted_confidence_is_rounded():
    adjusted = apply_critiques([make_analysis("A", 0.33333)], [DialecticCritique("B", "A", "c", -0.0001)])

    assert adjusted[0].confidence == 0.333
