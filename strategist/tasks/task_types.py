from dataclasses import dataclass
from typing import Union

from strategist.core.types import CADENCE_WEEKLY, PHASE_4

TASK_SUMMARIZE_TEXT = "summarize_text"
TASK_SUMMARIZE_LINK = "summarize_link"
TASK_HN_DIGEST = "hn_digest"
TASK_OPENROUTER_RANKING = "openrouter_ranking"
TASK_STRATEGIC_RESEARCH = "strategic_research"


# --- Tagged task union: one payload shape per kind, decoded once by the parser
@dataclass(frozen=True)
class SummarizeTextTask:
    text: str
    kind: str = TASK_SUMMARIZE_TEXT
    title: str = "Text summary"


@dataclass(frozen=True)
class SummarizeLinkTask:
    url: str
    kind: str = TASK_SUMMARIZE_LINK

    @property
    def title(self) -> str:
        return f"Link summary: {self.url}"


@dataclass(frozen=True)
class HnDigestTask:
    limit: int = 10
    kind: str = TASK_HN_DIGEST
    title: str = "Hacker News digest"


@dataclass(frozen=True)
class OpenRouterRankingTask:
    limit: int = 10
    kind: str = TASK_OPENROUTER_RANKING
    title: str = "OpenRouter model ranking"


@dataclass(frozen=True)
class StrategicResearchTask:
    text: str
    cadence: str = CADENCE_WEEKLY
    phase: str = PHASE_4
    source_type: str = "telegram"
    kind: str = TASK_STRATEGIC_RESEARCH

    @property
    def title(self) -> str:
        return f"Strategic research ({self.cadence}/{self.phase})"


ParsedTask = Union[SummarizeTextTask, SummarizeLinkTask, HnDigestTask, OpenRouterRankingTask, StrategicResearchTask]


@dataclass
class SkillResult:
    title: str
    short_summary: str
    report_section: str


@dataclass
class RunOutput:
    short_message: str
    markdown_report: str
    title: str
