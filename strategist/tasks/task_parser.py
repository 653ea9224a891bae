"""Heuristic chat-text to task classification.

Two agent roles share the parser:
  - "strategic": only `战略研究:` / `strategy:` commands are accepted
  - "news": links, Hacker News / OpenRouter digests and long free text
"""
import re
import logging
from typing import List, Optional

from strategist.core.config import TaskConfig, AGENT_ROLE_NEWS, AGENT_ROLE_STRATEGIC
from strategist.core.types import CADENCES, PHASES
from strategist.tasks.task_types import (
    ParsedTask, SummarizeTextTask, SummarizeLinkTask, HnDigestTask, OpenRouterRankingTask,
    StrategicResearchTask,
)

logger = logging.getLogger(__name__)

MODE_NEWS = AGENT_ROLE_NEWS
MODE_STRATEGIC = AGENT_ROLE_STRATEGIC

URL_RE = re.compile(r"https?://[^\s]+", re.IGNORECASE)
URL_TRAILING_PUNCT_RE = re.compile(r"[),.;!?，。；！？）】》]+$")
TOP_N_RES = (re.compile(r"top\s*(\d{1,3})", re.IGNORECASE), re.compile(r"前\s*(\d{1,3})"))
HN_RE = re.compile(r"hacker\s*news|\bhn\b|HackerNews", re.IGNORECASE)
OPENROUTER_RE = re.compile(r"openrouter", re.IGNORECASE)
BARE_COMMAND_RE = re.compile(r"^(总结|summary|summarize|抓取|分析|任务[:：]?)\s*$", re.IGNORECASE)
STRATEGIC_PREFIX_RE = re.compile(r"^\s*(战略研究|strategy)\s*[:：]\s*", re.IGNORECASE)

CONTROL_TEXT_RES = (
    URL_RE,
    re.compile(r"任务[:：]?", re.IGNORECASE),
    re.compile(r"总结|summar(y|ize)", re.IGNORECASE),
    re.compile(r"抓取|拉取|分析|digest", re.IGNORECASE),
    re.compile(r"hacker\s*news|openrouter|ranking|排行|榜单|\bhn\b", re.IGNORECASE),
    re.compile(r"[+,，;；]"),
)

DEFAULT_TOP_N = 10
MAX_TOP_N = 30
LONG_TEXT_MIN_CHARS = 120
FALLBACK_TEXT_MIN_CHARS = 40


def normalize_detected_url(raw: str) -> str:
    return URL_TRAILING_PUNCT_RE.sub("", raw)


def detect_top_n(text: str, default: int = DEFAULT_TOP_N) -> int:
    for pattern in TOP_N_RES:
        match = pattern.search(text)
        if match:
            return max(1, min(MAX_TOP_N, int(match.group(1))))
    return default


def strip_control_text(text: str) -> str:
    for pattern in CONTROL_TEXT_RES:
        text = pattern.sub(" ", text)
    return re.sub(r"\s+", " ", text).strip()


def parse_strategic_command(
    text: str,
    source_type: Optional[str] = None,
    config: Optional[TaskConfig] = None,
) -> List[ParsedTask]:
    """Decode `战略研究: [cadence] [phase] free text` into a StrategicResearchTask.

    Missing cadence or phase tokens fall back to the TaskConfig defaults.
    """
    config = config or TaskConfig()
    source_type = source_type or config.default_source_type
    match = STRATEGIC_PREFIX_RE.match(text)
    if not match:
        return []
    tokens = text[match.end():].split()
    cadence, phase = config.default_cadence, config.default_phase
    # cadence and phase tokens may lead the body in either order
    while tokens:
        head = tokens[0].lower()
        if head in CADENCES:
            cadence = head
        elif head in PHASES:
            phase = head
        else:
            break
        tokens.pop(0)
    return [StrategicResearchTask(text=" ".join(tokens), cadence=cadence, phase=phase, source_type=source_type)]


def parse_tasks(
    text: str,
    mode: Optional[str] = None,
    source_type: Optional[str] = None,
    config: Optional[TaskConfig] = None,
) -> List[ParsedTask]:
    """Classify one inbound chat message into zero or more tasks.

    `mode` defaults to the configured agent role (`AGENT_ROLE`, else news).
    """
    source = (text or "").strip()
    if not source:
        return []
    config = config or TaskConfig()
    mode = mode or config.agent_role
    if mode == MODE_STRATEGIC:
        return parse_strategic_command(source, source_type=source_type, config=config)
    if mode != MODE_NEWS:
        raise ValueError(f"Unknown parser mode: {mode}")
    if BARE_COMMAND_RE.match(source):
        return []

    tasks: List[ParsedTask] = []
    links = list(dict.fromkeys(
        url for url in (normalize_detected_url(m) for m in URL_RE.findall(source)) if url
    ))
    tasks.extend(SummarizeLinkTask(url=link) for link in links)

    if HN_RE.search(source):
        tasks.append(HnDigestTask(limit=detect_top_n(source)))
    if OPENROUTER_RE.search(source):
        tasks.append(OpenRouterRankingTask(limit=detect_top_n(source)))

    leftover = strip_control_text(source)
    if len(leftover) >= LONG_TEXT_MIN_CHARS or (not tasks and len(leftover) >= FALLBACK_TEXT_MIN_CHARS):
        tasks.append(SummarizeTextTask(text=leftover))

    if not tasks:
        tasks.append(SummarizeTextTask(text=source))
    logger.debug("Parsed %d task(s)", len(tasks), extra={"kinds": [t.kind for t in tasks]})
    return tasks
