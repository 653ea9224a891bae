import re
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from strategist.core.config import JournalConfig
from strategist.core.types import OrchestrationResult, StrategicMemorySnapshot
from strategist.memory.stores import lens_performance_frame, theme_cluster_frame

logger = logging.getLogger(__name__)


@dataclass
class StrategicMemoryJournalInput:
    request_id: str
    cadence: str
    phase: str
    result: OrchestrationResult
    snapshot: StrategicMemorySnapshot


def _read_if_exists(path: Path) -> str:
    if not path.exists():
        return ""
    return path.read_text(encoding="utf-8")


def _append_lines(path: Path, lines: List[str]) -> None:
    prev = _read_if_exists(path)
    sep = "\n" if prev else ""
    path.write_text(f"{prev}{sep}" + "\n".join(lines) + "\n", encoding="utf-8")


def upsert_section(content: str, section_title: str, body: str) -> str:
    """Replace the `## section_title` block in content, or append it."""
    block = f"## {section_title}\n{body}\n"
    pattern = re.compile(rf"## {re.escape(section_title)}\n[\s\S]*?(?=\n## |\Z)")
    if pattern.search(content):
        return pattern.sub(lambda _: block.rstrip(), content, count=1)
    return f"{content.rstrip()}\n\n{block}".lstrip()


class StrategicMemoryJournal:
    """
    Markdown journal for orchestration results and store snapshots.

    Lives outside the pipeline core: callers hand it the finished result and
    a snapshot after `run` returns. Layout under `root_dir`:
      MEMORY.md                 latest-run index (overwritten)
      memory/projects.md        per-run summary (append)
      memory/infra.md           "Runtime Snapshot" section (upsert)
      memory/lessons.md         uncertainties, watch items, critiques (append)
      memory/<YYYY-MM-DD>.md    daily log (append)
    """

    MAX_LESSON_CRITIQUES: int = 3

    def __init__(self, root_dir: Optional[str] = None, config: Optional[JournalConfig] = None):
        config = config if config is not None else JournalConfig(root_dir=root_dir)
        config.validate()
        self.root_dir: Path = config.root_dir
        self.memory_dir: Path = config.memory_dir
        self.memory_dir.mkdir(parents=True, exist_ok=True)

    def persist(self, journal_input: StrategicMemoryJournalInput) -> None:
        logger.info("Persisting strategic memory", extra={"request_id": journal_input.request_id})
        self._write_memory_index(journal_input)
        self._write_projects(journal_input)
        self._write_infra(journal_input)
        self._write_lessons(journal_input)
        self._write_daily_log(journal_input)

    def daily_log_path(self) -> Path:
        return self.memory_dir / f"{self._date_key()}.md"

    def _write_memory_index(self, ji: StrategicMemoryJournalInput) -> None:
        signal = ji.result.signal
        lines = [
            "# MEMORY",
            "",
            "Strategic research memory index: key state and file references only.",
            "",
            "## Latest",
            f"- request_id: {ji.request_id}",
            f"- signal_id: {signal.signal_id}",
            f"- theme: {signal.theme}",
            f"- cadence/phase: {ji.cadence}/{ji.phase}",
            f"- state: {ji.result.state}",
            f"- confidence: {ji.result.confidence}",
            f"- files: memory/projects.md, memory/infra.md, memory/lessons.md, memory/{self._date_key()}.md",
            "",
        ]
        (self.root_dir / "MEMORY.md").write_text("\n".join(lines), encoding="utf-8")

    def _write_projects(self, ji: StrategicMemoryJournalInput) -> None:
        result = ji.result
        if result.synthesis is not None:
            summary = result.synthesis.base_case
        elif result.insufficient_brief is not None:
            summary = result.insufficient_brief.reason
        else:
            summary = "phase output"
        _append_lines(self.memory_dir / "projects.md", [
            f"## {self._now()} | request {ji.request_id}",
            f"- theme: {result.signal.theme}",
            f"- cadence/phase: {ji.cadence}/{ji.phase}",
            f"- selected_lenses: {', '.join(result.selected_lenses.selected_lenses)}",
            f"- status: {result.state}",
            f"- summary: {summary}",
            "",
        ])

    def _write_infra(self, ji: StrategicMemoryJournalInput) -> None:
        path = self.memory_dir / "infra.md"
        snapshot = ji.snapshot
        rows = [
            f"- root_dir: {self.root_dir}",
            f"- signal_count: {len(snapshot.signals)}",
            f"- theme_cluster_count: {len(snapshot.theme_clusters)}",
            f"- thesis_count: {len(snapshot.theses)}",
            f"- lens_perf_count: {len(snapshot.lens_performance)}",
            f"- updated_at: {self._now()}",
        ]
        for table in self._snapshot_tables(snapshot):
            rows.extend(["", "```", table, "```"])
        current = _read_if_exists(path) or "# infra\n\n"
        path.write_text(upsert_section(current, "Runtime Snapshot", "\n".join(rows) + "\n"), encoding="utf-8")

    def _write_lessons(self, ji: StrategicMemoryJournalInput) -> None:
        result = ji.result
        artifact = result.synthesis or result.insufficient_brief
        uncertainties = artifact.key_uncertainties if artifact else []
        watch = artifact.monitoring_signals if artifact else []
        critiques = [
            f"{c.lens_name}->{c.target_lens}: {c.critique}"
            for c in result.critiques[:self.MAX_LESSON_CRITIQUES]
        ]
        _append_lines(self.memory_dir / "lessons.md", [
            f"## {self._now()} | {result.signal.theme}",
            "- lessons:",
            *[f"  - uncertainty: {u}" for u in uncertainties],
            *[f"  - watch: {w}" for w in watch],
            *[f"  - critique: {c}" for c in critiques],
            "",
        ])

    def _write_daily_log(self, ji: StrategicMemoryJournalInput) -> None:
        result = ji.result
        artifact = result.synthesis or result.insufficient_brief
        monitoring = artifact.monitoring_signals if artifact else []
        _append_lines(self.daily_log_path(), [
            f"## {self._now()} | request {ji.request_id}",
            f"- signal: {result.signal.signal_id} / {result.signal.theme}",
            f"- cadence/phase: {ji.cadence}/{ji.phase}",
            f"- confidence: {result.confidence}",
            "- lenses:",
            *[f"  - {a.lens_name}: {a.confidence} | {a.core_thesis}" for a in result.lens_analyses],
            "- monitoring:",
            *[f"  - {m}" for m in monitoring],
            "",
        ])

    @staticmethod
    def _snapshot_tables(snapshot: StrategicMemorySnapshot) -> List[str]:
        """Lens and theme tables rendered the same way the stores' `to_frame` builds them."""
        tables = []
        if snapshot.lens_performance:
            lenses = lens_performance_frame(snapshot.lens_performance)
            lenses = lenses.sort_values("activation_frequency", ascending=False, kind="stable")
            tables.append(lenses.round(3).to_string())
        if snapshot.theme_clusters:
            tables.append(theme_cluster_frame(snapshot.theme_clusters).round(3).to_string())
        return tables

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def _date_key() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d")
