import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from strategist.tasks.task_types import ParsedTask, SkillResult, RunOutput

logger = logging.getLogger(__name__)

SHORT_LINE_MAX_CHARS = 120


class TaskRunner:
    """Dispatches parsed tasks to the skill registered for each kind."""

    def __init__(self, skills: Iterable):
        self.skills: Dict[str, object] = {s.kind: s for s in skills}

    def run(
        self,
        request_id: str,
        tasks: List[ParsedTask],
        on_progress: Optional[Callable[[str], None]] = None,
    ) -> RunOutput:
        results: List[SkillResult] = []
        for i, task in enumerate(tasks, start=1):
            skill = self.skills.get(task.kind)
            if skill is None:
                raise ValueError(f"No skill for kind: {task.kind}")
            if on_progress is not None:
                on_progress(f"Running {i}/{len(tasks)}: {task.title}")
            logger.info("Running task", extra={"request_id": request_id, "kind": task.kind, "index": i})
            results.append(skill.run(task, request_id))

        top_lines = "\n".join(
            f"{i}. {' '.join(r.short_summary.split())[:SHORT_LINE_MAX_CHARS]}"
            for i, r in enumerate(results, start=1)
        )
        markdown_report = "\n".join([
            "# Task report",
            "",
            f"- request_id: {request_id}",
            f"- generated_at (UTC): {datetime.now(timezone.utc).isoformat()}",
            "",
            *[r.report_section for r in results],
            "",
        ])
        return RunOutput(
            short_message=f"Tasks complete: {len(results)}.\n{top_lines}",
            markdown_report=markdown_report,
            title=f"task-{request_id}",
        )
