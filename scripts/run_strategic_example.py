"""
Run the strategic research pipeline on a sample signal, persist the memory
journal and save the full `OrchestrationResult` to a JSON file.

Usage:
    python scripts/run_strategic_example.py [cadence] [phase]
"""
import os
import sys
import json
import logging

from strategist.core.config import DEBUG, AppConfig, OrchestratorConfig
from strategist.core.types import SignalInput
from strategist.memory.memory_journal import StrategicMemoryJournal, StrategicMemoryJournalInput
from strategist.orchestration.strategic_research_orchestrator import StrategicResearchOrchestrator

OUT_DIR = ""
OUT_PATH = os.path.join(OUT_DIR, "strategic_run.json")
ERR_PATH = os.path.join(OUT_DIR, "strategic_run_error.log")

SIGNALS = [
    "AI芯片出口限制可能扰动市场",
    "OpenAI and Anthropic cloud agent launches! Breakthrough in open source model serving, "
    "while Nvidia export ban risk keeps rising! Crisis talk spreads across Software vendors.",
]


def main():
    logging.basicConfig(
        level=logging.DEBUG if DEBUG else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    try:
        config = AppConfig.from_env()
        cadence = sys.argv[1] if len(sys.argv) > 1 else config.orchestrator.cadence
        phase = sys.argv[2] if len(sys.argv) > 2 else config.orchestrator.phase
        orchestrator = StrategicResearchOrchestrator(OrchestratorConfig(
            cadence=cadence,
            phase=phase,
            insufficient_signal_threshold=config.orchestrator.insufficient_signal_threshold,
        ))
        journal = StrategicMemoryJournal(config=config.journal)
        results = []
        for i, text in enumerate(SIGNALS, start=1):
            result = orchestrator.run(SignalInput(text=text, source_type="example"))
            journal.persist(StrategicMemoryJournalInput(
                request_id=f"example-{i}",
                cadence=cadence,
                phase=phase,
                result=result,
                snapshot=orchestrator.snapshot(),
            ))
            results.append(result.to_dict())

        with open(OUT_PATH, "w", encoding="utf-8") as f:
            json.dump(results, f, indent=2, ensure_ascii=False)

        print(f"Saved run output to {OUT_PATH}")
    except Exception as e:
        print("Run failed:", e)
        with open(ERR_PATH, "w") as ef:
            ef.write(str(e))
        print(f"Wrote error to {ERR_PATH}")
        sys.exit(1)


if __name__ == "__main__":
    main()
