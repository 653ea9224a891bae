import re
import math
import hashlib
import logging
from typing import List

from strategist.core.types import (
    THEME_TECHNOLOGY, THEME_FINANCE, THEME_GEOPOLITICS, THEME_DEFAULT,
    SignalInput, SignalObject, clamp_score, utc_now_iso,
)

logger = logging.getLogger(__name__)


class SignalEvaluatorAgent:
    """
    Turns raw text into a scored, classified SignalObject.

    Scoring is heuristic and saturating:
    - relevance grows with text length and entity count
    - intensity grows with the number of urgency/crisis markers
    Both are rounded half-up and clamped to [0, 100].

    No store is touched here; insertion is the orchestrator's job.
    """

    # Capitalized latin tokens (3+ chars) or CJK runs of 2-6 characters
    ENTITY_PATTERN = re.compile(r"[A-Z][A-Za-z0-9_-]{2,}|[一-龥]{2,6}")
    MAX_ENTITIES: int = 12

    # Ordered keyword families: first match wins
    THEME_PATTERNS = (
        (THEME_TECHNOLOGY, re.compile(
            r"(?<![a-z])ai(?![a-z])|模型|芯片|software|cloud|open source|agent", re.IGNORECASE)),
        (THEME_FINANCE, re.compile(r"央行|利率|通胀|债券|流动性|估值|市场|central bank|interest rate|inflation|bond|liquidity",
                                   re.IGNORECASE)),
        (THEME_GEOPOLITICS, re.compile(r"制裁|选举|地缘|外交|冲突|关税|sanction|election|geopolitic|diplomac|tariff",
                                       re.IGNORECASE)),
    )

    URGENCY_PATTERN = re.compile(r"!|！|风险|危机|突破|崩盘|禁令|\brisk\b|\bcrisis\b|\bbreakthrough\b|\bcrash\b|\bban\b",
                                 re.IGNORECASE)

    # Saturating score parameters
    RELEVANCE_BASE: float = 30.0
    RELEVANCE_CHARS_PER_POINT: float = 8.0
    RELEVANCE_POINTS_PER_ENTITY: float = 4.0
    INTENSITY_BASE: float = 25.0
    INTENSITY_POINTS_PER_MARKER: float = 12.0

    SUMMARY_MAX_CHARS: int = 280
    SIGNAL_ID_LENGTH: int = 16

    def evaluate(self, signal_input: SignalInput) -> SignalObject:
        text = (signal_input.text or "").strip()
        entities = self.extract_entities(text)
        theme = self.classify_theme(text)
        relevance = self.score_relevance(text, entities)
        intensity = self.score_intensity(text)
        signal = SignalObject(
            signal_id=self.signal_id(signal_input.source_type, text),
            theme=theme,
            relevance_score=relevance,
            intensity_score=intensity,
            entities=entities,
            summary=self.normalize_text(text)[:self.SUMMARY_MAX_CHARS],
            source_type=signal_input.source_type,
            timestamp=signal_input.timestamp or utc_now_iso(),
        )
        logger.debug(
            "Signal evaluated",
            extra={"signal_id": signal.signal_id, "theme": theme, "relevance": relevance, "intensity": intensity},
        )
        return signal

    @classmethod
    def signal_id(cls, source_type: str, text: str) -> str:
        """Content-addressed id: identical (source_type, text) pairs map to the same id."""
        digest = hashlib.sha256(f"{source_type}:{text.strip()}".encode("utf-8")).hexdigest()
        return digest[:cls.SIGNAL_ID_LENGTH]

    @staticmethod
    def normalize_text(text: str) -> str:
        return re.sub(r"\s+", " ", text).strip()

    def extract_entities(self, text: str) -> List[str]:
        tokens = self.ENTITY_PATTERN.findall(text)
        return list(dict.fromkeys(tokens))[:self.MAX_ENTITIES]

    def classify_theme(self, text: str) -> str:
        for theme, pattern in self.THEME_PATTERNS:
            if pattern.search(text):
                return theme
        return THEME_DEFAULT

    def score_relevance(self, text: str, entities: List[str]) -> int:
        raw = (
            self.RELEVANCE_BASE
            + len(text) / self.RELEVANCE_CHARS_PER_POINT
            + len(entities) * self.RELEVANCE_POINTS_PER_ENTITY
        )
        return self._to_score(raw)

    def score_intensity(self, text: str) -> int:
        hits = len(self.URGENCY_PATTERN.findall(text))
        return self._to_score(hits * self.INTENSITY_POINTS_PER_MARKER + self.INTENSITY_BASE)

    @staticmethod
    def _to_score(raw: float) -> int:
        # round half-up, then clamp into the integer score domain
        return int(clamp_score(math.floor(min(100.0, raw) + 0.5), 0, 100))
