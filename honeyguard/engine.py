"""
engine.py — Scam Analysis Pipeline
===================================

Normalizer → Matcher → Extractor → Scorer → Narrative, run synchronously
on one block of text. The engine keeps only its immutable EngineConfig,
so one instance can serve concurrent requests and two calls with the same
text always return equal results.

Usage:
    from honeyguard.engine import analyze
    result = analyze("URGENT! Share your OTP now")
    result.assessment.is_scam
"""

import logging
from typing import Any, Optional

from honeyguard.config import DEFAULT_CONFIG, EngineConfig
from honeyguard.extractor import IntelligenceExtractor
from honeyguard.matcher import match
from honeyguard.narrative import narrate
from honeyguard.results import AnalysisInput, AnalysisResult
from honeyguard.scorer import RiskScorer

logger = logging.getLogger(__name__)


def coerce_text(value: Any) -> Optional[str]:
    """Best-effort conversion of a payload value to text; None if impossible."""
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    return None


class ScamAnalysisEngine:
    """Configuration-driven analysis engine."""

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self._config = config or DEFAULT_CONFIG
        self._extractor = IntelligenceExtractor()
        self._scorer = RiskScorer()

    @property
    def config(self) -> EngineConfig:
        return self._config

    def analyze(
        self,
        text: Any,
        locale: Optional[str] = None,
        channel: Optional[str] = None,
    ) -> AnalysisResult:
        """Analyse one message. Never raises on odd input.

        Non-text input yields the same result as an empty string: no
        matches, no intelligence, score 0, not a scam.
        """
        coerced = coerce_text(text)
        if coerced is None:
            logger.debug(f"Non-text input of type {type(text).__name__}; returning empty result")
            coerced = ""
        return self.run(AnalysisInput(text=coerced, locale=locale, channel=channel))

    def run(self, analysis_input: AnalysisInput) -> AnalysisResult:
        config = self._config
        matches = match(analysis_input.text, config.categories)
        intelligence = self._extractor.extract(analysis_input.text, config, matches)
        assessment = self._scorer.score(matches, intelligence, config)
        recommendations, notes = narrate(assessment, matches, intelligence, analysis_input)

        return AnalysisResult(
            matches=matches,
            intelligence=intelligence,
            assessment=assessment,
            recommendations=recommendations,
            notes=notes,
        )


# Module-level singleton
engine = ScamAnalysisEngine()


def analyze(text: Any, config: Optional[EngineConfig] = None) -> AnalysisResult:
    """Analyse text with the default engine, or a one-off engine for config."""
    if config is None or config is DEFAULT_CONFIG:
        return engine.analyze(text)
    return ScamAnalysisEngine(config).analyze(text)
