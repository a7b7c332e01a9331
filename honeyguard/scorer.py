"""
Weighted risk scoring.

Combines per-category match counts and extracted-intelligence counts with
the weights in EngineConfig into a bounded score, then maps it to a risk
level, a scam verdict and a confidence value.

Scoring mechanics:
    1. Each matched phrase contributes its category weight
    2. Each extracted item in a weighted list (links, UPI ids, phones) adds its weight
    3. The sum is clamped to [0, 100]
    4. Score >= scam_threshold (40) means scam
    5. Confidence = min(cap, base + score * slope)
"""

import logging

from honeyguard.config import DEFAULT_CONFIG, MINIMAL_RISK, EngineConfig
from honeyguard.results import CategoryMatchSet, ExtractedIntelligence, RiskAssessment

logger = logging.getLogger(__name__)

MAX_SCORE = 100
MIN_SCORE = 0


class RiskScorer:
    """Stateless scorer; every input comes through score()."""

    def score(
        self,
        matches: CategoryMatchSet,
        intelligence: ExtractedIntelligence,
        config: EngineConfig = DEFAULT_CONFIG,
    ) -> RiskAssessment:
        raw = self.raw_score(matches, intelligence, config)
        score = int(round(min(MAX_SCORE, max(MIN_SCORE, raw))))

        assessment = RiskAssessment(
            score=score,
            risk_level=self.risk_level(score, config),
            is_scam=score >= config.scam_threshold,
            confidence=self.confidence(score, config),
        )
        logger.debug(f"raw={raw} score={score} level={assessment.risk_level}")
        return assessment

    @staticmethod
    def raw_score(
        matches: CategoryMatchSet,
        intelligence: ExtractedIntelligence,
        config: EngineConfig = DEFAULT_CONFIG,
    ) -> float:
        """Unclamped weighted sum."""
        total = 0.0
        for category in config.categories:
            total += matches.count(category.name) * category.weight
        for field_name, weight in config.intel_weights.items():
            total += len(getattr(intelligence, field_name, ())) * weight
        return total

    @staticmethod
    def risk_level(score: float, config: EngineConfig = DEFAULT_CONFIG) -> str:
        for lower_bound, label in config.risk_levels:
            if score >= lower_bound:
                return label
        return MINIMAL_RISK

    @staticmethod
    def confidence(score: float, config: EngineConfig = DEFAULT_CONFIG) -> float:
        value = config.confidence_base + score * config.confidence_slope
        return round(min(config.confidence_cap, value), 2)


# Module-level singleton
scorer = RiskScorer()


def score(matches: CategoryMatchSet, intelligence: ExtractedIntelligence,
          config: EngineConfig = DEFAULT_CONFIG) -> RiskAssessment:
    return scorer.score(matches, intelligence, config)
