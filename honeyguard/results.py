"""Immutable value objects produced by the analysis engine.

Every object here is created fresh per analyze() call and never mutated.
`to_dict()` methods emit the camelCase names used by the HTTP responses
and the evaluation callback.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class AnalysisInput:
    """Text to analyse plus informational metadata (never scored)."""
    text: str
    locale: Optional[str] = None
    channel: Optional[str] = None


@dataclass(frozen=True)
class CategoryMatchSet:
    """Matched phrases grouped by category, in table order."""
    matches: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()

    def get(self, name: str) -> Tuple[str, ...]:
        for category, phrases in self.matches:
            if category == name:
                return phrases
        return ()

    def count(self, name: str) -> int:
        return len(self.get(name))

    @property
    def total(self) -> int:
        return sum(len(phrases) for _, phrases in self.matches)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(category for category, _ in self.matches)

    def to_dict(self) -> Dict[str, List[str]]:
        return {category: list(phrases) for category, phrases in self.matches}

    def patterns(self) -> List[str]:
        """Display lines like 'urgency: urgent, immediately' for non-empty categories."""
        return [
            f"{category}: {', '.join(phrases)}"
            for category, phrases in self.matches
            if phrases
        ]


@dataclass(frozen=True)
class ExtractedIntelligence:
    bankAccounts: Tuple[str, ...] = ()
    upiIds: Tuple[str, ...] = ()
    phishingLinks: Tuple[str, ...] = ()
    phoneNumbers: Tuple[str, ...] = ()
    suspiciousKeywords: Tuple[str, ...] = ()
    links: Tuple[str, ...] = ()

    # The five lists in the external callback contract, in contract order
    CONTRACT_FIELDS = (
        "bankAccounts", "upiIds", "phishingLinks", "phoneNumbers", "suspiciousKeywords",
    )

    def to_dict(self) -> Dict[str, List[str]]:
        return {name: list(getattr(self, name)) for name in self.CONTRACT_FIELDS}

    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in self.CONTRACT_FIELDS + ("links",))


@dataclass(frozen=True)
class RiskAssessment:
    score: int = 0
    risk_level: str = "Minimal"
    is_scam: bool = False
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, object]:
        return {
            "scamDetected": self.is_scam,
            "confidence": self.confidence,
            "riskLevel": self.risk_level,
            "riskScore": self.score,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Aggregate engine output; the only type analyze() returns."""
    matches: CategoryMatchSet = field(default_factory=CategoryMatchSet)
    intelligence: ExtractedIntelligence = field(default_factory=ExtractedIntelligence)
    assessment: RiskAssessment = field(default_factory=RiskAssessment)
    recommendations: Tuple[str, ...] = ()
    notes: str = ""

    @property
    def is_scam(self) -> bool:
        return self.assessment.is_scam

    @property
    def score(self) -> int:
        return self.assessment.score

    @property
    def risk_level(self) -> str:
        return self.assessment.risk_level

    @property
    def confidence(self) -> float:
        return self.assessment.confidence

    @property
    def patterns(self) -> List[str]:
        return self.matches.patterns()

    def to_dict(self) -> Dict[str, object]:
        return {
            "analysis": self.assessment.to_dict(),
            "matches": self.matches.to_dict(),
            "patterns": self.patterns,
            "extractedIntelligence": self.intelligence.to_dict(),
            "links": list(self.intelligence.links),
            "recommendations": list(self.recommendations),
            "agentNotes": self.notes,
        }
