"""Canned recommendations and the one-line analysis notes."""

from typing import Optional, Tuple

from honeyguard.config import DATA_REQUEST, FINANCIAL, IMPERSONATION, THREAT, URGENCY
from honeyguard.results import (
    AnalysisInput,
    CategoryMatchSet,
    ExtractedIntelligence,
    RiskAssessment,
)

SCAM_RECOMMENDATIONS: Tuple[str, ...] = (
    "Do NOT share OTP, PIN, or passwords",
    "Do NOT transfer money to unknown accounts",
    "Verify caller identity through official channels",
    "Report to cybercrime.gov.in or call 1930",
)

SAFE_RECOMMENDATIONS: Tuple[str, ...] = (
    "Message appears relatively safe",
    "Always verify unexpected requests independently",
)

# (category name, label used in notes)
NOTE_LABELS: Tuple[Tuple[str, str], ...] = (
    (URGENCY, "Urgency"),
    (FINANCIAL, "Financial"),
    (IMPERSONATION, "Impersonation"),
    (DATA_REQUEST, "Data Requests"),
    (THREAT, "Threats"),
)


def recommendations_for(assessment: RiskAssessment) -> Tuple[str, ...]:
    return SCAM_RECOMMENDATIONS if assessment.is_scam else SAFE_RECOMMENDATIONS


def build_notes(
    matches: CategoryMatchSet,
    intelligence: ExtractedIntelligence,
    analysis_input: Optional[AnalysisInput] = None,
) -> str:
    """Summarise input length, match counts and intelligence counts.

    Categories outside the default table are appended with their raw name
    so custom configurations still show up in the notes.
    """
    text_length = len(analysis_input.text) if analysis_input else 0
    labelled = dict(NOTE_LABELS)
    categories = ", ".join(
        f"{labelled.get(name, name)}({matches.count(name)})" for name in matches.names
    )
    notes = (
        f"Analyzed {text_length} characters. Found {matches.total} suspicious patterns. "
        f"Categories: {categories}. Intelligence extracted: "
        f"{len(intelligence.phoneNumbers)} phone numbers, "
        f"{len(intelligence.upiIds)} UPI IDs, "
        f"{len(intelligence.phishingLinks)} links, "
        f"{len(intelligence.bankAccounts)} bank accounts."
    )
    if analysis_input and analysis_input.channel:
        notes += f" Channel: {analysis_input.channel}."
    if analysis_input and analysis_input.locale:
        notes += f" Locale: {analysis_input.locale}."
    return notes


def narrate(
    assessment: RiskAssessment,
    matches: CategoryMatchSet,
    intelligence: ExtractedIntelligence,
    analysis_input: Optional[AnalysisInput] = None,
) -> Tuple[Tuple[str, ...], str]:
    """Return (recommendations, notes) for one analysis."""
    return recommendations_for(assessment), build_notes(matches, intelligence, analysis_input)
