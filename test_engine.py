"""End-to-end checks of the analysis pipeline on realistic messages."""

import pytest

from honeyguard.config import FINANCIAL, DEFAULT_CONFIG, EngineConfig, KeywordCategory
from honeyguard.engine import ScamAnalysisEngine, analyze, coerce_text


SBI_OTP_SCAM = (
    "URGENT! Your SBI account is blocked. Share your OTP immediately to avoid "
    "suspension. Call +919876543210"
)


def test_sbi_otp_scam_is_high_risk():
    result = analyze(SBI_OTP_SCAM)

    assert result.matches.get("urgency") == ("urgent", "immediately")
    assert result.matches.get("impersonation") == ("sbi",)
    assert result.matches.get("dataRequest") == ("share otp",)
    assert result.matches.get("threat") == ("blocked", "suspension")
    assert result.intelligence.phoneNumbers == ("+919876543210",)
    assert result.score >= 70
    assert result.risk_level == "High"
    assert result.is_scam is True


def test_dinner_plans_are_harmless():
    result = analyze("Hi, just checking in about dinner plans tonight.")

    assert result.matches.total == 0
    assert result.intelligence.is_empty()
    assert result.score == 0
    assert result.risk_level == "Minimal"
    assert result.is_scam is False


def test_two_family_phone_numbers_are_not_a_scam():
    result = analyze("Call mom at 9876543210 or dad at 9123456780 after dinner")

    assert result.matches.total == 0
    assert result.intelligence.phoneNumbers == ("9876543210", "9123456780")
    # the same digits land in bankAccounts but add nothing to the score
    assert result.intelligence.bankAccounts == ("9876543210", "9123456780")
    assert result.score == 20
    assert result.risk_level == "Low"
    assert result.is_scam is False


def test_otp_and_pin_are_financial_triggers():
    result = analyze("Send the OTP and your ATM pin")

    assert result.matches.get(FINANCIAL) == ("otp", "pin")
    assert result.score == 20
    assert result.risk_level == "Low"
    assert result.is_scam is False


def test_upi_handle_and_financial_weight():
    text = "pay to scammer@upi now"
    result = analyze(text)
    assert "scammer@upi" in result.intelligence.upiIds
    assert FINANCIAL in result.matches.names and result.matches.count(FINANCIAL) == 1

    no_financial = DEFAULT_CONFIG.replace(categories=tuple(
        KeywordCategory(c.name, c.phrases, 0 if c.name == FINANCIAL else c.weight)
        for c in DEFAULT_CONFIG.categories
    ))
    baseline = analyze(text, no_financial)
    assert result.score - baseline.score == DEFAULT_CONFIG.category(FINANCIAL).weight


def test_shortened_verify_link_is_phishing():
    result = analyze("Click http://bit.ly/verify-now to keep your account")
    assert result.intelligence.links == ("http://bit.ly/verify-now",)
    assert result.intelligence.phishingLinks == ("http://bit.ly/verify-now",)


def test_phone_numbers_capped_in_first_seen_order():
    numbers = ["9876543210", "8765432109", "7654321098", "6543210987", "9123456780", "8123456790"]
    result = analyze("Call any of these: " + ", ".join(numbers))
    assert result.intelligence.phoneNumbers == tuple(numbers[:5])


def test_repeated_phone_is_deduplicated():
    result = analyze(" ".join(["call 9876543210"] * 8))
    assert result.intelligence.phoneNumbers == ("9876543210",)


def test_allowlisted_domain_not_flagged():
    result = analyze("Track at amazon.in/verify or amazon-verify.suspicious.com today")
    assert "amazon.in/verify" in result.intelligence.links
    assert result.intelligence.phishingLinks == ("amazon-verify.suspicious.com",)


def test_empty_input():
    result = analyze("")
    assert result.is_scam is False
    assert result.score == 0
    assert result.intelligence.is_empty()
    assert result.intelligence.suspiciousKeywords == ()


@pytest.mark.parametrize("value", [None, ["urgent"], {"text": "urgent"}, True, object()])
def test_non_text_input_behaves_like_empty(value):
    assert analyze(value) == analyze("")


def test_coerce_text():
    assert coerce_text("abc") == "abc"
    assert coerce_text(b"share otp") == "share otp"
    assert coerce_text(9876543210) == "9876543210"
    assert coerce_text(False) is None
    assert coerce_text(None) is None


def test_deterministic():
    assert analyze(SBI_OTP_SCAM) == analyze(SBI_OTP_SCAM)
    assert analyze(SBI_OTP_SCAM).to_dict() == analyze(SBI_OTP_SCAM).to_dict()


@pytest.mark.parametrize("text", [
    "",
    SBI_OTP_SCAM * 20,
    "urgent " * 500,
    "Call 9876543210 pay winner@paytm http://bit.ly/x arrest police cbi rbi " * 10,
])
def test_score_bounds(text):
    score = analyze(text).score
    assert 0 <= score <= 100


def test_more_high_weight_matches_never_lower_the_score():
    texts = [
        "Hello there",
        "Please share otp",
        "Please share otp and password",
        "Please share otp, password and aadhaar",
        "Please share otp, password, aadhaar and pan card",
    ]
    scores = [analyze(t).score for t in texts]
    assert scores == sorted(scores)
    assert scores[-1] > scores[0]


def test_locale_and_channel_only_reach_the_notes():
    engine = ScamAnalysisEngine()
    plain = engine.analyze(SBI_OTP_SCAM)
    tagged = engine.analyze(SBI_OTP_SCAM, locale="IN", channel="SMS")
    assert plain.assessment == tagged.assessment
    assert tagged.notes.endswith("Channel: SMS. Locale: IN.")


def test_recommendations_follow_verdict():
    assert "Report to cybercrime.gov.in or call 1930" in analyze(SBI_OTP_SCAM).recommendations
    assert analyze("see you at lunch").recommendations[0] == "Message appears relatively safe"


def test_notes_summarise_counts():
    notes = analyze(SBI_OTP_SCAM).notes
    assert notes.startswith(f"Analyzed {len(SBI_OTP_SCAM)} characters. Found 7 suspicious patterns.")
    assert "Urgency(2)" in notes and "Financial(1)" in notes and "Threats(2)" in notes
    assert "1 phone numbers" in notes
    assert notes.endswith("0 links, 1 bank accounts.")


def test_custom_config_engine():
    config = EngineConfig(
        categories=(KeywordCategory("crypto", ("bitcoin", "wallet seed"), 50),),
        keyword_sources=("crypto",),
    )
    result = ScamAnalysisEngine(config).analyze("Send bitcoin and your wallet seed")
    assert result.matches.get("crypto") == ("bitcoin", "wallet seed")
    assert result.score == 100
    assert result.intelligence.suspiciousKeywords == ("bitcoin", "wallet seed")
    assert "crypto(2)" in result.notes
