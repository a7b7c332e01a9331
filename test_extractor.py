"""Intelligence extraction: phones, UPI handles, account numbers, links."""

from honeyguard.config import DEFAULT_CONFIG
from honeyguard.extractor import IntelligenceExtractor, dedupe, extractor
from honeyguard.matcher import match


def test_phone_formats():
    text = "Call +91 9876543210 or 91-8765432109 or 7654321098, not 5123456789"
    assert extractor.extract_phones(text) == ["+91 9876543210", "91-8765432109", "7654321098"]


def test_phone_not_taken_from_longer_digit_run():
    assert extractor.extract_phones("Ref 1234987654321099") == []


def test_upi_handles_but_not_emails():
    text = "Send to winner@paytm or help.desk@ybl, mail support@gmail.com"
    assert extractor.extract_upi_ids(text) == ["winner@paytm", "help.desk@ybl"]


def test_bank_accounts_and_cards():
    text = "Account 12345678901234, card 4111 1111 1111 1111"
    assert extractor.extract_bank_accounts(text) == ["12345678901234", "4111 1111 1111 1111"]


def test_links_strip_trailing_punctuation():
    assert extractor.extract_links("Visit http://bit.ly/abc.") == ["http://bit.ly/abc"]


def test_bare_links_skip_emails():
    assert extractor.extract_links("mail help@secure-login.com for details") == []
    assert extractor.extract_links("go to kyc-bank.scam.com now") == ["kyc-bank.scam.com"]


def test_lookalike_host_is_not_legitimate():
    assert extractor.is_phishing("http://amazon.in.verify-login.xyz/a") is True
    assert extractor.is_phishing("https://www.amazon.in/verify") is False
    assert extractor.is_phishing("https://pay.google.com/login") is False


def test_link_without_marker_is_not_phishing():
    assert extractor.is_phishing("http://example.org/home") is False


def test_host_of():
    assert IntelligenceExtractor.host_of("bit.ly/abc") == "bit.ly"
    assert IntelligenceExtractor.host_of("HTTPS://Secure.Example.COM/x") == "secure.example.com"


def test_suspicious_keywords_come_from_source_categories():
    text = "URGENT police case, send payment via upi, share otp"
    matches = match(text, DEFAULT_CONFIG.categories)
    keywords = extractor.suspicious_keywords(matches, DEFAULT_CONFIG)
    assert keywords == ["urgent", "send payment", "upi", "otp", "police case"]
    # dataRequest and impersonation phrases are scored but not listed
    assert "share otp" not in keywords and "police" not in keywords


def test_caps_apply_per_list():
    handles = " ".join(f"user{i}@okaxis" for i in range(8))
    intel = extractor.extract(handles)
    assert len(intel.upiIds) == DEFAULT_CONFIG.caps["upiIds"]
    assert intel.upiIds[0] == "user0@okaxis"


def test_dedupe():
    assert dedupe(["a", "b", "a", "c", "d"], 3) == ["a", "b", "c"]
    assert dedupe([], 5) == []


def test_blank_text():
    intel = extractor.extract("   \n ")
    assert intel.is_empty()


def test_empty_allowlist_disables_suppression():
    config = DEFAULT_CONFIG.replace(legitimate_domains=())
    assert extractor.is_phishing("https://www.amazon.in/verify", config) is True
