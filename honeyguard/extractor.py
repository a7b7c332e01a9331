"""Regex-based intelligence extraction.

Pulls phone numbers, UPI payment handles, bank/card numbers and links out
of free text. Links are flagged as phishing when they carry a shortener or
credential-bait marker and their host is not on the legitimate-domain
allowlist. Every list is de-duplicated in first-seen order and capped.

Extraction never raises: malformed or partial text just yields fewer hits.
"""

import logging
import re
from typing import Iterable, List, Optional, Sequence
from urllib.parse import urlsplit

from honeyguard.config import DEFAULT_CONFIG, EngineConfig
from honeyguard.results import CategoryMatchSet, ExtractedIntelligence

logger = logging.getLogger(__name__)


def dedupe(items: Iterable[str], cap: int) -> List[str]:
    """Order-preserving de-duplication, truncated to cap entries."""
    seen = set()
    result: List[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
        if len(result) >= cap:
            break
    return result


class IntelligenceExtractor:
    """
    Stateless extractor. Pattern tables are class attributes; the allowlist,
    denylist and caps come from the EngineConfig passed to extract().

    Extraction pipeline:
    1. Phone numbers: Indian mobile, optional +91 / 91 prefix
    2. UPI IDs: handle@provider, excluding email-looking matches
    3. Bank accounts: 9-18 digit runs + 16-digit grouped card numbers
    4. Links: http(s) URLs and scheme-less domain links
    5. Phishing links: links with a denylist marker, not allowlisted
    """

    # ================================================================
    # PHONE: 10 digits starting 6-9, optional +91/91 and separator
    # ================================================================
    PHONE_PATTERN = re.compile(r'(?<!\d)(?:\+?91[\s\-]?)?[6-9]\d{9}(?!\d)')

    # ================================================================
    # UPI: local@provider; a following .com/.in/.org means an email
    # ================================================================
    UPI_PATTERN = re.compile(r'[\w.\-]+@\w+\b(?!\.(?:com|in|org)\b)', re.IGNORECASE)

    # ================================================================
    # BANK / CARD NUMBERS
    # ================================================================
    BANK_ACCOUNT_PATTERNS = (
        re.compile(r'\b\d{9,18}\b'),                                    # bare account number
        re.compile(r'\b\d{4}[\s\-]?\d{4}[\s\-]?\d{4}[\s\-]?\d{4}\b'),   # card, grouped in 4s
    )

    # ================================================================
    # LINKS
    # ================================================================
    URL_PATTERN = re.compile(r'https?://[^\s<>"{}|\\^`\[\]]+', re.IGNORECASE)

    # Scheme-less links like bit.ly/abc or amazon-verify.suspicious.com.
    # The lookbehind keeps us out of emails, UPI handles, http URLs and query strings.
    BARE_LINK_PATTERN = re.compile(
        r'(?<![@\w./\-=?&#:%])(?:www\.)?(?:[a-z0-9\-]+\.)+'
        r'(?:com|in|org|net|co|io|ly|gl|me|cc|gd|at|info|biz|app|link'
        r'|xyz|top|online|site|click|live|club|icu|buzz)\b'
        r'(?:/[^\s<>"{}|\\^`\[\]]*)?',
        re.IGNORECASE,
    )

    TRAILING_PUNCTUATION = re.compile(r'[.,;:!?\)\]>\'"]+$')

    def extract(
        self,
        text: str,
        config: EngineConfig = DEFAULT_CONFIG,
        matches: Optional[CategoryMatchSet] = None,
    ) -> ExtractedIntelligence:
        """Run every extractor over text and return the bounded lists.

        `matches` feeds suspiciousKeywords; without it that list is empty.
        """
        if not text or not text.strip():
            return ExtractedIntelligence(
                suspiciousKeywords=tuple(self.suspicious_keywords(matches, config)))

        caps = config.caps
        links = self.extract_links(text)

        return ExtractedIntelligence(
            bankAccounts=tuple(dedupe(self.extract_bank_accounts(text), caps["bankAccounts"])),
            upiIds=tuple(dedupe(self.extract_upi_ids(text), caps["upiIds"])),
            phishingLinks=tuple(dedupe(
                (link for link in links if self.is_phishing(link, config)),
                caps["phishingLinks"],
            )),
            phoneNumbers=tuple(dedupe(self.extract_phones(text), caps["phoneNumbers"])),
            suspiciousKeywords=tuple(self.suspicious_keywords(matches, config)),
            links=tuple(dedupe(links, caps["links"])),
        )

    def extract_phones(self, text: str) -> List[str]:
        return [m.group(0) for m in self.PHONE_PATTERN.finditer(text)]

    def extract_upi_ids(self, text: str) -> List[str]:
        return [m.group(0) for m in self.UPI_PATTERN.finditer(text)]

    def extract_bank_accounts(self, text: str) -> List[str]:
        """Pool both number families, ordered by position in the text."""
        found = []
        for pattern in self.BANK_ACCOUNT_PATTERNS:
            found.extend((m.start(), m.group(0)) for m in pattern.finditer(text))
        found.sort(key=lambda pair: pair[0])
        return [value for _, value in found]

    def extract_links(self, text: str) -> List[str]:
        found = []
        for pattern in (self.URL_PATTERN, self.BARE_LINK_PATTERN):
            for m in pattern.finditer(text):
                cleaned = self.TRAILING_PUNCTUATION.sub('', m.group(0))
                if len(cleaned) > 5:
                    found.append((m.start(), cleaned))
        found.sort(key=lambda pair: pair[0])
        return [value for _, value in found]

    def is_phishing(self, link: str, config: EngineConfig = DEFAULT_CONFIG) -> bool:
        """Denylist marker present and host not allowlisted."""
        lowered = link.lower()
        if not any(marker in lowered for marker in config.phishing_markers):
            return False
        return not self.is_legitimate(lowered, config.legitimate_domains)

    @staticmethod
    def host_of(link: str) -> str:
        target = link if "://" in link else f"http://{link}"
        try:
            host = urlsplit(target).hostname or ""
        except ValueError:
            return ""
        return host.lower().rstrip(".")

    def is_legitimate(self, link: str, domains: Sequence[str]) -> bool:
        """Host equals an allowlisted domain or is one of its subdomains."""
        host = self.host_of(link)
        if not host:
            return False
        if host.startswith("www."):
            host = host[4:]
        return any(host == d or host.endswith("." + d) for d in domains)

    @staticmethod
    def suspicious_keywords(
        matches: Optional[CategoryMatchSet],
        config: EngineConfig = DEFAULT_CONFIG,
    ) -> List[str]:
        if matches is None:
            return []
        merged = [
            phrase
            for name in config.keyword_sources
            for phrase in matches.get(name)
        ]
        return dedupe(merged, config.caps["suspiciousKeywords"])


# Module-level singleton
extractor = IntelligenceExtractor()


def extract(text: str, config: EngineConfig = DEFAULT_CONFIG,
            matches: Optional[CategoryMatchSet] = None) -> ExtractedIntelligence:
    return extractor.extract(text, config, matches)
