"""
config.py — Engine Configuration Tables
========================================

Keyword categories, scoring weights, thresholds and the phishing
allowlist/denylist used by the analysis engine. Everything here is
immutable and validated once at construction time; a malformed table
raises ConfigurationError instead of failing per call.

Weights:
    Per matched phrase: urgency 8, financial 10, impersonation 12,
    dataRequest 15, threat 12. Per extracted item: phishing link 15,
    UPI id 8, phone number 10. Bank account numbers are extracted but
    carry no weight, since every bare phone number also matches them.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Tuple


class ConfigurationError(ValueError):
    """Raised when an EngineConfig is malformed."""


@dataclass(frozen=True)
class KeywordCategory:
    """A named list of trigger phrases with a per-match weight."""
    name: str
    phrases: Tuple[str, ...]
    weight: float = 0.0


# Category names, in display order
URGENCY = "urgency"
FINANCIAL = "financial"
IMPERSONATION = "impersonation"
DATA_REQUEST = "dataRequest"
THREAT = "threat"

# ═══════════════════════════════════════════════════════════════════════
# KEYWORD TABLES: lowercase substring triggers (Hindi included)
# ═══════════════════════════════════════════════════════════════════════

URGENCY_KEYWORDS = (
    "urgent",
    "immediately",
    "act now",
    "expires",
    "limited time",
    "within 24 hours",
    "last chance",
    "don't delay",
    "hurry",
    "तुरंत",
    "जल्दी",
    "अभी",
)

FINANCIAL_KEYWORDS = (
    "transfer money",
    "send payment",
    "bank account",
    "upi",
    "paytm",
    "google pay",
    "phonepe",
    "credit card",
    "debit card",
    "cvv",
    "otp",
    "pin",
    "refund",
    "prize",
    "lottery",
    "winner",
    "cash",
    "rupees",
    "rs.",
    "₹",
    "lakh",
    "crore",
)

IMPERSONATION_KEYWORDS = (
    "bank manager",
    "rbi",
    "income tax",
    "police",
    "cbi",
    "customs",
    "amazon",
    "flipkart",
    "microsoft",
    "google",
    "apple",
    "sbi",
    "hdfc",
    "icici",
    "axis",
    "customer care",
    "executive",
    "officer",
)

DATA_REQUEST_KEYWORDS = (
    "share otp",
    "tell me otp",
    "provide otp",
    "verify account",
    "confirm details",
    "update kyc",
    "aadhaar",
    "pan card",
    "password",
    "enter pin",
    "card number",
    "cvv number",
    "expiry date",
)

THREAT_KEYWORDS = (
    "arrest",
    "legal action",
    "police case",
    "fir",
    "court",
    "blocked",
    "suspended",
    "suspension",
    "terminated",
    "penalty",
    "fine",
    "warrant",
    "jail",
    "prosecution",
)

DEFAULT_CATEGORIES: Tuple[KeywordCategory, ...] = (
    KeywordCategory(URGENCY, URGENCY_KEYWORDS, 8),
    KeywordCategory(FINANCIAL, FINANCIAL_KEYWORDS, 10),
    KeywordCategory(IMPERSONATION, IMPERSONATION_KEYWORDS, 12),
    KeywordCategory(DATA_REQUEST, DATA_REQUEST_KEYWORDS, 15),
    KeywordCategory(THREAT, THREAT_KEYWORDS, 12),
)

# Categories merged into suspiciousKeywords
KEYWORD_SOURCE_CATEGORIES: Tuple[str, ...] = (URGENCY, FINANCIAL, THREAT)

# ═══════════════════════════════════════════════════════════════════════
# EXTRACTION: link markers, legitimate domains, caps and weights
# ═══════════════════════════════════════════════════════════════════════

PHISHING_MARKERS: Tuple[str, ...] = (
    "bit.ly", "tinyurl", "shorturl", "t.co", "goo.gl",
    "click", "verify", "secure", "update", "login",
)

LEGITIMATE_DOMAINS: Tuple[str, ...] = (
    # E-commerce and retail
    "lenskart.com", "lenskart.in", "amazon.com", "amazon.in",
    "flipkart.com", "myntra.com", "nykaa.com", "ajio.com",
    "tatacliq.com", "relianceretail.com", "jiomart.com",
    "bigbasket.com", "grofers.com", "blinkit.com",
    # Social and platforms
    "whatsapp.com", "wa.me", "google.com", "google.co.in",
    "facebook.com", "fb.com", "instagram.com", "twitter.com", "x.com",
    "youtube.com", "youtu.be", "linkedin.com", "microsoft.com", "apple.com",
    # Payments
    "paytm.com", "phonepe.com", "gpay.com", "pay.google.com",
    "razorpay.com", "cashfree.com",
    # Banks
    "hdfc.com", "hdfcbank.com", "sbi.co.in", "onlinesbi.com",
    "icicibank.com", "axisbank.com", "kotak.com",
    # Travel and food
    "zomato.com", "swiggy.com", "ola.com", "olacabs.com", "uber.com",
    "makemytrip.com", "goibibo.com", "cleartrip.com", "irctc.co.in",
    "redbus.in", "bookmyshow.com",
    # Government
    "gov.in", "nic.in",
    # Brokers
    "zerodha.com", "groww.in", "upstox.com",
)

DEFAULT_CAPS: Dict[str, int] = {
    "bankAccounts": 5,
    "upiIds": 5,
    "phoneNumbers": 5,
    "phishingLinks": 5,
    "links": 5,
    "suspiciousKeywords": 10,
}

DEFAULT_INTEL_WEIGHTS: Dict[str, float] = {
    "phishingLinks": 15,
    "upiIds": 8,
    "phoneNumbers": 10,
}

# Descending (lower bound, label) pairs; anything below the last is Minimal
DEFAULT_RISK_LEVELS: Tuple[Tuple[float, str], ...] = (
    (70, "High"),
    (40, "Medium"),
    (20, "Low"),
)
MINIMAL_RISK = "Minimal"


@dataclass(frozen=True)
class EngineConfig:
    """All tunables of the analysis engine in one immutable object.

    Construct a variant with ``EngineConfig(...)`` or ``config.replace(...)``;
    validation runs in ``__post_init__`` so a bad table fails at load time.
    """
    categories: Tuple[KeywordCategory, ...] = DEFAULT_CATEGORIES
    keyword_sources: Tuple[str, ...] = KEYWORD_SOURCE_CATEGORIES
    phishing_markers: Tuple[str, ...] = PHISHING_MARKERS
    legitimate_domains: Tuple[str, ...] = LEGITIMATE_DOMAINS
    caps: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_CAPS))
    intel_weights: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_INTEL_WEIGHTS))
    risk_levels: Tuple[Tuple[float, str], ...] = DEFAULT_RISK_LEVELS
    scam_threshold: float = 40.0
    confidence_base: float = 50.0
    confidence_slope: float = 0.45
    confidence_cap: float = 95.0

    def __post_init__(self) -> None:
        # Normalise list inputs to tuples and lowercase the link tables
        object.__setattr__(self, "categories", tuple(self.categories))
        object.__setattr__(self, "keyword_sources", tuple(self.keyword_sources))
        object.__setattr__(self, "phishing_markers",
                           tuple(m.lower() for m in self.phishing_markers))
        object.__setattr__(self, "legitimate_domains",
                           tuple(d.lower().strip(".") for d in self.legitimate_domains))
        object.__setattr__(self, "caps", {**DEFAULT_CAPS, **dict(self.caps)})
        object.__setattr__(self, "intel_weights",
                           {**DEFAULT_INTEL_WEIGHTS, **dict(self.intel_weights)})
        object.__setattr__(self, "risk_levels",
                           tuple((float(b), str(label)) for b, label in self.risk_levels))
        self._validate()

    def _validate(self) -> None:
        seen = set()
        for category in self.categories:
            if not isinstance(category, KeywordCategory):
                raise ConfigurationError(
                    f"Category entries must be KeywordCategory, got {type(category).__name__}")
            if not category.name:
                raise ConfigurationError("Category name must not be empty")
            if category.name in seen:
                raise ConfigurationError(f"Duplicate category name: {category.name!r}")
            seen.add(category.name)
            if category.weight < 0:
                raise ConfigurationError(f"Negative weight for category {category.name!r}")
            for phrase in category.phrases:
                if not isinstance(phrase, str) or not phrase.strip():
                    raise ConfigurationError(
                        f"Category {category.name!r} has an empty or non-string phrase")

        unknown = [name for name in self.keyword_sources if name not in seen]
        if unknown:
            raise ConfigurationError(f"Unknown keyword source categories: {unknown}")

        for key, cap in self.caps.items():
            if not isinstance(cap, int) or cap <= 0:
                raise ConfigurationError(f"Cap for {key!r} must be a positive int")
        for key, weight in self.intel_weights.items():
            if weight < 0:
                raise ConfigurationError(f"Negative intelligence weight for {key!r}")

        if not 0 <= self.scam_threshold <= 100:
            raise ConfigurationError("scam_threshold must be within [0, 100]")

        bounds = [bound for bound, _ in self.risk_levels]
        if any(b < 0 or b > 100 for b in bounds):
            raise ConfigurationError("Risk level bounds must be within [0, 100]")
        if any(a <= b for a, b in zip(bounds, bounds[1:])):
            raise ConfigurationError("Risk level bounds must be strictly descending")

        if self.confidence_slope < 0 or self.confidence_cap < self.confidence_base:
            raise ConfigurationError(
                "confidence_slope must be >= 0 and confidence_cap >= confidence_base")

    def category(self, name: str) -> KeywordCategory:
        for category in self.categories:
            if category.name == name:
                return category
        raise KeyError(name)

    @property
    def category_names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.categories)

    def replace(self, **changes) -> "EngineConfig":
        """Return a copy with the given fields overridden (re-validated)."""
        return replace(self, **changes)


DEFAULT_CONFIG = EngineConfig()
