"""
HoneyGuard — Scam Honeypot Package
==================================

Core analysis pipeline (pure, deterministic):
    - config.py      : EngineConfig, keyword tables, weights, caps, allowlist
    - normalizer.py  : Lower-casing, whitespace and filler-word views of text
    - matcher.py     : Per-category keyword phrase matching
    - extractor.py   : Regex-based intelligence extraction (phones, UPI, accounts, links)
    - scorer.py      : Weighted risk score, level, verdict and confidence
    - narrative.py   : Recommendations and analysis notes
    - engine.py      : ScamAnalysisEngine tying the stages together
    - results.py     : Immutable result value objects

Service layer:
    - main.py        : FastAPI application entry point
    - auth.py        : API key authentication
    - models.py      : Pydantic request/response schemas
    - memory.py      : SessionStore interface and thread-safe in-memory store
    - callback.py    : Final-result payload builder and sender with retry
    - replies.py     : Staged honeypot victim replies
    - providers.py   : Speech / OCR / translation providers (Azure or mock)
    - settings.py    : Environment configuration
"""

__version__ = "1.0.0"
