"""
providers.py — Cognitive Service Providers
==========================================

Speech-to-text, OCR and language detection/translation sit outside the
analysis engine; they only turn audio or images into plain text. Two
implementations share one interface:

    - AzureProvider : Azure Speech / Vision Read / Translator REST APIs
    - MockProvider  : canned scam samples for demo mode (no keys)

build_provider() picks one at startup based on which keys are set. An
AzureProvider call that fails logs the error and returns the mock result
for that call.
"""

import logging
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import requests

from honeyguard.settings import Settings

logger = logging.getLogger(__name__)

TRANSLATOR_ENDPOINT = "https://api.cognitive.microsofttranslator.com"
READ_POLL_ATTEMPTS = 10
READ_POLL_DELAY = 1.0
REQUEST_TIMEOUT = 30


@dataclass(frozen=True)
class Transcription:
    text: str
    confidence: float
    language: str
    duration_ms: Optional[float] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class OcrResult:
    text: str
    confidence: float
    note: Optional[str] = None

    @property
    def lines(self):
        return self.text.splitlines()


@dataclass(frozen=True)
class DetectedLanguage:
    language: str
    confidence: float


@dataclass(frozen=True)
class Translation:
    text: str
    source_language: str
    confidence: float
    note: Optional[str] = None


class ProviderError(RuntimeError):
    """A cognitive service call failed."""


class CognitiveProvider(ABC):
    name = "base"

    @abstractmethod
    def transcribe(self, audio: bytes, language: str = "en-IN") -> Transcription:
        ...

    @abstractmethod
    def extract_text(self, image: bytes) -> OcrResult:
        ...

    @abstractmethod
    def detect_language(self, text: str) -> DetectedLanguage:
        ...

    @abstractmethod
    def translate(self, text: str, target: str = "en",
                  source: Optional[str] = None) -> Translation:
        ...

    def to_english(self, text: str) -> str:
        """Translate text to English when it is confidently non-English."""
        if not text:
            return text
        detected = self.detect_language(text)
        if detected.language != "en" and detected.confidence > 0.7:
            return self.translate(text, "en", detected.language).text
        return text


class MockProvider(CognitiveProvider):
    """Demo-mode provider. Sample choice depends only on the input size."""

    name = "mock"

    TRANSCRIPTIONS = (
        "Dear customer, your SBI account has been blocked due to suspicious activity. "
        "Please call this number immediately to verify your identity and unblock your account.",
        "Congratulations! You have won 25 lakh rupees in our lottery. "
        "Please share your UPI ID and bank details to receive the prize money.",
        "This is an urgent message from your bank. Your KYC is pending. Click the link to "
        "update your details immediately or your account will be suspended.",
        "Hello sir, I am calling from customer care. Your account shows some pending "
        "transactions. Please share your OTP to verify.",
    )

    OCR_TEXTS = (
        "Dear Customer, Your SBI account has been blocked. Click here to verify: "
        "bit.ly/sbi-verify. Call: +91-9876543210",
        "URGENT: You have won Rs. 25,00,000 in lottery. Send your UPI ID winner@paytm "
        "to claim prize immediately.",
        "Your Amazon order #123456 is on hold. Verify payment: amazon-verify.suspicious.com "
        "Password: needed",
        "KYC Update Required - Your bank account will be suspended. Update now: kyc-bank.scam.com",
        "RBI Alert: Your account showing suspicious transactions. Share OTP 4532 to verify. "
        "Call: 9988776655",
    )

    SCRIPT_RANGES = (
        ("hi", re.compile(r'[\u0900-\u097F]')),
        ("ta", re.compile(r'[\u0B80-\u0BFF]')),
        ("te", re.compile(r'[\u0C00-\u0C7F]')),
        ("bn", re.compile(r'[\u0980-\u09FF]')),
        ("ar", re.compile(r'[\u0600-\u06FF]')),
        ("zh-Hans", re.compile(r'[\u4E00-\u9FFF]')),
    )

    def transcribe(self, audio: bytes, language: str = "en-IN") -> Transcription:
        text = self.TRANSCRIPTIONS[len(audio or b"") % len(self.TRANSCRIPTIONS)]
        return Transcription(
            text=text,
            confidence=0.85,
            language=language,
            note="Demo mode: Configure Azure Speech API key for real transcription.",
        )

    def extract_text(self, image: bytes) -> OcrResult:
        text = self.OCR_TEXTS[len(image or b"") % len(self.OCR_TEXTS)]
        return OcrResult(
            text=text,
            confidence=0.9,
            note="Demo mode: Configure Azure Vision API key for real OCR.",
        )

    def detect_language(self, text: str) -> DetectedLanguage:
        for code, pattern in self.SCRIPT_RANGES:
            if pattern.search(text or ""):
                return DetectedLanguage(code, 0.9)
        return DetectedLanguage("en", 0.85)

    def translate(self, text: str, target: str = "en",
                  source: Optional[str] = None) -> Translation:
        # Demo mode can't translate; pass the text through unchanged
        return Translation(
            text=text,
            source_language=source or "en",
            confidence=0.95,
            note=f"Demo mode: Would translate to {target}.",
        )

    def to_english(self, text: str) -> str:
        return text


class AzureProvider(CognitiveProvider):
    """Azure Cognitive Services over plain REST calls."""

    name = "azure"

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None) -> None:
        self._settings = settings
        self._http = session or requests.Session()
        self._fallback = MockProvider()

    # ==================== SPEECH ====================

    def transcribe(self, audio: bytes, language: str = "en-IN") -> Transcription:
        if not self._settings.speech_key:
            return self._fallback.transcribe(audio, language)
        url = (
            f"https://{self._settings.speech_region}.stt.speech.microsoft.com"
            "/speech/recognition/conversation/cognitiveservices/v1"
        )
        try:
            response = self._http.post(
                url,
                params={"language": language},
                data=audio,
                headers={
                    "Ocp-Apim-Subscription-Key": self._settings.speech_key,
                    "Content-Type": "audio/wav",
                    "Accept": "application/json",
                },
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            result = response.json()
            nbest = result.get("NBest") or [{}]
            return Transcription(
                text=result.get("DisplayText") or nbest[0].get("Display", ""),
                confidence=float(nbest[0].get("Confidence", 0.9)),
                language=language,
                duration_ms=result.get("Duration"),
            )
        except (requests.exceptions.RequestException, ValueError) as exc:
            logger.error(f"Azure Speech error: {exc}")
            return self._fallback.transcribe(audio, language)

    # ==================== VISION (READ API) ====================

    def extract_text(self, image: bytes) -> OcrResult:
        if not (self._settings.vision_key and self._settings.vision_endpoint):
            return self._fallback.extract_text(image)
        headers = {"Ocp-Apim-Subscription-Key": self._settings.vision_key}
        try:
            response = self._http.post(
                f"{self._settings.vision_endpoint}/vision/v3.2/read/analyze",
                data=image,
                headers={**headers, "Content-Type": "application/octet-stream"},
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            operation = response.headers.get("Operation-Location")
            if not operation:
                raise ProviderError("Vision API returned no Operation-Location")
            return OcrResult(text=self._poll_read(operation, headers), confidence=0.95)
        except (requests.exceptions.RequestException, ValueError, ProviderError) as exc:
            logger.error(f"Azure Computer Vision error: {exc}")
            return self._fallback.extract_text(image)

    def _poll_read(self, operation_url: str, headers: dict) -> str:
        for _ in range(READ_POLL_ATTEMPTS):
            time.sleep(READ_POLL_DELAY)
            result = self._http.get(operation_url, headers=headers, timeout=REQUEST_TIMEOUT).json()
            if result.get("status") == "succeeded":
                pages = (result.get("analyzeResult") or {}).get("readResults") or []
                return "\n".join(
                    line.get("text", "") for page in pages for line in page.get("lines") or []
                )
            if result.get("status") == "failed":
                raise ProviderError("OCR operation failed")
        raise ProviderError("OCR operation timed out")

    # ==================== TRANSLATOR ====================

    def _translator_headers(self) -> dict:
        return {
            "Ocp-Apim-Subscription-Key": self._settings.translator_key,
            "Ocp-Apim-Subscription-Region": self._settings.translator_region,
            "Content-Type": "application/json",
        }

    def detect_language(self, text: str) -> DetectedLanguage:
        if not self._settings.translator_key:
            return self._fallback.detect_language(text)
        try:
            response = self._http.post(
                f"{TRANSLATOR_ENDPOINT}/detect",
                params={"api-version": "3.0"},
                json=[{"text": text}],
                headers=self._translator_headers(),
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            data = response.json()[0]
            return DetectedLanguage(data["language"], float(data.get("score", 0.0)))
        except (requests.exceptions.RequestException, ValueError, KeyError, IndexError) as exc:
            logger.error(f"Language detection error: {exc}")
            return self._fallback.detect_language(text)

    def translate(self, text: str, target: str = "en",
                  source: Optional[str] = None) -> Translation:
        if not self._settings.translator_key:
            return self._fallback.translate(text, target, source)
        params = {"api-version": "3.0", "to": target}
        if source:
            params["from"] = source
        try:
            response = self._http.post(
                f"{TRANSLATOR_ENDPOINT}/translate",
                params=params,
                json=[{"text": text}],
                headers=self._translator_headers(),
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            data = response.json()[0]
            detected = data.get("detectedLanguage") or {}
            return Translation(
                text=data["translations"][0]["text"],
                source_language=detected.get("language") or source or "auto",
                confidence=float(detected.get("score", 1.0)),
            )
        except (requests.exceptions.RequestException, ValueError, KeyError, IndexError) as exc:
            logger.error(f"Azure Translator error: {exc}")
            return self._fallback.translate(text, target, source)


def build_provider(settings: Settings) -> CognitiveProvider:
    """AzureProvider if any Azure key is configured, else MockProvider."""
    if settings.speech_key or settings.vision_key or settings.translator_key:
        logger.info(f"Cognitive provider: azure | services={settings.service_status()}")
        return AzureProvider(settings)
    logger.info("Cognitive provider: mock (no Azure keys configured)")
    return MockProvider()
