"""Runtime settings loaded from the environment (and .env, if present)."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_CALLBACK_URL = "https://hackathon.guvi.in/api/updateHoneyPotFinalResult"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    api_key: str = ""
    callback_url: str = DEFAULT_CALLBACK_URL
    callback_timeout: int = 15
    callback_max_retries: int = 3
    speech_key: Optional[str] = None
    speech_region: str = "centralindia"
    vision_key: Optional[str] = None
    vision_endpoint: Optional[str] = None
    translator_key: Optional[str] = None
    translator_region: str = "centralindia"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_key=(os.getenv("HONEYPOT_API_KEY") or "").strip(),
            callback_url=os.getenv("CALLBACK_URL", DEFAULT_CALLBACK_URL),
            callback_timeout=_int_env("CALLBACK_TIMEOUT", 15),
            callback_max_retries=_int_env("CALLBACK_MAX_RETRIES", 3),
            speech_key=os.getenv("AZURE_SPEECH_KEY") or None,
            speech_region=os.getenv("AZURE_SPEECH_REGION", "centralindia"),
            vision_key=os.getenv("AZURE_VISION_KEY") or None,
            vision_endpoint=(os.getenv("AZURE_VISION_ENDPOINT") or "").rstrip("/") or None,
            translator_key=os.getenv("AZURE_TRANSLATOR_KEY") or None,
            translator_region=os.getenv("AZURE_TRANSLATOR_REGION", "centralindia"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def service_status(self) -> dict:
        """'configured' or 'demo' per cognitive service."""
        return {
            "translator": "configured" if self.translator_key else "demo",
            "speech": "configured" if self.speech_key else "demo",
            "vision": "configured" if self.vision_key and self.vision_endpoint else "demo",
        }


settings = Settings.from_env()
