"""Cognitive providers and environment settings."""

from unittest.mock import MagicMock

import requests

from honeyguard.providers import AzureProvider, MockProvider, build_provider
from honeyguard.settings import Settings


def test_mock_provider_is_deterministic():
    mock = MockProvider()
    assert mock.transcribe(b"abcde").text == mock.transcribe(b"vwxyz").text
    assert mock.extract_text(b"").text == MockProvider.OCR_TEXTS[0]
    assert mock.extract_text(b"").lines == [MockProvider.OCR_TEXTS[0]]


def test_mock_language_detection():
    mock = MockProvider()
    assert mock.detect_language("आपका खाता बंद है").language == "hi"
    assert mock.detect_language("your account is blocked").language == "en"
    assert mock.to_english("आपका खाता") == "आपका खाता"


def test_build_provider_picks_by_keys():
    assert isinstance(build_provider(Settings()), MockProvider)
    assert isinstance(build_provider(Settings(speech_key="k")), AzureProvider)


def test_azure_falls_back_to_mock_on_error():
    http = MagicMock()
    http.post.side_effect = requests.exceptions.ConnectionError("down")
    azure = AzureProvider(Settings(speech_key="k", translator_key="t"), session=http)

    assert azure.transcribe(b"abcd").text == MockProvider().transcribe(b"abcd").text
    assert azure.detect_language("hello").language == "en"


def test_azure_without_vision_key_uses_mock():
    http = MagicMock()
    azure = AzureProvider(Settings(speech_key="k"), session=http)
    assert azure.extract_text(b"x").text == MockProvider.OCR_TEXTS[1]
    http.post.assert_not_called()


def test_azure_translate_and_to_english():
    http = MagicMock()
    detect = MagicMock()
    detect.json.return_value = [{"language": "hi", "score": 0.98}]
    translate = MagicMock()
    translate.json.return_value = [{
        "detectedLanguage": {"language": "hi", "score": 0.98},
        "translations": [{"text": "Your account is blocked", "to": "en"}],
    }]
    http.post.side_effect = [detect, translate]

    azure = AzureProvider(Settings(translator_key="t"), session=http)
    assert azure.to_english("आपका खाता बंद है") == "Your account is blocked"
    assert http.post.call_args.kwargs["params"] == {"api-version": "3.0", "to": "en", "from": "hi"}


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("HONEYPOT_API_KEY", "  secret  ")
    monkeypatch.setenv("CALLBACK_TIMEOUT", "not-a-number")
    monkeypatch.setenv("AZURE_VISION_ENDPOINT", "https://vision.example.com/")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    loaded = Settings.from_env()
    assert loaded.api_key == "secret"
    assert loaded.callback_timeout == 15
    assert loaded.vision_endpoint == "https://vision.example.com"
    assert loaded.log_level == "DEBUG"
    assert loaded.service_status()["vision"] == "demo"
