"""Builds and sends the final-result callback to the evaluation endpoint.

One payload per session, built from its SessionRecord. A 2xx response marks
the session submitted; anything else parks the payload in the pending
queue, which is retried in the background with exponential backoff.
"""

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import requests

from honeyguard.memory import STATUS_SUBMITTED, SessionRecord, SessionStore
from honeyguard.models import CallbackPayload
from honeyguard import settings as settings_module
from honeyguard.settings import Settings

logger = logging.getLogger(__name__)

RETRY_DELAYS: tuple = (1, 2, 4)  # Exponential backoff: 1s, 2s, 4s
SUCCESS_CODES = (200, 201, 202, 204)


def build_agent_notes(record: SessionRecord, now: Optional[datetime] = None) -> str:
    """Human-readable session summary, parts joined with '. '."""
    intel = record.intelligence
    parts = [f"Analysis source: {record.source}"]

    if record.scam_detected:
        parts.append(f"Scam confirmed with {int(round(record.scam_confidence))}% confidence")

    phones = intel.get("phoneNumbers", [])
    if phones:
        parts.append(f"Extracted {len(phones)} phone number(s): {', '.join(phones[:3])}")
    upis = intel.get("upiIds", [])
    if upis:
        parts.append(f"Detected {len(upis)} UPI ID(s): {', '.join(upis[:3])}")
    links = intel.get("phishingLinks", [])
    if links:
        parts.append(f"Found {len(links)} suspicious link(s): {', '.join(links[:3])}")
    accounts = intel.get("bankAccounts", [])
    if accounts:
        parts.append(
            f"Identified {len(accounts)} potential bank account number(s): "
            f"{', '.join(accounts[:3])}"
        )
    keywords = intel.get("suspiciousKeywords", [])
    if keywords:
        parts.append(f"Suspicious keywords: {', '.join(keywords[:10])}")

    parts.append(f"Total messages analyzed: {record.total_messages}")
    parts.append(f"Session duration: {record.duration_seconds(now)}s")
    return ". ".join(parts)


def build_callback_payload(record: SessionRecord) -> dict:
    """Exact callback schema; key order is part of the contract."""
    payload = CallbackPayload(
        sessionId=record.session_id,
        scamDetected=record.scam_detected,
        totalMessagesExchanged=record.total_messages,
        extractedIntelligence=record.intelligence,
        agentNotes=build_agent_notes(record),
    )
    return payload.model_dump()


def is_ready_for_submission(record: Optional[SessionRecord]) -> bool:
    return (
        record is not None
        and record.scam_detected
        and record.total_messages > 0
        and record.status != STATUS_SUBMITTED
    )


class PendingSubmissions:
    """Thread-safe queue of payloads whose POST failed, one per session."""

    def __init__(self) -> None:
        self._items: Dict[str, dict] = {}
        self._lock = threading.Lock()

    def add(self, session_id: str, payload: dict, error: str) -> None:
        with self._lock:
            self._items[session_id] = {
                "sessionId": session_id,
                "payload": payload,
                "error": error,
                "attemptTime": datetime.now(timezone.utc).isoformat(),
            }

    def remove(self, session_id: str) -> None:
        with self._lock:
            self._items.pop(session_id, None)

    def items(self) -> List[dict]:
        with self._lock:
            return list(self._items.values())

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()


# Module-level singleton
pending = PendingSubmissions()


def _do_send(session_id: str, payload: dict, config: Settings) -> tuple:
    """Single POST. Returns (success, detail)."""
    short_id = session_id[:8]
    try:
        logger.info(f"[{short_id}] Sending callback to {config.callback_url}")
        response = requests.post(
            config.callback_url,
            json=payload,
            timeout=config.callback_timeout,
            headers={"Content-Type": "application/json"},
        )
    except requests.exceptions.Timeout:
        logger.error(f"[{short_id}] Callback timed out")
        return False, "Timeout"
    except requests.exceptions.RequestException as exc:
        logger.error(f"[{short_id}] Callback network error: {exc}")
        return False, f"Network error: {exc}"

    if response.status_code in SUCCESS_CODES:
        logger.info(f"[{short_id}] Callback accepted ({response.status_code})")
        return True, f"Accepted ({response.status_code})"

    logger.warning(
        f"[{short_id}] Callback rejected: {response.status_code} {response.text[:200]}"
    )
    return False, f"Submission failed: {response.status_code}"


def _mark_submitted(record: SessionRecord, store: SessionStore) -> None:
    record.status = STATUS_SUBMITTED
    record.submitted_at = datetime.now(timezone.utc)
    store.put(record)
    pending.remove(record.session_id)


def submit_final_result(
    record: SessionRecord,
    store: SessionStore,
    config: Optional[Settings] = None,
) -> dict:
    """POST the session's payload once; queue it for retry on failure."""
    config = config or settings_module.settings
    if not record.scam_detected:
        logger.warning(f"[{record.short_id}] Submitting without confirmed scam detection")

    payload = build_callback_payload(record)
    success, detail = _do_send(record.session_id, payload, config)

    if success:
        _mark_submitted(record, store)
        return {"success": True, "message": "Results submitted successfully", "payload": payload}

    pending.add(record.session_id, payload, detail)
    return {"success": False, "message": detail, "payload": payload}


def _send_with_retry(session_id: str, payload: dict, config: Settings,
                     sleep: Callable[[float], None] = time.sleep) -> bool:
    """Send with exponential backoff (1s, 2s, 4s)."""
    short_id = session_id[:8]
    attempts = max(config.callback_max_retries, 1)

    for attempt in range(attempts):
        success, _ = _do_send(session_id, payload, config)
        if success:
            return True
        if attempt < attempts - 1:
            delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
            logger.info(f"[{short_id}] Callback retry {attempt + 1} in {delay}s")
            sleep(delay)

    logger.error(f"[{short_id}] Callback failed after {attempts} attempts")
    return False


def retry_pending(store: SessionStore, config: Optional[Settings] = None,
                  sleep: Callable[[float], None] = time.sleep) -> List[dict]:
    """Retry every queued submission; returns one result per session."""
    config = config or settings_module.settings
    results = []
    for item in pending.items():
        session_id = item["sessionId"]
        record = store.get(session_id)
        if record is None:
            pending.remove(session_id)
            results.append({"sessionId": session_id, "success": False, "message": "Session expired"})
            continue
        # Rebuild so the retry carries anything learned since the first attempt
        payload = build_callback_payload(record)
        if _send_with_retry(session_id, payload, config, sleep):
            _mark_submitted(record, store)
            results.append({"sessionId": session_id, "success": True})
        else:
            pending.add(session_id, payload, "Retry failed")
            results.append({"sessionId": session_id, "success": False, "message": "Retry failed"})
    return results


def retry_pending_async(store: SessionStore, config: Optional[Settings] = None) -> threading.Thread:
    """Run retry_pending on a daemon thread so the request isn't blocked."""
    thread = threading.Thread(target=retry_pending, args=(store, config), daemon=True)
    thread.start()
    return thread
