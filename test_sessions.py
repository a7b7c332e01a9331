"""Session store, final-result callback and honeypot replies."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests

from honeyguard import callback
from honeyguard.callback import (
    build_agent_notes,
    build_callback_payload,
    is_ready_for_submission,
    pending,
    retry_pending,
    submit_final_result,
)
from honeyguard.engine import analyze
from honeyguard.memory import (
    STATUS_COMPLETED,
    STATUS_SUBMITTED,
    InMemorySessionStore,
    SessionRecord,
    complete_session,
    record_analysis,
)
from honeyguard.replies import GREETING_REPLY, ReplyBook, generate_reply
from honeyguard.settings import Settings

SCAM = "URGENT! Your SBI account is blocked. Share your OTP immediately. Pay to fraud@ybl"
SAFE = "Thanks, see you tomorrow"

TEST_SETTINGS = Settings(api_key="k", callback_url="http://callback.test/final",
                         callback_timeout=5, callback_max_retries=3)


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture(autouse=True)
def _clear_pending():
    pending.clear()
    yield
    pending.clear()


def _response(status_code, text="ok"):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    return response


# ==================== SESSION STORE ====================

def test_store_crud(store):
    record = SessionRecord(session_id="abc")
    store.put(record)
    assert store.get("abc") is record
    assert [r.session_id for r in store.list()] == ["abc"]
    assert store.delete("abc") is True
    assert store.delete("abc") is False
    assert store.get("abc") is None


def test_idle_sessions_expire(store):
    old = SessionRecord(session_id="old")
    old.last_activity = datetime.now(timezone.utc) - timedelta(hours=2)
    store.put(old)
    store.put(SessionRecord(session_id="fresh"))
    store.cleanup()
    assert store.get("old") is None
    assert store.get("fresh") is not None


def test_scam_flag_is_sticky(store):
    record_analysis(store, "s1", analyze(SCAM), {"sender": "scammer", "text": SCAM}, "text")
    record = record_analysis(store, "s1", analyze(SAFE), {"sender": "scammer", "text": SAFE})

    assert record.scam_detected is True
    assert record.total_messages == 2
    assert record.scam_confidence == analyze(SCAM).confidence
    assert [m["text"] for m in record.history] == [SCAM, SAFE]
    assert record.source == "text"


def test_intelligence_is_merged_without_duplicates(store):
    record_analysis(store, "s2", analyze("pay fraud@ybl or call 9876543210"))
    record = record_analysis(store, "s2", analyze("again fraud@ybl, or other@okicici"))
    assert record.intelligence["upiIds"] == ["fraud@ybl", "other@okicici"]
    assert record.intelligence["phoneNumbers"] == ["9876543210"]


def test_complete_session(store):
    record_analysis(store, "s3", analyze(SCAM))
    assert complete_session(store, "s3").status == STATUS_COMPLETED
    assert complete_session(store, "missing") is None


# ==================== CALLBACK PAYLOAD ====================

def test_payload_shape(store):
    record = record_analysis(store, "sess-payload", analyze(SCAM), source="text")
    payload = build_callback_payload(record)

    assert list(payload) == [
        "sessionId", "scamDetected", "totalMessagesExchanged",
        "extractedIntelligence", "agentNotes",
    ]
    assert list(payload["extractedIntelligence"]) == [
        "bankAccounts", "upiIds", "phishingLinks", "phoneNumbers", "suspiciousKeywords",
    ]
    assert payload["sessionId"] == "sess-payload"
    assert payload["scamDetected"] is True
    assert payload["totalMessagesExchanged"] == 1
    assert payload["extractedIntelligence"]["upiIds"] == ["fraud@ybl"]


def test_agent_notes_parts(store):
    record = record_analysis(store, "sess-notes", analyze(SCAM), source="audio")
    notes = build_agent_notes(record, now=record.created_at + timedelta(seconds=42))
    parts = notes.split(". ")

    assert parts[0] == "Analysis source: audio"
    assert parts[1] == f"Scam confirmed with {int(round(record.scam_confidence))}% confidence"
    assert "Detected 1 UPI ID(s): fraud@ybl" in parts
    assert any(p.startswith("Suspicious keywords: urgent") for p in parts)
    assert parts[-2] == "Total messages analyzed: 1"
    assert parts[-1] == "Session duration: 42s"


def test_ready_for_submission(store):
    assert is_ready_for_submission(None) is False
    safe = record_analysis(store, "safe", analyze(SAFE))
    assert is_ready_for_submission(safe) is False
    scam = record_analysis(store, "scam", analyze(SCAM))
    assert is_ready_for_submission(scam) is True
    scam.status = STATUS_SUBMITTED
    assert is_ready_for_submission(scam) is False


# ==================== CALLBACK SENDING ====================

def test_submit_success_marks_session(store):
    record = record_analysis(store, "sess-ok", analyze(SCAM))
    with patch("honeyguard.callback.requests.post", return_value=_response(200)) as post:
        result = submit_final_result(record, store, TEST_SETTINGS)

    assert result["success"] is True
    assert store.get("sess-ok").status == STATUS_SUBMITTED
    assert "sess-ok" not in pending
    args, kwargs = post.call_args
    assert args[0] == "http://callback.test/final"
    assert kwargs["json"] == result["payload"]
    assert kwargs["timeout"] == 5


def test_submit_rejection_is_queued(store):
    record = record_analysis(store, "sess-bad", analyze(SCAM))
    with patch("honeyguard.callback.requests.post", return_value=_response(500, "boom")):
        result = submit_final_result(record, store, TEST_SETTINGS)

    assert result["success"] is False
    assert result["message"] == "Submission failed: 500"
    assert "sess-bad" in pending
    assert record.status != STATUS_SUBMITTED


def test_submit_network_error_is_queued(store):
    record = record_analysis(store, "sess-net", analyze(SCAM))
    with patch("honeyguard.callback.requests.post",
               side_effect=requests.exceptions.ConnectionError("down")):
        result = submit_final_result(record, store, TEST_SETTINGS)

    assert result["success"] is False
    assert result["message"].startswith("Network error")
    assert "sess-net" in pending


def test_retry_uses_backoff(store):
    delays = []
    with patch("honeyguard.callback.requests.post",
               side_effect=requests.exceptions.Timeout()) as post:
        ok = callback._send_with_retry("sess-retry", {}, TEST_SETTINGS, sleep=delays.append)

    assert ok is False
    assert post.call_count == 3
    assert delays == [1, 2]


def test_retry_pending_clears_queue_on_success(store):
    record = record_analysis(store, "sess-later", analyze(SCAM))
    with patch("honeyguard.callback.requests.post", return_value=_response(503)):
        submit_final_result(record, store, TEST_SETTINGS)
    assert len(pending) == 1

    with patch("honeyguard.callback.requests.post", return_value=_response(201)):
        results = retry_pending(store, TEST_SETTINGS, sleep=lambda _: None)

    assert results == [{"sessionId": "sess-later", "success": True}]
    assert len(pending) == 0
    assert store.get("sess-later").status == STATUS_SUBMITTED


def test_retry_pending_drops_expired_sessions(store):
    pending.add("gone", {"sessionId": "gone"}, "Timeout")
    results = retry_pending(store, TEST_SETTINGS, sleep=lambda _: None)
    assert results[0]["success"] is False
    assert "gone" not in pending


# ==================== REPLIES ====================

def test_stage_progression():
    assert [ReplyBook.stage_for(n) for n in (0, 1, 2, 5, 8, 40)] == [0, 0, 1, 2, 4, 4]


def test_first_reply_comes_from_opening_stage():
    assert generate_reply("Your account is blocked") in ReplyBook.STAGES[0]


def test_reply_is_deterministic():
    history = [{"sender": "scammer", "text": "hi"}] * 3
    assert generate_reply("Send OTP now", history) == generate_reply("Send OTP now", history)


def test_keyword_extras_join_pool():
    book = ReplyBook()
    pool = book.pool("Tell me the OTP", 2)
    assert len(pool) == len(ReplyBook.STAGES[2]) + 3
    assert book.pool("Tell me the OTP", 1) == list(ReplyBook.STAGES[1])
    assert len(book.pool("only 5 minutes left", 1)) == len(ReplyBook.STAGES[1]) + 3


def test_used_replies_are_skipped():
    stage_two = ReplyBook.STAGES[2]
    history = [{"sender": "honeypot", "text": reply} for reply in stage_two[:4]]
    assert generate_reply("hello there", history) == stage_two[4]


def test_greeting_reply_text():
    assert GREETING_REPLY == "Hello, I'm here. What would you like to discuss?"
