"""Session state behind a small store interface.

A SessionRecord accumulates everything the evaluation callback needs for
one conversation: message history, merged intelligence, the sticky scam
flag and submission status. The web layer talks to a SessionStore, so the
in-memory default can be swapped for a shared backend.

Idle sessions expire after one hour.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from honeyguard.config import DEFAULT_CONFIG, EngineConfig
from honeyguard.extractor import dedupe
from honeyguard.results import AnalysisResult, ExtractedIntelligence

logger = logging.getLogger(__name__)

# Session expiration time (1 hour)
SESSION_EXPIRY_SECONDS: int = 3600
CLEANUP_INTERVAL = timedelta(minutes=10)

STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"
STATUS_SUBMITTED = "submitted"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SessionRecord:
    session_id: str
    source: str = "unknown"
    status: str = STATUS_ACTIVE
    scam_detected: bool = False
    scam_confidence: float = 0.0
    total_messages: int = 0
    history: List[dict] = field(default_factory=list)
    intelligence: Dict[str, List[str]] = field(
        default_factory=lambda: {name: [] for name in ExtractedIntelligence.CONTRACT_FIELDS}
    )
    notes: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=_now)
    last_activity: datetime = field(default_factory=_now)
    completed_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None

    @property
    def short_id(self) -> str:
        return self.session_id[:8]

    def duration_seconds(self, now: Optional[datetime] = None) -> int:
        delta = (now or _now()) - self.created_at
        return max(int(delta.total_seconds()), 0)

    def merge_intelligence(
        self,
        intelligence: ExtractedIntelligence,
        config: EngineConfig = DEFAULT_CONFIG,
    ) -> None:
        """Union new values into the record, keeping first-seen order and the engine caps."""
        for name in ExtractedIntelligence.CONTRACT_FIELDS:
            incoming = getattr(intelligence, name)
            if not incoming:
                continue
            cap = config.caps.get(name, 10)
            self.intelligence[name] = dedupe(list(self.intelligence.get(name, [])) + list(incoming), cap)

    def touch(self) -> None:
        self.last_activity = _now()

    def summary(self) -> dict:
        return {
            "sessionId": self.session_id,
            "status": self.status,
            "source": self.source,
            "scamDetected": self.scam_detected,
            "scamConfidence": self.scam_confidence,
            "totalMessages": self.total_messages,
            "extractedIntelligence": {k: list(v) for k, v in self.intelligence.items()},
            "createdAt": self.created_at.isoformat(),
            "lastActivity": self.last_activity.isoformat(),
            "submittedAt": self.submitted_at.isoformat() if self.submitted_at else None,
        }


class SessionStore(ABC):
    """Storage seam for SessionRecords."""

    @abstractmethod
    def get(self, session_id: str) -> Optional[SessionRecord]:
        ...

    @abstractmethod
    def put(self, record: SessionRecord) -> None:
        ...

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        ...

    @abstractmethod
    def list(self) -> List[SessionRecord]:
        ...

    def get_or_create(self, session_id: str) -> SessionRecord:
        record = self.get(session_id)
        if record is None:
            record = SessionRecord(session_id=session_id)
            self.put(record)
        return record


class InMemorySessionStore(SessionStore):
    """Thread-safe dict-backed store with periodic expiry of idle sessions."""

    def __init__(self, expiry_seconds: int = SESSION_EXPIRY_SECONDS) -> None:
        self._sessions: Dict[str, SessionRecord] = {}
        self._lock = threading.Lock()
        self._expiry = timedelta(seconds=expiry_seconds)
        self._last_cleanup: datetime = _now()

    def get(self, session_id: str) -> Optional[SessionRecord]:
        with self._lock:
            self._maybe_cleanup()
            return self._sessions.get(session_id)

    def put(self, record: SessionRecord) -> None:
        with self._lock:
            self._sessions[record.session_id] = record

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def list(self) -> List[SessionRecord]:
        with self._lock:
            self._maybe_cleanup()
            return list(self._sessions.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    # ==================== Session Cleanup ====================

    def _maybe_cleanup(self, force: bool = False) -> None:
        """Drop sessions idle longer than the expiry. Called under lock."""
        now = _now()
        if not force and (now - self._last_cleanup) < CLEANUP_INTERVAL:
            return
        self._last_cleanup = now
        threshold = now - self._expiry
        expired = [sid for sid, rec in self._sessions.items() if rec.last_activity < threshold]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info(f"Expired {len(expired)} idle session(s)")

    def cleanup(self) -> None:
        with self._lock:
            self._maybe_cleanup(force=True)


def record_analysis(
    store: SessionStore,
    session_id: str,
    result: AnalysisResult,
    message: Optional[dict] = None,
    source: Optional[str] = None,
    history: Optional[Iterable[dict]] = None,
) -> SessionRecord:
    """Fold one analysis into the session and persist it.

    The scam flag is sticky: once a message in the session scores as a
    scam the session stays flagged, and the recorded confidence is the
    highest seen so far.
    """
    record = store.get_or_create(session_id)

    if source:
        record.source = source
    if history and not record.history:
        record.history.extend(dict(item) for item in history if isinstance(item, dict))
    if message is not None:
        entry = dict(message)
        entry.setdefault("timestamp", _now().isoformat())
        record.history.append(entry)
    record.total_messages += 1

    if result.is_scam:
        if not record.scam_detected:
            logger.info(f"[{record.short_id}] Scam detected (score={result.score})")
        record.scam_detected = True
    record.scam_confidence = max(record.scam_confidence, result.confidence)
    record.merge_intelligence(result.intelligence)
    record.notes.append(result.notes)
    record.touch()

    store.put(record)
    return record


def complete_session(store: SessionStore, session_id: str) -> Optional[SessionRecord]:
    """Mark a session completed. Submitted sessions keep their status."""
    record = store.get(session_id)
    if record is None:
        return None
    if record.status != STATUS_SUBMITTED:
        record.status = STATUS_COMPLETED
        record.completed_at = _now()
    store.put(record)
    return record
