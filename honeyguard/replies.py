"""
replies.py — Honeypot Victim Replies
====================================

Static, staged replies that play a confused victim slowly "complying" so
the scammer keeps talking and reveals more details. No LLM, no state: the
stage comes from the conversation length and the pick from a stable hash
of the incoming message, so the same conversation always gets the same
reply.

Stages:
    0  surprise and confusion
    1  asking what happened
    2  trusting, asking for steps
    3  pretending to comply, asking for their ID
    4  extracting the scammer's own details
"""

import zlib
from typing import Iterable, List, Optional, Sequence, Tuple

GREETING_REPLY = "Hello, I'm here. What would you like to discuss?"
MAX_STAGE = 4

# Prefix length used to decide whether a reply was already sent
USED_PREFIX_LEN = 30

# Senders whose history lines count as our earlier replies
REPLY_SENDERS = ("honeypot", "victim", "user", "agent")


class ReplyBook:
    """Staged reply pools plus keyword-triggered extras."""

    # ==================== STAGED POOLS ====================

    STAGES: Tuple[Tuple[str, ...], ...] = (
        (
            "What?! My account is having issues? I wasn't aware of this!",
            "Oh my god, what's happening? I use this account for all my savings!",
            "This is shocking! I need to fix this immediately. What do I do?",
            "Wait, which account are you talking about? I have several.",
            "Blocked? But I just used my card yesterday! This can't be right.",
        ),
        (
            "Can you tell me exactly which account is affected? I'm very worried.",
            "Please explain what kind of suspicious activity you detected.",
            "I want to help resolve this. What steps should I take?",
            "This is very concerning! How did this happen to my account?",
            "Are you from the bank? How do I know this is legitimate?",
        ),
        (
            "Okay, I trust you. Just tell me what I need to do step by step.",
            "I'm ready to verify. What information do you need from me?",
            "Please help me save my account. I'll do whatever it takes.",
            "I can't afford to lose my money. How can we fix this right now?",
            "You're from the bank so you must know what to do. Please guide me.",
        ),
        (
            "I received the OTP. But before I share, which department are you from exactly?",
            "I'm looking at my phone now. But first, can you confirm your employee ID?",
            "I want to help but I'm nervous. What happens after I share this information?",
            "My OTP is... wait, which number should I read to you? There are several messages.",
            "I have my UPI app open. What's your official ID so I can send it?",
        ),
        (
            "I'm trying to send you the details but I need your full name for my records.",
            "Before I proceed, can you give me a callback number in case we get disconnected?",
            "My bank says I should note down your employee details. Can you share them?",
            "I'll share everything, but first give me your supervisor's name for verification.",
            "Which branch office are you calling from? I want to visit in person too.",
        ),
    )

    # ==================== KEYWORD EXTRAS ====================
    # (trigger substrings, minimum stage, extra replies)

    EXTRAS: Tuple[Tuple[Tuple[str, ...], int, Tuple[str, ...]], ...] = (
        (("otp",), 2, (
            "I have the OTP right here. It says... wait, should I read all 6 digits?",
            "The OTP I received is... actually, why does the bank need this from me?",
            "I see the OTP message. But it says not to share with anyone. Is this safe?",
        )),
        (("upi", "@"), 2, (
            "My UPI ID is... can you tell me your UPI first so I know where to send?",
            "I'm opening my UPI app. What's the exact amount I need to send for verification?",
            "For UPI, do you need my ID or should I send money somewhere?",
        )),
        (("pin",), 2, (
            "My PIN? Isn't that supposed to be secret? But if the bank needs it...",
            "I'm hesitant to share my PIN. Can your supervisor confirm this is required?",
            "The PIN for which card? I have debit and credit cards.",
        )),
        (("minute", "hour"), 1, (
            "Only a few minutes?! Please don't hang up, I'm getting my phone right now!",
            "I'm panicking! Please stay on the line while I find my account details!",
            "Such a short time! I'll do everything you say, just help me save my account!",
        )),
    )

    @staticmethod
    def stage_for(history_length: int) -> int:
        return min(max(history_length, 0) // 2, MAX_STAGE)

    def pool(self, message: str, stage: int) -> List[str]:
        lowered = (message or "").lower()
        pool = list(self.STAGES[stage])
        for triggers, min_stage, extra in self.EXTRAS:
            if stage >= min_stage and any(t in lowered for t in triggers):
                pool.extend(extra)
        return pool

    @staticmethod
    def previous_replies(history: Optional[Iterable[object]]) -> List[str]:
        """Lower-cased texts of our own earlier turns.

        History entries may be dicts or objects with sender/text attributes.
        """
        previous = []
        for entry in history or ():
            if isinstance(entry, dict):
                sender, text = entry.get("sender"), entry.get("text") or entry.get("message")
            else:
                sender, text = getattr(entry, "sender", None), getattr(entry, "text", None)
            if sender in REPLY_SENDERS and isinstance(text, str):
                previous.append(text.lower())
        return previous

    @staticmethod
    def stable_index(message: str, size: int) -> int:
        return zlib.crc32((message or "").encode("utf-8")) % size

    def reply(self, message: str, history: Optional[Sequence[object]] = None) -> str:
        """Pick the next victim reply for message, given the conversation so far."""
        history = list(history or ())
        pool = self.pool(message, self.stage_for(len(history)))
        used = self.previous_replies(history)
        available = [
            candidate for candidate in pool
            if not any(candidate.lower()[:USED_PREFIX_LEN] in prev for prev in used)
        ]
        # Every reply used already: rotate back through the full pool
        if not available:
            available = pool
        return available[self.stable_index(message, len(available))]


# Module-level singleton
reply_book = ReplyBook()


def generate_reply(message: str, history: Optional[Sequence[object]] = None) -> str:
    return reply_book.reply(message, history)
