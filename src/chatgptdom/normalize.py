"""Whitespace canonicalization and UI-noise stripping."""

from __future__ import annotations

import re

_SPACE_RUN = re.compile(r"[ \t]+")
_SPACE_AROUND_NEWLINE = re.compile(r"[ \t]*\n[ \t]*")

# Interactive affordances rendered next to messages, plus "1 / 20" style
# counters on a line of their own.
UI_NOISE_PATTERNS = (
    re.compile(r"\bcopy\b", re.IGNORECASE),
    re.compile(r"\bcopied\b", re.IGNORECASE),
    re.compile(r"\bregenerate\b", re.IGNORECASE),
    re.compile(r"\bedit\b", re.IGNORECASE),
    re.compile(r"\bthumbs?\s*(?:up|down)\b", re.IGNORECASE),
    re.compile(r"\bshare\b", re.IGNORECASE),
    re.compile(r"\bcontinue\b", re.IGNORECASE),
    re.compile(r"^[ \t]*\d+[ \t]*/[ \t]*\d+[ \t]*$", re.MULTILINE),
)


def normalize_whitespace(text: str) -> str:
    """Normalize line endings to LF, collapse spaces/tabs, and trim."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return _SPACE_RUN.sub(" ", text).strip()


def strip_ui_noise(text: str) -> str:
    """Remove UI affordance tokens so they never affect message identity.

    Only used on the canonical string fed to id hashing, never on the
    content stored in message parts.
    """
    for pattern in UI_NOISE_PATTERNS:
        text = pattern.sub("", text)
    text = normalize_whitespace(text)
    return _SPACE_AROUND_NEWLINE.sub("\n", text)
