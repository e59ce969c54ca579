"""Deterministic message ids derived from role, content, and position."""

from __future__ import annotations

import struct

from .models import (
    CodePart,
    HeadingPart,
    ImageRefPart,
    LinkPart,
    ListPart,
    Part,
    QuotePart,
    TextPart,
    UnknownPart,
)
from .normalize import normalize_whitespace, strip_ui_noise

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def hash_string(text: str) -> str:
    """djb2-xor over UTF-16 code units, as an unsigned 32-bit base-36 string."""
    acc = 5381
    data = text.encode("utf-16-le", "surrogatepass")
    for (unit,) in struct.iter_unpack("<H", data):
        acc = ((acc * 33) ^ unit) & 0xFFFFFFFF
    return _to_base36(acc)


def _fragment(part: Part) -> str:
    if isinstance(part, TextPart):
        return normalize_whitespace(part.text)
    if isinstance(part, CodePart):
        return f"[CODE:{part.lang or 'plain'}]{normalize_whitespace(part.code)}"
    if isinstance(part, ListPart):
        kind = "ol" if part.ordered else "ul"
        return f"[LIST:{kind}]" + "|".join(normalize_whitespace(i) for i in part.items)
    if isinstance(part, QuotePart):
        return f"[QUOTE]{normalize_whitespace(part.text)}"
    if isinstance(part, LinkPart):
        return f"[LINK:{part.href}]{normalize_whitespace(part.text)}"
    if isinstance(part, HeadingPart):
        return f"[H{part.level}]{normalize_whitespace(part.text)}"
    if isinstance(part, ImageRefPart):
        src = "null" if part.src is None else part.src
        return f"[IMG:{src}]{part.alt or ''}"
    if isinstance(part, UnknownPart):
        return normalize_whitespace(part.raw_text)
    raise TypeError(f"Unsupported part type: {type(part).__name__}")


def normalize_parts_text(parts: list[Part]) -> str:
    """Canonical string form of a message's parts, one fragment per line."""
    return "\n".join(_fragment(part) for part in parts)


def generate_message_id(role: str, parts: list[Part], index: int) -> str:
    """Return ``msg_<hash>_<index>``.

    The same role, parts, and index always produce the same id.
    Whitespace-only and UI-noise-only differences in the content do not
    change it.
    """
    cleaned = strip_ui_noise(normalize_parts_text(parts))
    return f"msg_{hash_string(f'{role}:{cleaned}:{index}')}_{index}"
