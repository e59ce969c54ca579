"""Infer a message block's speaker role from its markup."""

from __future__ import annotations

import logging

from bs4 import Tag

from .models import Role
from .selectors import class_string, safe_match, safe_select_one

logger = logging.getLogger(__name__)

# Checked in this order; the first role whose indicators match wins.
ROLE_INDICATORS: dict[Role, tuple[str, ...]] = {
    "user": (
        '[data-message-author-role="user"]',
        '[data-role="user"]',
        '[class*="user"]',
        '[data-testid*="user"]',
    ),
    "assistant": (
        '[data-message-author-role="assistant"]',
        '[data-role="assistant"]',
        '[class*="assistant"]',
        '[class*="bot"]',
        '[data-testid*="assistant"]',
    ),
    "system": (
        '[data-message-author-role="system"]',
        '[data-role="system"]',
        '[class*="system"]',
    ),
}

ROLE_ATTRIBUTES = ("data-role", "data-message-author-role")

CLASS_KEYWORDS: dict[Role, tuple[str, ...]] = {
    "user": ("user",),
    "assistant": ("assistant", "bot"),
    "system": ("system",),
}


def _matches_any(element: Tag, selectors: tuple[str, ...]) -> bool:
    return any(
        safe_match(element, selector) or safe_select_one(element, selector) is not None
        for selector in selectors
    )


def _explicit_role(element: Tag) -> str | None:
    for attr in ROLE_ATTRIBUTES:
        value = element.get(attr)
        if isinstance(value, str) and value.strip().lower() in CLASS_KEYWORDS:
            return value.strip().lower()
    return None


def detect_role(element: Tag) -> Role:
    """Classify a message block as user, assistant, system, or unknown.

    Indicator selectors are matched against the element and its
    descendants first. Failing that, an explicit role attribute on the
    element wins over keywords found in its class names.
    """
    for role, selectors in ROLE_INDICATORS.items():
        if _matches_any(element, selectors):
            return role

    explicit = _explicit_role(element)
    if explicit is not None:
        return explicit  # type: ignore[return-value]

    classes = class_string(element).lower()
    for role, keywords in CLASS_KEYWORDS.items():
        if any(keyword in classes for keyword in keywords):
            return role

    logger.debug("Could not determine role for <%s>", element.name)
    return "unknown"
