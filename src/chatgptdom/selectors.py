"""Tiered element lookup with fallback selectors and content heuristics.

The chat UI's markup drifts between releases, so every lookup is described
by a SelectorConfig: primary selectors first, fallback selectors only when
the primary tier yields nothing, and an optional heuristic that rejects
structurally matching but implausible candidates.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import soupsieve as sv
from bs4 import Tag
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

Predicate = Callable[[Tag], bool]


def child_elements(element: Tag) -> list[Tag]:
    return [c for c in element.children if isinstance(c, Tag)]


def class_string(element: Tag) -> str:
    """Return the class attribute as a single space-joined string."""
    classes = element.get("class")
    if classes is None:
        return ""
    if isinstance(classes, str):
        return classes
    return " ".join(classes)


def safe_select(root: Tag, selector: str) -> list[Tag]:
    """Select descendants, treating an unparsable selector as no match."""
    try:
        return root.select(selector)
    except (sv.SelectorSyntaxError, NotImplementedError):
        logger.debug("Skipping invalid selector %r", selector)
        return []


def safe_select_one(root: Tag, selector: str) -> Tag | None:
    try:
        return root.select_one(selector)
    except (sv.SelectorSyntaxError, NotImplementedError):
        logger.debug("Skipping invalid selector %r", selector)
        return None


def safe_match(element: Tag, selector: str) -> bool:
    """True if the element itself matches the selector."""
    try:
        return sv.match(selector, element)
    except (sv.SelectorSyntaxError, NotImplementedError):
        logger.debug("Skipping invalid selector %r", selector)
        return False


class Heuristic(BaseModel):
    """Content-shape check applied to a structurally matched candidate.

    All configured conditions must hold. A zero/None parameter disables
    its condition.
    """

    model_config = ConfigDict(frozen=True)

    min_text_length: int = 0
    min_child_elements: int = 0
    required_descendant: str | None = None

    def __call__(self, element: Tag) -> bool:
        if self.min_child_elements and len(child_elements(element)) < self.min_child_elements:
            return False
        if self.min_text_length and len(element.get_text().strip()) < self.min_text_length:
            return False
        if self.required_descendant:
            return safe_select_one(element, self.required_descendant) is not None
        return True


class SelectorConfig(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    primary: tuple[str, ...] = ()
    fallback: tuple[str, ...] = ()
    heuristic: Heuristic | Predicate | None = None

    def accepts(self, element: Tag) -> bool:
        return self.heuristic is None or bool(self.heuristic(element))


# --------------------------------------------------------------------------- #
# Selector tiers
# --------------------------------------------------------------------------- #

CONVERSATION_CONTAINER = SelectorConfig(
    primary=(
        'main[class*="conversation"]',
        '[role="main"]',
        "main",
        ".conversation-container",
        '[data-testid="conversation"]',
    ),
    fallback=(
        "body > div > div > div > main",
        "body > div[id] > main",
        "#__next main",
    ),
    heuristic=Heuristic(min_child_elements=1),
)

MESSAGE_BLOCKS = SelectorConfig(
    primary=(
        "[data-message-id]",
        '[data-testid*="conversation-turn"]',
        '[data-testid*="message"]',
        '[class*="message"]',
        ".group[data-testid]",
    ),
    fallback=(
        "main > div > div > div",
        'main [class*="group"]',
        "article",
    ),
    heuristic=Heuristic(min_text_length=6, required_descendant="p, pre, code, ul, ol"),
)

TITLE_SELECTORS = SelectorConfig(
    primary=(
        "h1",
        '[class*="conversation-title"]',
        '[data-testid*="title"]',
        "header h1",
        "header h2",
    ),
    fallback=(
        "main h1",
        "nav h1",
    ),
)


# --------------------------------------------------------------------------- #
# Resolution
# --------------------------------------------------------------------------- #


def _first_accepted(root: Tag, selectors: tuple[str, ...], config: SelectorConfig) -> Tag | None:
    for selector in selectors:
        element = safe_select_one(root, selector)
        if element is not None and config.accepts(element):
            logger.debug("Resolved element with selector %r", selector)
            return element
    return None


def find_element(root: Tag, config: SelectorConfig) -> Tag | None:
    """Return the first accepted match from the primary tier, else the fallback tier.

    Only the first structural match of each selector is considered.
    """
    element = _first_accepted(root, config.primary, config)
    if element is None:
        element = _first_accepted(root, config.fallback, config)
    return element


def _collect(root: Tag, selectors: tuple[str, ...], config: SelectorConfig) -> list[Tag]:
    elements: list[Tag] = []
    seen: set[int] = set()
    for selector in selectors:
        for element in safe_select(root, selector):
            if id(element) in seen or not config.accepts(element):
                continue
            seen.add(id(element))
            elements.append(element)
    return elements


def find_elements(root: Tag, config: SelectorConfig) -> list[Tag]:
    """Collect accepted matches of every primary selector, deduplicated.

    The fallback tier is consulted only when the primary tier produced
    nothing; the two tiers are never merged.
    """
    elements = _collect(root, config.primary, config)
    if not elements:
        logger.debug("Primary selectors matched nothing, trying fallback")
        elements = _collect(root, config.fallback, config)
    return elements


def selector_hint(element: Tag) -> str:
    """Build a short locator such as ``div#x.a.b:nth-of-type(2)`` for debugging."""
    tag = element.name.lower()
    element_id = element.get("id")
    id_part = f"#{element_id}" if element_id else ""
    classes = class_string(element).split()
    class_part = "." + ".".join(classes[:2]) if classes else ""
    nth = 1 + len(element.find_previous_siblings(element.name))
    return f"{tag}{id_part}{class_part}:nth-of-type({nth})"
