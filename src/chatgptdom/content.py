"""Decompose a message block into ordered, typed content parts."""

from __future__ import annotations

import copy
import logging
import re
from urllib.parse import urljoin

from bs4 import NavigableString, Tag

from .config import MIN_SIGNIFICANT_TEXT_LENGTH
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
from .normalize import normalize_whitespace
from .selectors import class_string, safe_select

logger = logging.getLogger(__name__)

# Interactive controls rendered inside messages that are not content
UI_CONTROL_SELECTORS = (
    "button",
    '[role="button"]',
    ".copy-button",
    '[class*="toolbar"]',
    '[class*="action"]',
    '[aria-label*="Copy"]',
    '[aria-label*="Regenerate"]',
    '[aria-label*="Edit"]',
)

CODE_BLOCK_SELECTOR = 'pre, code[class*="language-"], code[class*="lang-"]'
LANGUAGE_ATTRIBUTE_SELECTOR = "[data-language]"
LANGUAGE_CLASS_SELECTOR = '[class*="language"]'
LIST_SELECTOR = "ol, ul"
QUOTE_SELECTOR = 'blockquote, [class*="quote"]'
HEADING_SELECTOR = "h1, h2, h3, h4, h5, h6"
IMAGE_SELECTOR = "img"
LINK_SELECTOR = "a[href]"

_LANGUAGE_CLASS = re.compile(r"(?:language|lang)-(\w+)", re.IGNORECASE)
_LANGUAGE_LABEL = re.compile(r"^[\w+#.-]{1,30}$")
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def strip_ui_controls(tree: Tag) -> Tag:
    """Remove interactive controls from ``tree`` in place and return it."""
    for selector in UI_CONTROL_SELECTORS:
        for element in safe_select(tree, selector):
            if not element.decomposed:
                element.decompose()
    return tree


def extract_text_content(element: Tag) -> str:
    """Normalized text of ``element`` with UI controls left out.

    Works on a copy; the caller's tree is never modified.
    """
    working = strip_ui_controls(copy.copy(element))
    return normalize_whitespace(working.get_text())


def _outermost(elements: list[Tag]) -> list[Tag]:
    """Drop matches nested inside an earlier match (document order)."""
    kept: list[Tag] = []
    kept_ids: set[int] = set()
    for element in elements:
        if any(id(parent) in kept_ids for parent in element.parents):
            continue
        kept.append(element)
        kept_ids.add(id(element))
    return kept


def _resolve(ref: str | None, base_url: str | None) -> str | None:
    if ref is None or not base_url:
        return ref
    return urljoin(base_url, ref)


# --------------------------------------------------------------------------- #
# Code blocks
# --------------------------------------------------------------------------- #


def detect_code_language(block: Tag) -> str | None:
    """Guess a code block's language.

    Looks for ``language-x``/``lang-x`` on the block or its inner ``code``
    element, then for a nearby label carrying ``data-language`` or a
    language-styled class.
    """
    for candidate in (block, block.find("code")):
        if isinstance(candidate, Tag):
            match = _LANGUAGE_CLASS.search(class_string(candidate))
            if match:
                return match.group(1).lower()

    scope = block.parent if block.parent is not None else block
    for label in safe_select(scope, LANGUAGE_ATTRIBUTE_SELECTOR):
        value = label.get("data-language")
        if isinstance(value, str) and value.strip():
            return value.strip()

    for label in safe_select(scope, LANGUAGE_CLASS_SELECTOR):
        if label.name in ("pre", "code") or label is block:
            continue
        text = label.get_text().strip().lower()
        if _LANGUAGE_LABEL.match(text):
            return text

    return None


def _code_blocks(root: Tag) -> list[tuple[Tag, Part | None]]:
    found: list[tuple[Tag, Part | None]] = []
    for block in _outermost(safe_select(root, CODE_BLOCK_SELECTOR)):
        body = block if block.name == "code" else (block.find("code") or block)
        body = strip_ui_controls(copy.copy(body))
        code = body.get_text().replace("\r\n", "\n").replace("\r", "\n").strip()
        part = CodePart(lang=detect_code_language(block), code=code) if code else None
        found.append((block, part))
    return found


def extract_code_blocks(element: Tag) -> list[Part]:
    return [part for _, part in _code_blocks(element) if part is not None]


# --------------------------------------------------------------------------- #
# Lists, quotes, headings, images, links
# --------------------------------------------------------------------------- #


def _lists(root: Tag) -> list[tuple[Tag, Part | None]]:
    found: list[tuple[Tag, Part | None]] = []
    for lst in safe_select(root, LIST_SELECTOR):
        items = []
        for li in lst.find_all("li", recursive=False):
            text = extract_text_content(li)
            if text:
                items.append(text)
        part = ListPart(ordered=lst.name == "ol", items=items) if items else None
        found.append((lst, part))
    return found


def extract_lists(element: Tag) -> list[Part]:
    """One list part per list element, from its direct ``li`` children."""
    return [part for _, part in _lists(element) if part is not None]


def _quotes(root: Tag) -> list[tuple[Tag, Part | None]]:
    found: list[tuple[Tag, Part | None]] = []
    for quote in _outermost(safe_select(root, QUOTE_SELECTOR)):
        text = extract_text_content(quote)
        found.append((quote, QuotePart(text=text) if text else None))
    return found


def extract_quotes(element: Tag) -> list[Part]:
    return [part for _, part in _quotes(element) if part is not None]


def _headings(root: Tag) -> list[tuple[Tag, Part | None]]:
    found: list[tuple[Tag, Part | None]] = []
    for heading in safe_select(root, HEADING_SELECTOR):
        text = extract_text_content(heading)
        part = HeadingPart(level=int(heading.name[1]), text=text) if text else None
        found.append((heading, part))
    return found


def extract_headings(element: Tag) -> list[Part]:
    return [part for _, part in _headings(element) if part is not None]


def _images(root: Tag, base_url: str | None = None) -> list[tuple[Tag, Part | None]]:
    found: list[tuple[Tag, Part | None]] = []
    for img in safe_select(root, IMAGE_SELECTOR):
        src = img.get("src")
        alt = img.get("alt")
        part = ImageRefPart(
            alt=alt if isinstance(alt, str) else None,
            src=_resolve(src, base_url) if isinstance(src, str) else None,
        )
        found.append((img, part))
    return found


def extract_images(element: Tag, base_url: str | None = None) -> list[Part]:
    return [part for _, part in _images(element, base_url) if part is not None]


def extract_links(element: Tag, base_url: str | None = None) -> list[Part]:
    """Link parts for every anchor with both an href and visible text."""
    parts: list[Part] = []
    for link in safe_select(element, LINK_SELECTOR):
        href = link.get("href")
        text = extract_text_content(link)
        if isinstance(href, str) and href and text:
            parts.append(LinkPart(text=text, href=_resolve(href, base_url)))
    return parts


def split_into_paragraphs(text: str) -> list[Part]:
    """Split text on blank lines into one text part per paragraph."""
    paragraphs = (p.strip() for p in _PARAGRAPH_BREAK.split(text))
    return [TextPart(text=p) for p in paragraphs if p]


# --------------------------------------------------------------------------- #
# Assembly
# --------------------------------------------------------------------------- #


def extract_content_parts(element: Tag, base_url: str | None = None) -> list[Part]:
    """Decompose a message block into parts.

    Structural content comes first in a fixed order (headings, quotes,
    lists, code, images), followed by the leftover prose when it is
    significant. A block without headings, quotes, lists or code yields a
    single text part, placeholder markers included. A block whose text is
    all UI chrome yields an ``unknown`` part with its raw text. Never modifies ``element``.
    """
    working = copy.copy(element)

    headings = _headings(working)
    quotes = _quotes(working)
    lists = _lists(working)
    code_blocks = _code_blocks(working)
    images = _images(working, base_url)

    extracted = headings + quotes + lists + code_blocks + images
    for node, _ in extracted:
        if node.decomposed or node.parent is None:
            continue
        node.replace_with(NavigableString(f" [{node.name.upper()}] "))

    remaining = extract_text_content(working)

    def found(pairs: list[tuple[Tag, Part | None]]) -> list[Part]:
        return [part for _, part in pairs if part is not None]

    structural = found(headings) + found(quotes) + found(lists) + found(code_blocks)
    image_parts = found(images)

    parts: list[Part] = []
    if structural:
        parts.extend(structural)
        parts.extend(image_parts)
        if len(remaining) > MIN_SIGNIFICANT_TEXT_LENGTH:
            parts.append(TextPart(text=remaining))
    elif remaining:
        parts.append(TextPart(text=remaining))
    else:
        raw_text = normalize_whitespace(element.get_text())
        if raw_text:
            logger.debug("Falling back to unknown part for <%s>", element.name)
            parts.append(UnknownPart(raw_text=raw_text))

    return parts
