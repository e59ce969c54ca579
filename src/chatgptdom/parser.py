"""Parse a rendered ChatGPT conversation tree into a normalized chat document."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Callable
from datetime import datetime, timezone

from bs4 import BeautifulSoup, Tag

from .config import (
    MAX_TITLE_LENGTH,
    PLATFORM,
    POLL_INTERVAL_MS,
    PRODUCT_NAME,
    READY_TIMEOUT_MS,
    SCHEMA_VERSION,
    SUPPORTED_HOSTS,
)
from .content import extract_content_parts
from .models import Chat, ChatDocument, DomRef, Message, ParseResult, ParserOptions, Source
from .roles import detect_role
from .selectors import (
    CONVERSATION_CONTAINER,
    MESSAGE_BLOCKS,
    TITLE_SELECTORS,
    find_element,
    find_elements,
    safe_select_one,
    selector_hint,
)
from .stable_ids import generate_message_id

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_CHAT_ID = re.compile(r"/c/([a-zA-Z0-9_-]+)")


class ParseError(Exception):
    """Base exception for parser failures."""


class ContainerNotFound(ParseError):
    """The tree holds no recognizable conversation container."""

    def __init__(self, message: str = "Conversation container not found"):
        super().__init__(message)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def extract_chat_id(url: str) -> str | None:
    """Pull the conversation id out of a ``/c/<id>`` URL path."""
    match = _CHAT_ID.search(url)
    return match.group(1) if match else None


def is_chatgpt_page(url: str) -> bool:
    return any(host in url for host in SUPPORTED_HOSTS)


def _owner_document(root: Tag) -> BeautifulSoup | None:
    node: Tag = root
    while node.parent is not None:
        node = node.parent
    return node if isinstance(node, BeautifulSoup) else None


def _document_url(root: Tag) -> str:
    """Best-effort source URL recorded in the page itself."""
    doc = _owner_document(root) or root
    for selector, attr in (('link[rel="canonical"]', "href"), ('meta[property="og:url"]', "content")):
        element = safe_select_one(doc, selector)
        value = element.get(attr) if element is not None else None
        if isinstance(value, str) and value:
            return value
    return ""


def extract_title(root: Tag) -> str | None:
    """Resolve the conversation title, falling back to the page title."""
    element = find_element(root, TITLE_SELECTORS)
    if element is not None:
        title = element.get_text().strip()
        if 0 < len(title) < MAX_TITLE_LENGTH:
            return title

    doc = _owner_document(root)
    if doc is not None and doc.title is not None:
        doc_title = doc.title.get_text().strip()
        if doc_title and PRODUCT_NAME not in doc_title:
            return doc_title

    return None


def _parse_message(
    element: Tag,
    index: int,
    options: ParserOptions,
    warnings: list[str],
) -> Message | None:
    """Parse a single message block; record a warning and return None on failure."""
    try:
        role = detect_role(element)
        parts = extract_content_parts(element, base_url=options.base_url)

        if not parts:
            logger.debug("Message %d: no content extracted, dropping", index)
            warnings.append(f"Message {index}: No content extracted")
            return None

        created_at = None
        time_element = safe_select_one(element, "time[datetime]")
        if time_element is not None:
            created_at = time_element.get("datetime") or None

        # Model that produced the turn, when the page exposes it
        author = element.get("data-message-model-slug")
        if not author:
            slug_element = safe_select_one(element, "[data-message-model-slug]")
            if slug_element is not None:
                author = slug_element.get("data-message-model-slug")

        return Message(
            id=generate_message_id(role, parts, index),
            index=index,
            role=role,
            author=author or None,
            created_at=created_at,
            dom_ref=DomRef(selector_hint=selector_hint(element)) if options.debug else None,
            parts=parts,
        )
    except Exception as e:
        logger.warning("Failed to parse message %d", index, exc_info=True)
        warnings.append(f"Message {index}: Parse error - {e}")
        return None


def parse(
    root: Tag,
    options: ParserOptions | None = None,
    *,
    clock: Clock | None = None,
) -> ParseResult:
    """Parse a conversation tree into a ParseResult.

    ``root`` may be a whole BeautifulSoup document or any element inside
    one. Blocks that yield no content are dropped with a warning; message
    indices keep their position in the enumerated block list, so gaps are
    possible.

    Raises:
        ContainerNotFound: no element qualifies as the conversation container.
    """
    options = options or ParserOptions()
    warnings: list[str] = []

    container = find_element(root, CONVERSATION_CONTAINER)
    if container is None:
        logger.warning("Conversation container not found")
        raise ContainerNotFound()

    elements = find_elements(container, MESSAGE_BLOCKS)
    if not elements:
        warnings.append("No message blocks found")

    messages: list[Message] = []
    for index, element in enumerate(elements):
        message = _parse_message(element, index, options, warnings)
        if message is not None:
            messages.append(message)

    url = options.url or _document_url(root)
    captured_at = (clock or _utc_now)().isoformat()

    document = ChatDocument(
        schema_version=SCHEMA_VERSION,
        source=Source(url=url, captured_at=captured_at, platform=PLATFORM),
        chat=Chat(chat_id=extract_chat_id(url), title=extract_title(root)),
        messages=messages,
    )

    logger.info(
        "Parsed %d of %d message blocks (%d warnings)",
        len(messages),
        len(elements),
        len(warnings),
    )
    return ParseResult(document=document, warnings=warnings)


def is_ready(root: Tag) -> bool:
    """True once the container and at least one message block resolve."""
    container = find_element(root, CONVERSATION_CONTAINER)
    return container is not None and bool(find_elements(container, MESSAGE_BLOCKS))


async def poll_ready(
    root: Tag,
    timeout_ms: int = READY_TIMEOUT_MS,
    interval_ms: int = POLL_INTERVAL_MS,
) -> bool:
    """Wait until the conversation has rendered, up to ``timeout_ms``.

    Checks immediately, then every ``interval_ms``. Does no parsing.
    """
    deadline = time.monotonic() + timeout_ms / 1000
    while True:
        if is_ready(root):
            return True
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            logger.debug("Conversation not ready after %d ms", timeout_ms)
            return False
        await asyncio.sleep(min(interval_ms / 1000, remaining))
