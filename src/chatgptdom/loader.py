"""Load saved chat pages (HTML snapshots) into parseable trees."""

from __future__ import annotations

import logging
import re
from pathlib import Path

import click
from bs4 import BeautifulSoup

from .config import HTML_PARSER

logger = logging.getLogger(__name__)

# Browsers stamp "Save page as" output with <!-- saved from url=(0047)https://... -->
_SAVED_FROM = re.compile(r"<!--\s*saved from url=\(\d+\)(\S+?)\s*-->", re.IGNORECASE)


def read_snapshot_html(path: str) -> str:
    snapshot = Path(path)

    if not snapshot.exists():
        raise click.ClickException(f"File not found: {path}")

    if snapshot.suffix.lower() not in (".html", ".htm"):
        logger.warning("%s does not look like an HTML file, parsing anyway", snapshot)

    return snapshot.read_text(encoding="utf-8", errors="replace")


def snapshot_url(html: str) -> str | None:
    """Recover the page URL a snapshot was saved from, if recorded."""
    match = _SAVED_FROM.search(html)
    if match:
        return match.group(1)
    return None


def load_snapshot(path: str, parser: str = HTML_PARSER) -> tuple[BeautifulSoup, str | None]:
    """Read an HTML snapshot from disk.

    Returns the parsed tree and the source URL found in the browser's
    "saved from" marker. Canonical-link and og:url discovery is left to
    the parser, which sees the tree.
    """
    html = read_snapshot_html(path)
    soup = BeautifulSoup(html, parser)
    url = snapshot_url(html)
    logger.debug("Loaded %s (%d chars, url=%s)", path, len(html), url)
    return soup, url
