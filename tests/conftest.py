"""Shared pytest fixtures."""

from datetime import datetime, timezone

import pytest
from bs4 import BeautifulSoup, Tag


@pytest.fixture
def make_tree():
    """Build a BeautifulSoup tree from an HTML string."""

    def _make(html: str) -> BeautifulSoup:
        return BeautifulSoup(html, "html.parser")

    return _make


@pytest.fixture
def make_element(make_tree):
    """Parse an HTML fragment and return its first element."""

    def _make(html: str) -> Tag:
        tree = make_tree(html)
        return next(c for c in tree.children if isinstance(c, Tag))

    return _make


@pytest.fixture
def frozen_clock():
    instant = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    return lambda: instant
