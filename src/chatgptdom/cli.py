"""CLI interface for chatgptdom."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections import Counter

import click

from . import __version__
from .config import LOG_LEVEL


def _load(snapshot: str, url: str | None, base_url: str | None, debug: bool):
    from .loader import load_snapshot
    from .models import ParserOptions
    from .parser import ContainerNotFound, parse

    soup, saved_url = load_snapshot(snapshot)
    options = ParserOptions(debug=debug, base_url=base_url, url=url or saved_url)
    try:
        return parse(soup, options)
    except ContainerNotFound as e:
        raise click.ClickException(
            f"{e}. Is {snapshot} a saved ChatGPT conversation page?"
        ) from e


def _echo_warnings(warnings: list[str]):
    for warning in warnings:
        click.echo(click.style(f"warning: {warning}", fg="yellow"), err=True)


@click.group()
@click.version_option(version=__version__, prog_name="chatgptdom")
@click.option("-v", "--verbose", is_flag=True, help="Log parser details to stderr")
def cli(verbose: bool):
    """chatgptdom — Turn a rendered ChatGPT conversation into structured JSON.

    Save a conversation page from your browser ("Save page as… → HTML")
    and point these commands at the file.
    """
    # Logs go to stderr; stdout carries the JSON document
    logging.basicConfig(
        level=logging.DEBUG if verbose else LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


@cli.command("parse")
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
@click.option("--url", help="Source URL of the page (default: read from the snapshot)")
@click.option("--base-url", help="Resolve relative image and link references against this URL")
@click.option("--debug", is_flag=True, help="Attach a locator hint to every message")
@click.option("--indent", type=int, default=2, show_default=True, help="JSON indent (0 for compact)")
@click.option("-o", "--output", type=click.File("w"), default="-", help="Write JSON here instead of stdout")
def parse_cmd(snapshot: str, url: str | None, base_url: str | None, debug: bool, indent: int, output):
    """Parse a saved conversation page and print the chat document as JSON.

    Example:
        chatgptdom parse ~/Downloads/chat.html -o chat.json
    """
    result = _load(snapshot, url, base_url, debug)
    output.write(result.document.to_json(indent=indent or None))
    output.write("\n")
    _echo_warnings(result.warnings)


@cli.command()
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
def stats(snapshot: str):
    """Show what the parser finds in a saved conversation page."""
    from .parser import is_chatgpt_page

    result = _load(snapshot, None, None, False)
    doc = result.document

    roles = Counter(m.role for m in doc.messages)
    part_types = Counter(p.type for m in doc.messages for p in m.parts)

    click.echo()
    click.echo(click.style("Conversation", bold=True))
    click.echo(f"  Title:     {doc.chat.title or '(untitled)'}")
    click.echo(f"  URL:       {doc.source.url or '(unknown)'}")
    click.echo(f"  Chat ID:   {doc.chat.chat_id or '(unknown)'}")
    click.echo(f"  Messages:  {len(doc.messages)}")
    for role, count in roles.most_common():
        click.echo(f"    {role}: {count}")
    if part_types:
        click.echo("  Parts:")
        for part_type, count in part_types.most_common():
            click.echo(f"    {part_type}: {count}")
    click.echo(f"  Warnings:  {len(result.warnings)}")
    click.echo()
    _echo_warnings(result.warnings)
    if doc.source.url and not is_chatgpt_page(doc.source.url):
        click.echo(
            click.style(f"note: {doc.source.url} is not a ChatGPT URL", fg="yellow"),
            err=True,
        )


@cli.command()
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
def check(snapshot: str):
    """Exit non-zero unless the page has a conversation with messages."""
    from .loader import load_snapshot
    from .parser import poll_ready

    soup, _ = load_snapshot(snapshot)
    if not asyncio.run(poll_ready(soup, timeout_ms=0)):
        raise click.ClickException("No conversation with messages found.")
    click.echo(click.style("Ready", fg="green", bold=True))
