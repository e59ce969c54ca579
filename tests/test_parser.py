"""Tests for full-document parsing and readiness polling."""

import asyncio
import json

import pytest

from chatgptdom import parser as parser_module
from chatgptdom.models import CodePart, ListPart, ParserOptions, TextPart
from chatgptdom.parser import (
    ContainerNotFound,
    extract_chat_id,
    is_chatgpt_page,
    parse,
    poll_ready,
)

TWO_MESSAGES = """
<main>
  <div data-message-id="1" data-role="user">
    <p>Hello, how are you?</p>
  </div>
  <div data-message-id="2" data-role="assistant">
    <p>I'm doing well, thank you!</p>
  </div>
</main>
"""


class TestBasicParsing:
    def test_two_message_conversation(self, make_tree) -> None:
        result = parse(make_tree(TWO_MESSAGES))
        messages = result.document.messages

        assert result.document.schema_version == "1.0"
        assert len(messages) == 2
        assert messages[0].role == "user"
        assert messages[1].role == "assistant"
        assert messages[0].parts == [TextPart(text="Hello, how are you?")]
        assert messages[1].parts == [TextPart(text="I'm doing well, thank you!")]
        assert result.warnings == []

    def test_code_block(self, make_tree) -> None:
        tree = make_tree(
            '<main><div data-message-id="1" data-role="assistant">'
            '<pre><code class="language-python">print("hello")</code></pre></div></main>'
        )
        [message] = parse(tree).document.messages
        code = next(p for p in message.parts if isinstance(p, CodePart))
        assert code.lang == "python"
        assert 'print("hello")' in code.code

    def test_ordered_list(self, make_tree) -> None:
        tree = make_tree(
            '<main><div data-message-id="1" data-role="assistant">'
            "<ol><li>First</li><li>Second</li></ol></div></main>"
        )
        [message] = parse(tree).document.messages
        assert message.parts == [ListPart(ordered=True, items=["First", "Second"])]

    def test_indices_follow_enumeration(self, make_tree) -> None:
        tree = make_tree(
            """
            <main>
              <div data-message-id="1" data-role="user"><p>First message</p></div>
              <div data-message-id="2" data-role="assistant"><p>Second message</p></div>
              <div data-message-id="3" data-role="user"><p>Third message</p></div>
            </main>
            """
        )
        messages = parse(tree).document.messages
        assert [m.index for m in messages] == [0, 1, 2]
        assert [m.id.rsplit("_", 1)[1] for m in messages] == ["0", "1", "2"]


class TestMetadata:
    def test_chat_id_from_url(self, make_tree) -> None:
        options = ParserOptions(url="https://host/c/abc123def456")
        document = parse(make_tree(TWO_MESSAGES), options).document
        assert document.chat.chat_id == "abc123def456"
        assert document.source.url == "https://host/c/abc123def456"
        assert document.source.platform == "chatgpt"

    def test_url_from_canonical_link(self, make_tree) -> None:
        tree = make_tree(
            '<html><head><link rel="canonical" href="https://chatgpt.com/c/xyz-789"></head>'
            f"<body>{TWO_MESSAGES}</body></html>"
        )
        document = parse(tree).document
        assert document.source.url == "https://chatgpt.com/c/xyz-789"
        assert document.chat.chat_id == "xyz-789"

    def test_title_from_heading(self, make_tree) -> None:
        tree = make_tree(f"<h1>My Conversation Title</h1>{TWO_MESSAGES}")
        assert parse(tree).document.chat.title == "My Conversation Title"

    def test_title_falls_back_to_page_title(self, make_tree) -> None:
        tree = make_tree(f"<html><head><title>Trip planning</title></head><body>{TWO_MESSAGES}</body></html>")
        assert parse(tree).document.chat.title == "Trip planning"

    def test_product_name_is_not_a_title(self, make_tree) -> None:
        tree = make_tree(f"<html><head><title>ChatGPT</title></head><body>{TWO_MESSAGES}</body></html>")
        document = parse(tree).document
        assert document.chat.title is None
        assert "title" not in document.to_dict()["chat"]

    def test_captured_at_uses_clock(self, make_tree, frozen_clock) -> None:
        document = parse(make_tree(TWO_MESSAGES), clock=frozen_clock).document
        assert document.source.captured_at == "2024-05-01T12:00:00+00:00"

    def test_timestamp_and_author(self, make_tree) -> None:
        tree = make_tree(
            '<main><div data-message-id="1" data-message-model-slug="gpt-4o">'
            '<div data-message-author-role="assistant"><p>Answer text</p></div>'
            '<time datetime="2024-01-02T03:04:05Z">Jan 2</time></div></main>'
        )
        [message] = parse(tree).document.messages
        assert message.role == "assistant"
        assert message.author == "gpt-4o"
        assert message.created_at == "2024-01-02T03:04:05Z"

    def test_debug_locator_hint(self, make_tree) -> None:
        document = parse(make_tree(TWO_MESSAGES), ParserOptions(debug=True)).document
        assert document.messages[1].dom_ref.selector_hint == "div:nth-of-type(2)"

    def test_no_locator_hint_by_default(self, make_tree) -> None:
        document = parse(make_tree(TWO_MESSAGES)).document
        assert document.messages[0].dom_ref is None
        assert "domRef" not in document.to_dict()["messages"][0]


class TestErrors:
    def test_missing_container_raises(self, make_tree) -> None:
        with pytest.raises(ContainerNotFound):
            parse(make_tree("<div>No main element</div>"))

    def test_empty_container_is_not_a_container(self, make_tree) -> None:
        with pytest.raises(ContainerNotFound):
            parse(make_tree("<main></main>"))

    def test_no_message_blocks_warns(self, make_tree) -> None:
        result = parse(make_tree("<main><div><p>Hi</p></div></main>"))
        assert result.document.messages == []
        assert any("No message blocks" in w for w in result.warnings)

    def test_empty_message_is_dropped_and_leaves_gap(self, make_tree, monkeypatch) -> None:
        real = parser_module.extract_content_parts

        def fake(element, base_url=None):
            if element.get("data-message-id") == "2":
                return []
            return real(element, base_url=base_url)

        monkeypatch.setattr(parser_module, "extract_content_parts", fake)
        tree = make_tree(
            """
            <main>
              <div data-message-id="1"><p>First message</p></div>
              <div data-message-id="2"><p>Second message</p></div>
              <div data-message-id="3"><p>Third message</p></div>
            </main>
            """
        )
        result = parse(tree)
        assert [m.index for m in result.document.messages] == [0, 2]
        assert result.warnings == ["Message 1: No content extracted"]

    def test_message_failure_becomes_warning(self, make_tree, monkeypatch) -> None:
        real = parser_module.detect_role

        def flaky(element):
            if element.get("data-message-id") == "1":
                raise RuntimeError("boom")
            return real(element)

        monkeypatch.setattr(parser_module, "detect_role", flaky)
        result = parse(make_tree(TWO_MESSAGES))
        assert [m.index for m in result.document.messages] == [1]
        assert result.warnings == ["Message 0: Parse error - boom"]


class TestDeterminism:
    def test_same_input_same_document(self, make_tree, frozen_clock) -> None:
        options = ParserOptions(url="https://chatgpt.com/c/abc", debug=True)
        first = parse(make_tree(TWO_MESSAGES), options, clock=frozen_clock)
        second = parse(make_tree(TWO_MESSAGES), options, clock=frozen_clock)
        assert first.document.to_json() == second.document.to_json()
        assert first.warnings == second.warnings

    def test_source_tree_is_untouched(self, make_tree) -> None:
        tree = make_tree(TWO_MESSAGES)
        before = str(tree)
        parse(tree)
        assert str(tree) == before

    def test_document_serializes_with_wire_names(self, make_tree, frozen_clock) -> None:
        options = ParserOptions(url="https://chatgpt.com/c/abc")
        data = json.loads(parse(make_tree(TWO_MESSAGES), options, clock=frozen_clock).document.to_json())
        assert data["schemaVersion"] == "1.0"
        assert data["source"] == {
            "url": "https://chatgpt.com/c/abc",
            "capturedAt": "2024-05-01T12:00:00+00:00",
            "platform": "chatgpt",
        }
        assert data["chat"] == {"chatId": "abc"}
        assert data["messages"][0]["parts"] == [{"type": "text", "text": "Hello, how are you?"}]
        assert set(data["messages"][0]) == {"id", "index", "role", "parts"}


class TestHelpers:
    def test_extract_chat_id(self) -> None:
        assert extract_chat_id("https://chatgpt.com/c/6650-ab_cd?model=x") == "6650-ab_cd"
        assert extract_chat_id("https://chatgpt.com/") is None

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://chat.openai.com/c/123", True),
            ("https://chatgpt.com/c/123", True),
            ("https://example.com", False),
        ],
    )
    def test_is_chatgpt_page(self, url, expected) -> None:
        assert is_chatgpt_page(url) is expected


class TestPollReady:
    def test_ready_immediately(self, make_tree) -> None:
        assert asyncio.run(poll_ready(make_tree(TWO_MESSAGES), timeout_ms=0)) is True

    def test_times_out(self, make_tree) -> None:
        tree = make_tree("<main><div>loading</div></main>")
        assert asyncio.run(poll_ready(tree, timeout_ms=50, interval_ms=10)) is False

    def test_sees_content_rendered_while_waiting(self, make_tree) -> None:
        tree = make_tree("<main><div>loading</div></main>")

        async def render_later():
            await asyncio.sleep(0.02)
            main = tree.find("main")
            main.clear()
            main.append(make_tree('<div data-message-id="1"><p>Rendered now</p></div>').find("div"))

        async def scenario():
            ready, _ = await asyncio.gather(
                poll_ready(tree, timeout_ms=2000, interval_ms=5),
                render_later(),
            )
            return ready

        assert asyncio.run(scenario()) is True
