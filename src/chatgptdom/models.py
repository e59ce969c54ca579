"""Data models for parsed chat documents (schema version 1.0)."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_serializer, model_validator
from pydantic.alias_generators import to_camel

Role = Literal["user", "assistant", "system", "unknown"]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class _OmitNone(_Frozen):
    """Drops unset optional fields from the serialized form."""

    @model_serializer(mode="wrap")
    def _omit_none(self, handler: Any) -> dict[str, Any]:
        return {k: v for k, v in handler(self).items() if v is not None}


# --------------------------------------------------------------------------- #
# Message parts
# --------------------------------------------------------------------------- #


class TextPart(_Frozen):
    type: Literal["text"] = "text"
    text: str


class CodePart(_Frozen):
    type: Literal["code"] = "code"
    lang: str | None = None
    code: str


class ListPart(_Frozen):
    type: Literal["list"] = "list"
    ordered: bool
    items: list[str]


class QuotePart(_Frozen):
    type: Literal["quote"] = "quote"
    text: str


class LinkPart(_Frozen):
    type: Literal["link"] = "link"
    text: str
    href: str


class HeadingPart(_Frozen):
    type: Literal["heading"] = "heading"
    level: int = Field(ge=1, le=6)
    text: str


class ImageRefPart(_Frozen):
    type: Literal["imageRef"] = "imageRef"
    alt: str | None = None
    src: str | None = None


class UnknownPart(_Frozen):
    type: Literal["unknown"] = "unknown"
    raw_text: str


Part = Annotated[
    Union[
        TextPart,
        CodePart,
        ListPart,
        QuotePart,
        LinkPart,
        HeadingPart,
        ImageRefPart,
        UnknownPart,
    ],
    Field(discriminator="type"),
]


# --------------------------------------------------------------------------- #
# Document
# --------------------------------------------------------------------------- #


class DomRef(_OmitNone):
    selector_hint: str | None = None


class Message(_OmitNone):
    id: str
    index: int = Field(ge=0)
    role: Role
    author: str | None = None
    created_at: str | None = None
    dom_ref: DomRef | None = None
    parts: list[Part] = Field(min_length=1)


class Source(_Frozen):
    url: str
    captured_at: str
    platform: Literal["chatgpt"] = "chatgpt"


class Chat(_OmitNone):
    chat_id: str | None = None
    title: str | None = None


class ChatDocument(_Frozen):
    schema_version: Literal["1.0"] = "1.0"
    source: Source
    chat: Chat = Chat()
    messages: list[Message] = []

    @model_validator(mode="after")
    def _check_order(self) -> ChatDocument:
        indices = [m.index for m in self.messages]
        if indices != sorted(indices):
            raise ValueError("messages must be ordered by ascending index")
        return self

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    def to_json(self, indent: int | None = None) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)


class ParseResult(BaseModel):
    document: ChatDocument
    warnings: list[str] = []


class ParserOptions(BaseModel):
    """Per-call parser options.

    debug: attach a locator hint to every message.
    base_url: resolve relative image and link references against this URL.
    url: source URL of the snapshot; discovered from the tree when omitted.
    """

    debug: bool = False
    base_url: str | None = None
    url: str | None = None
