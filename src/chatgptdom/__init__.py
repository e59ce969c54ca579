"""chatgptdom — resilient extraction of ChatGPT conversations from rendered markup."""

__version__ = "0.1.0"

from .models import ChatDocument, Message, ParseResult, ParserOptions  # noqa: E402
from .parser import ContainerNotFound, ParseError, is_chatgpt_page, parse, poll_ready  # noqa: E402

__all__ = [
    "ChatDocument",
    "ContainerNotFound",
    "Message",
    "ParseError",
    "ParseResult",
    "ParserOptions",
    "__version__",
    "is_chatgpt_page",
    "parse",
    "poll_ready",
]
