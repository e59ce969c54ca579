"""Central configuration for parser constants."""

import os

# Platform tag stamped on every document
PLATFORM = "chatgpt"
PRODUCT_NAME = "ChatGPT"
SCHEMA_VERSION = "1.0"

# Hosts that serve the chat UI
SUPPORTED_HOSTS = ("chat.openai.com", "chatgpt.com")

# Content decomposition
MIN_SIGNIFICANT_TEXT_LENGTH = 10  # Trailing prose shorter than this is noise
MAX_TITLE_LENGTH = 200

# Readiness polling, overridable via CHATGPTDOM_* env vars
POLL_INTERVAL_MS = int(os.environ.get("CHATGPTDOM_POLL_INTERVAL_MS", "500"))
READY_TIMEOUT_MS = int(os.environ.get("CHATGPTDOM_READY_TIMEOUT_MS", "10000"))

# BeautifulSoup backend used when loading snapshots
HTML_PARSER = os.environ.get("CHATGPTDOM_HTML_PARSER", "html.parser")

LOG_LEVEL = os.environ.get("CHATGPTDOM_LOG_LEVEL", "WARNING").upper()
