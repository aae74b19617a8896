"""
CLI Entry Adapter.

Responsibility:
- Receive user input from terminal
- Separate slash commands from chat messages
- Normalize chat messages to the ChatRequest contract
- NO intent parsing, NO card logic, NO registry access
"""

import re
import uuid

from shared.models import ChatRequest

COMMANDS = ("tools", "services", "refresh", "cards", "quit")
_QUIT_WORDS = ("exit", "quit", "q")
_CARD_REFERENCE = re.compile(r"@cards\[([^,\]]+),([a-z]+)\]")


class CLIAdapter:
    """Command-line entry adapter."""

    def __init__(self, session_id: str | None = None, domain: str | None = None):
        self.session_id = session_id or str(uuid.uuid4())[:8]
        self.domain = domain

    def parse_command(self, raw_input: str) -> str | None:
        """Return the command name for '/tools', '/quit', ... or None for chat text."""
        text = raw_input.strip()
        if text.lower() in _QUIT_WORDS:
            return "quit"
        if not text.startswith("/"):
            return None
        name = text[1:].split(maxsplit=1)[0].lower() if len(text) > 1 else ""
        if name in ("exit", "q"):
            return "quit"
        return name if name in COMMANDS else None

    @staticmethod
    def command_argument(raw_input: str) -> str | None:
        parts = raw_input.strip().split(maxsplit=1)
        return parts[1].strip() if len(parts) > 1 else None

    def read_input(self, raw_input: str) -> ChatRequest:
        """Normalize raw CLI input to ChatRequest."""
        return ChatRequest(
            message=raw_input.strip(),
            domain=self.domain,
            session_id=self.session_id,
        )

    @staticmethod
    def card_references(text: str) -> list[tuple[str, str]]:
        """(card id, card type) pairs referenced inline in a reply."""
        return _CARD_REFERENCE.findall(text or "")
