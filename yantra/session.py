"""In-memory conversation buffer for a single agent run."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime, timezone

from yantra.messages import ConversationContext, FunctionDecl, Message, MessageRole


class Session:
    """Conversation messages plus a separately held system prompt.

    Not safe for concurrent use: one task owns a session.
    """

    def __init__(self, system_prompt: str = "", tools: Iterable[FunctionDecl] | None = None) -> None:
        self.system_prompt = system_prompt
        self.tools: list[FunctionDecl] = list(tools or [])
        self._messages: list[Message] = []

    def append(self, message: Message) -> None:
        """Add a message, stamping ``created_at`` with the current time if unset."""
        if message.created_at is None:
            message = replace(message, created_at=datetime.now(timezone.utc))
        self._messages.append(message)

    def context(self) -> ConversationContext:
        """Build the provider context: system prompt first, then the messages."""
        messages: list[Message] = []
        if self.system_prompt:
            messages.append(Message(role=MessageRole.SYSTEM, content=self.system_prompt))
        messages.extend(self._messages)
        return ConversationContext(messages=messages, tools=list(self.tools))

    def messages(self) -> list[Message]:
        """Return a copy of the messages, without the system prompt."""
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def compact_with_summary(self, summary: str, keep_count: int) -> None:
        """Replace all but the last ``keep_count`` messages with a summary exchange."""
        if keep_count < 0 or keep_count >= len(self._messages):
            return
        tail = self._messages[len(self._messages) - keep_count:]
        self._messages = [
            Message(role=MessageRole.USER, content="[Conversation Summary]\n" + summary),
            Message(
                role=MessageRole.ASSISTANT,
                content="I have the context from the conversation summary. Continuing.",
            ),
            *tail,
        ]