"""Conversation messages, streaming items, tools and the provider interface."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum, StrEnum
from typing import Any


class MessageRole(StrEnum):
    """Who sent a message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass
class FunctionCall:
    """Name and raw JSON arguments of a tool invocation."""

    name: str
    arguments: str = ""


@dataclass
class ToolCall:
    """A function call requested by the model."""

    id: str
    function: FunctionCall


@dataclass
class Message:
    """A single message in a conversation."""

    role: MessageRole
    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_call_id: str = ""
    tool_name: str = ""
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form, leaving out empty fields."""
        data: dict[str, Any] = {"role": str(self.role)}
        if self.content:
            data["content"] = self.content
        if self.tool_calls:
            data["tool_calls"] = [
                {
                    "id": call.id,
                    "function": {
                        "name": call.function.name,
                        "arguments": call.function.arguments,
                    },
                }
                for call in self.tool_calls
            ]
        if self.tool_call_id:
            data["tool_call_id"] = self.tool_call_id
        if self.tool_name:
            data["tool_name"] = self.tool_name
        if self.created_at is not None:
            data["created_at"] = self.created_at.isoformat()
        return data


@dataclass
class FunctionDecl:
    """A tool's name, description and JSON Schema parameters, as sent to the model."""

    name: str
    description: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)


@dataclass
class ConversationContext:
    """The ordered history and tool declarations sent to a provider."""

    messages: list[Message] = field(default_factory=list)
    tools: list[FunctionDecl] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Usage:
    """Token counts reported by a provider."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: Usage) -> Usage:
        if not isinstance(other, Usage):
            return NotImplemented
        return Usage(
            self.prompt_tokens + other.prompt_tokens,
            self.completion_tokens + other.completion_tokens,
            self.total_tokens + other.total_tokens,
        )


@dataclass
class Response:
    """The complete result of a provider call."""

    message: Message
    finish_reason: str = ""
    usage: Usage = field(default_factory=Usage)


class StreamItemType(IntEnum):
    """Kinds of events in a provider stream."""

    TEXT = 0
    TOOL_CALL_DELTA = 1
    DONE = 2
    ERROR = 3
    PROGRESS = 4


@dataclass
class ToolCallDelta:
    """An incremental fragment of a tool call during streaming."""

    index: int
    id: str = ""
    name: str = ""
    arguments: str = ""


class ProgressKind(StrEnum):
    """The runtime phase a progress event reports."""

    PROVIDER_CALL = "provider_call"
    TOOL_EXECUTION = "tool_execution"
    SUMMARIZATION = "summarization"
    MEMORY_RETRIEVAL = "memory_retrieval"


@dataclass
class ProgressEvent:
    """A phase transition emitted by the runtime."""

    kind: ProgressKind
    tool: str = ""
    message: str = ""


@dataclass
class StreamItem:
    """A single event in a provider response stream."""

    type: StreamItemType
    text: str = ""
    tool_call_delta: ToolCallDelta | None = None
    usage: Usage | None = None
    progress: ProgressEvent | None = None
    error: BaseException | None = None


class SafetyTier(IntEnum):
    """How risky a tool's side effects are."""

    READ_ONLY = 0
    SIDE_EFFECTING = 1
    PRIVILEGED = 2

    def __str__(self) -> str:
        return self.name.lower()


@dataclass
class ToolExecutionContext:
    """Per-turn state handed to a tool.

    Progress events are offered to ``progress`` with ``put_nowait`` and are
    dropped when the queue is full.
    """

    session_id: str = ""
    user_id: str = ""
    workspace_dir: str = ""
    progress: asyncio.Queue[ProgressEvent] | None = None


class Tool(ABC):
    """A capability the model can call.

    ``arguments`` passed to :meth:`execute` is the raw JSON text produced by
    the model. ``timeout`` is in seconds; zero or less means no limit.
    """

    name: str = ""
    description: str = ""
    safety_tier: SafetyTier = SafetyTier.SIDE_EFFECTING
    timeout: float = 0.0

    def decl(self) -> FunctionDecl:
        """Return the declaration sent to the model."""
        return FunctionDecl(
            name=self.name,
            description=self.description,
            parameters={"type": "object", "properties": {}},
        )

    @abstractmethod
    async def execute(self, arguments: str, exec_ctx: ToolExecutionContext) -> str:
        """Run the tool and return its textual output."""


class ProviderType(StrEnum):
    """The kind of LLM API a provider speaks."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    OPENAI_RESPONSES = "openai_responses"


class Provider(ABC):
    """An LLM backend."""

    provider_id: str = ""
    model_id: str = ""

    @abstractmethod
    async def complete(self, context: ConversationContext) -> Response:
        """Send the context and return the full response."""

    @abstractmethod
    def stream(self, context: ConversationContext) -> AsyncIterator[StreamItem]:
        """Send the context and yield stream items as they arrive."""

    @abstractmethod
    def max_context_tokens(self) -> int:
        """Return the model's context window in tokens, or 0 if unknown."""