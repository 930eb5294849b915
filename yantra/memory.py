"""Persistent-memory records, interfaces, and multi-agent delegation types."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from yantra.messages import Message


def _format_time(moment: datetime) -> str:
    text = moment.isoformat()
    return text[:-6] + "Z" if text.endswith("+00:00") else text


@dataclass
class MemoryChunk:
    """A stored piece of knowledge with its retrieval score (0-1)."""

    id: str
    content: str
    source: str = ""
    tags: list[str] = field(default_factory=list)
    score: float = 0.0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "content": self.content, "source": self.source}
        if self.tags:
            data["tags"] = list(self.tags)
        if self.score:
            data["score"] = self.score
        data["created_at"] = _format_time(self.created_at)
        return data


@dataclass
class MemoryStoreRequest:
    """Input for saving a memory chunk."""

    content: str
    source: str = ""
    tags: list[str] = field(default_factory=list)


@dataclass
class HybridQueryRequest:
    """Parameters for a weighted vector plus full-text search."""

    query: str
    top_k: int = 0
    vector_weight: float = 0.0
    fts_weight: float = 0.0


@dataclass
class ScratchpadState:
    """Per-session working memory."""

    data: dict[str, str] = field(default_factory=dict)


@dataclass
class SessionSummary:
    """Rolling summarisation state for a session."""

    summary: str = ""
    epoch: int = 0


class Memory(ABC):
    """Basic persistence of knowledge chunks."""

    @abstractmethod
    async def store(self, request: MemoryStoreRequest) -> str:
        """Save a chunk and return its identifier."""

    @abstractmethod
    async def recall(self, query: str, top_k: int) -> list[MemoryChunk]:
        """Return chunks matching the query."""

    @abstractmethod
    async def forget(self, chunk_id: str) -> None:
        """Delete a chunk."""


class MemoryRetrieval(Memory):
    """Memory with hybrid search, summaries, scratchpads and conversation logs."""

    @abstractmethod
    async def hybrid_query(self, request: HybridQueryRequest) -> list[MemoryChunk]:
        """Run a weighted vector plus full-text retrieval."""

    @abstractmethod
    async def get_summary(self, session_id: str) -> SessionSummary | None:
        """Return the session's rolling summary, or None."""

    @abstractmethod
    async def set_summary(self, session_id: str, summary: SessionSummary) -> None:
        """Replace the session's rolling summary."""

    @abstractmethod
    async def get_scratchpad(self, session_id: str) -> ScratchpadState:
        """Return the session's scratchpad."""

    @abstractmethod
    async def set_scratchpad(self, session_id: str, state: ScratchpadState) -> None:
        """Replace the session's scratchpad."""

    @abstractmethod
    async def store_conversation_event(self, session_id: str, message: Message) -> None:
        """Append a message to the session's conversation log."""

    @abstractmethod
    async def get_conversation_history(self, session_id: str, limit: int) -> list[Message]:
        """Return up to ``limit`` messages of the session's history."""


class EmbeddingBackend(ABC):
    """Turns text into vector embeddings."""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Return the embedding of ``text``."""

    @abstractmethod
    def dimensions(self) -> int:
        """Return the embedding vector size."""


@dataclass
class DelegationRequest:
    """A task handed off to a specialist agent."""

    agent_name: str
    goal: str
    session_id: str = ""


@dataclass
class DelegationResult:
    """The outcome of a delegation: status is completed, cancelled or failed."""

    agent_name: str
    output: str = ""
    turns_used: int = 0
    cost_used: float = 0.0
    status: str = "completed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_name": self.agent_name,
            "output": self.output,
            "turns_used": self.turns_used,
            "cost_used": self.cost_used,
            "status": self.status,
        }


class DelegationExecutor(ABC):
    """Runs delegated tasks on specialist agents."""

    @abstractmethod
    async def delegate(self, request: DelegationRequest) -> DelegationResult:
        """Run the request and return its result."""