"""Tools that save to and search persistent memory."""

from __future__ import annotations

import json
from typing import Any

from yantra.memory import MemoryRetrieval, MemoryStoreRequest
from yantra.messages import FunctionDecl, SafetyTier, Tool, ToolExecutionContext
from yantra.tools.schema import Prop, SchemaType, schema

_DEFAULT_TOP_K = 5


def _load_arguments(arguments: str | bytes) -> dict[str, Any]:
    try:
        data = json.loads(arguments)
    except (json.JSONDecodeError, TypeError) as exc:
        raise ValueError(f"invalid input: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("invalid input: arguments must be a JSON object")
    return data


def _field(data: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    valid = type(value) is int if kind is int else isinstance(value, kind)
    if not valid:
        raise ValueError(f"invalid input: {key} must be of type {kind.__name__}")
    return value


class MemorySaveTool(Tool):
    """Stores a piece of knowledge in persistent memory."""

    name = "memory_save"
    description = (
        "Save a piece of knowledge to persistent memory for future recall. "
        "Use this to remember important facts, preferences, or context."
    )
    safety_tier = SafetyTier.SIDE_EFFECTING
    timeout = 15.0

    def __init__(self, memory: MemoryRetrieval) -> None:
        self.memory = memory

    def decl(self) -> FunctionDecl:
        return FunctionDecl(
            name=self.name,
            description=self.description,
            parameters=schema(
                Prop("content", SchemaType.STRING, "The knowledge to store", True),
                Prop("tags", SchemaType.ARRAY, "Optional tags for categorization", items=SchemaType.STRING),
            ),
        )

    async def execute(self, arguments: str, exec_ctx: ToolExecutionContext) -> str:
        data = _load_arguments(arguments)
        content = _field(data, "content", str, "")
        tags = _field(data, "tags", list, [])
        if not all(isinstance(tag, str) for tag in tags):
            raise ValueError("invalid input: tags must be strings")
        if not content:
            raise ValueError("content is required")

        try:
            chunk_id = await self.memory.store(
                MemoryStoreRequest(content=content, source="user_saved", tags=list(tags))
            )
        except Exception as exc:
            raise RuntimeError(f"memory save failed: {exc}") from exc
        return f"Saved to memory (id: {chunk_id})"


class MemorySearchTool(Tool):
    """Searches persistent memory and lists the best-matching chunks."""

    name = "memory_search"
    description = (
        "Search persistent memory for stored knowledge. "
        "Returns relevant chunks ranked by relevance."
    )
    safety_tier = SafetyTier.READ_ONLY
    timeout = 15.0

    def __init__(self, memory: MemoryRetrieval) -> None:
        self.memory = memory

    def decl(self) -> FunctionDecl:
        return FunctionDecl(
            name=self.name,
            description=self.description,
            parameters=schema(
                Prop("query", SchemaType.STRING, "Search query", True),
                Prop("top_k", SchemaType.INTEGER, "Maximum number of results to return (default 5)"),
            ),
        )

    async def execute(self, arguments: str, exec_ctx: ToolExecutionContext) -> str:
        data = _load_arguments(arguments)
        query = _field(data, "query", str, "")
        top_k = _field(data, "top_k", int, 0)
        if not query:
            raise ValueError("query is required")
        if top_k <= 0:
            top_k = _DEFAULT_TOP_K

        try:
            chunks = await self.memory.recall(query, top_k)
        except Exception as exc:
            raise RuntimeError(f"memory search failed: {exc}") from exc

        if not chunks:
            return "No matching memories found."

        lines = [f"Found {len(chunks)} memories:\n\n"]
        for number, chunk in enumerate(chunks, start=1):
            line = f"{number}. [score: {chunk.score:.4f}] {chunk.content}"
            if chunk.tags:
                line += f" (tags: {', '.join(chunk.tags)})"
            lines.append(line + "\n")
        return "".join(lines)