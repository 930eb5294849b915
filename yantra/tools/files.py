"""Built-in file tools: read_file, write_file and list_files."""

from __future__ import annotations

import asyncio
import json
import os
from typing import Any

from yantra.messages import FunctionDecl, SafetyTier, Tool, ToolExecutionContext
from yantra.tools.schema import Prop, SchemaType, schema
from yantra.tools.security import resolve_path

_READ_DEFAULT_LIMIT = 2000
_MAX_LINE_BYTES = 1024 * 1024
_DEFAULT_MAX_DEPTH = 3


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


class ReadFileTool(Tool):
    """Reads a file with line numbers, honouring offset and limit."""

    name = "read_file"
    description = "Read a file's contents with line numbers. Supports offset and limit parameters."
    safety_tier = SafetyTier.READ_ONLY
    timeout = 10.0

    def decl(self) -> FunctionDecl:
        return FunctionDecl(
            name=self.name,
            description=self.description,
            parameters=schema(
                Prop("path", SchemaType.STRING, "File path (relative to workspace or absolute)", True),
                Prop("offset", SchemaType.INTEGER, "Line number to start reading from (1-based, default 1)"),
                Prop("limit", SchemaType.INTEGER, "Maximum number of lines to read (default 2000)"),
            ),
        )

    async def execute(self, arguments: str, exec_ctx: ToolExecutionContext) -> str:
        data = _load_arguments(arguments)
        path = _field(data, "path", str, "")
        offset = max(_field(data, "offset", int, 0), 1)
        limit = _field(data, "limit", int, 0)
        if limit <= 0:
            limit = _READ_DEFAULT_LIMIT
        resolved = resolve_path(path, exec_ctx.workspace_dir)
        return await asyncio.to_thread(_read_numbered, resolved, offset, limit)


def _read_numbered(path: str, offset: int, limit: int) -> str:
    try:
        handle = open(path, "rb")
    except OSError as exc:
        raise OSError(f"cannot open file: {exc}") from exc

    lines: list[str] = []
    with handle:
        try:
            for number, raw in enumerate(handle, start=1):
                text = raw.removesuffix(b"\n").removesuffix(b"\r")
                if len(text) > _MAX_LINE_BYTES:
                    raise OSError("read error: line too long")
                if number < offset:
                    continue
                if len(lines) >= limit:
                    break
                lines.append(f"{number:6d}\t{text.decode('utf-8', errors='replace')}\n")
        except OSError as exc:
            if str(exc).startswith("read error"):
                raise
            raise OSError(f"read error: {exc}") from exc

    if not lines:
        return "(empty file or offset beyond end of file)"
    return "".join(lines)


class WriteFileTool(Tool):
    """Writes or appends content to a file, creating parent directories."""

    name = "write_file"
    description = (
        "Write content to a file. Creates parent directories if needed. "
        "Use append mode to add to existing files."
    )
    safety_tier = SafetyTier.SIDE_EFFECTING
    timeout = 10.0

    def decl(self) -> FunctionDecl:
        return FunctionDecl(
            name=self.name,
            description=self.description,
            parameters=schema(
                Prop("path", SchemaType.STRING, "File path (relative to workspace or absolute)", True),
                Prop("content", SchemaType.STRING, "Content to write", True),
                Prop("append", SchemaType.BOOLEAN, "Append to file instead of overwriting (default false)"),
            ),
        )

    async def execute(self, arguments: str, exec_ctx: ToolExecutionContext) -> str:
        data = _load_arguments(arguments)
        path = _field(data, "path", str, "")
        content = _field(data, "content", str, "")
        append = _field(data, "append", bool, False)
        resolved = resolve_path(path, exec_ctx.workspace_dir)
        written = await asyncio.to_thread(_write, resolved, content.encode("utf-8"), append)
        mode = "appended" if append else "wrote"
        return f"{mode} {written} bytes to {path}"


def _write(path: str, payload: bytes, append: bool) -> int:
    directory = os.path.dirname(path)
    try:
        os.makedirs(directory, mode=0o755, exist_ok=True)
    except OSError as exc:
        raise OSError(f"cannot create directory {directory!r}: {exc}") from exc
    try:
        handle = open(path, "ab" if append else "wb")
    except OSError as exc:
        raise OSError(f"cannot open file: {exc}") from exc
    with handle:
        try:
            return handle.write(payload)
        except OSError as exc:
            raise OSError(f"write error: {exc}") from exc


class ListFilesTool(Tool):
    """Lists a directory, optionally recursing to a maximum depth."""

    name = "list_files"
    description = "List files and directories at a given path. Optionally recurse with a max depth."
    safety_tier = SafetyTier.READ_ONLY
    timeout = 10.0

    def decl(self) -> FunctionDecl:
        return FunctionDecl(
            name=self.name,
            description=self.description,
            parameters=schema(
                Prop("path", SchemaType.STRING, "Directory path (relative to workspace or absolute)", True),
                Prop("recursive", SchemaType.BOOLEAN, "List recursively (default false)"),
                Prop(
                    "max_depth",
                    SchemaType.INTEGER,
                    "Maximum recursion depth (default 3, only used when recursive is true)",
                ),
            ),
        )

    async def execute(self, arguments: str, exec_ctx: ToolExecutionContext) -> str:
        data = _load_arguments(arguments)
        path = _field(data, "path", str, "")
        recursive = _field(data, "recursive", bool, False)
        max_depth = _field(data, "max_depth", int, 0)
        resolved = resolve_path(path, exec_ctx.workspace_dir)
        if not recursive:
            return await asyncio.to_thread(_list_flat, resolved)
        if max_depth <= 0:
            max_depth = _DEFAULT_MAX_DEPTH
        return await asyncio.to_thread(_list_recursive, resolved, max_depth)


def _sorted_entries(directory: str) -> list[os.DirEntry[str]]:
    with os.scandir(directory) as it:
        return sorted(it, key=lambda entry: entry.name)


def _display(name: str, entry: os.DirEntry[str]) -> str:
    return name + "/" if entry.is_dir(follow_symlinks=False) else name


def _list_flat(directory: str) -> str:
    try:
        entries = _sorted_entries(directory)
    except OSError as exc:
        raise OSError(f"cannot read directory: {exc}") from exc
    return "".join(_display(entry.name, entry) + "\n" for entry in entries)


def _list_recursive(root: str, max_depth: int) -> str:
    return "".join(line + "\n" for line in _walk(os.path.normpath(root), "", 1, max_depth))


def _walk(directory: str, prefix: str, depth: int, max_depth: int):
    try:
        entries = _sorted_entries(directory)
    except OSError:
        return
    for entry in entries:
        relative = os.path.join(prefix, entry.name) if prefix else entry.name
        yield _display(relative, entry)
        if entry.is_dir(follow_symlinks=False) and depth < max_depth:
            yield from _walk(entry.path, relative, depth + 1, max_depth)