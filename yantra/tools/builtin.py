"""Registration of the built-in tool set."""

from __future__ import annotations

from yantra.config import ToolsConfig
from yantra.memory import MemoryRetrieval
from yantra.messages import Tool
from yantra.tools.files import ListFilesTool, ReadFileTool, WriteFileTool
from yantra.tools.memory_tools import MemorySaveTool, MemorySearchTool
from yantra.tools.registry import ToolRegistry
from yantra.tools.shell import ShellExecTool
from yantra.tools.web import WebFetchTool


def register_builtins(
    registry: ToolRegistry,
    config: ToolsConfig | None = None,
    memory: MemoryRetrieval | None = None,
) -> None:
    """Register the built-in tools; memory tools are added when ``memory`` is given.

    Raises ValueError if a tool name is already registered.
    """
    tools: list[Tool] = [
        ReadFileTool(),
        WriteFileTool(),
        ListFilesTool(),
        ShellExecTool(),
        WebFetchTool(),
    ]
    if memory is not None:
        tools += [MemorySearchTool(memory), MemorySaveTool(memory)]
    for tool in tools:
        registry.register(tool)