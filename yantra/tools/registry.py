"""Registry that holds tools, applies the security policy and runs calls."""

from __future__ import annotations

import asyncio
import contextlib

from yantra.errors import ToolError
from yantra.messages import (
    FunctionDecl,
    ProgressEvent,
    ProgressKind,
    Tool,
    ToolExecutionContext,
)
from yantra.tools.security import SecurityPolicy

DEFAULT_MAX_OUTPUT_BYTES = 128 * 1024
_TRUNCATION_MARKER = "\n... [output truncated]"


class ToolRegistry:
    """Registered tools by name, with policy checks, timeouts and output limits."""

    def __init__(
        self,
        policy: SecurityPolicy | None = None,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    ) -> None:
        self._tools: dict[str, Tool] = {}
        self.policy = policy
        self.max_output_bytes = max_output_bytes if max_output_bytes > 0 else DEFAULT_MAX_OUTPUT_BYTES

    def register(self, tool: Tool) -> None:
        """Add a tool; raises ValueError if its name is already taken."""
        if tool.name in self._tools:
            raise ValueError(f"tool {tool.name!r} is already registered")
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool | None:
        """Return the tool called ``name``, or None."""
        return self._tools.get(name)

    def names(self) -> list[str]:
        """Return the registered tool names in alphabetical order."""
        return sorted(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def schemas(self, filter: list[str] | None = None) -> list[FunctionDecl]:
        """Return declarations sorted by name, limited to ``filter`` when it is non-empty."""
        if filter:
            allowed = set(filter)
            selected = [name for name in self._tools if name in allowed]
        else:
            selected = list(self._tools)
        return [self._tools[name].decl() for name in sorted(selected)]

    async def execute(self, name: str, arguments: str, exec_ctx: ToolExecutionContext) -> str:
        """Run a tool by name and return its (possibly truncated) output.

        Raises ToolError when the tool is missing, refused by the policy,
        fails, or runs past its timeout.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolError(name, "tool not found")

        if self.policy is not None:
            try:
                self.policy.check_execution(tool, arguments, exec_ctx)
            except Exception as exc:
                raise ToolError(name, "policy violation", exc) from exc

        if exec_ctx.progress is not None:
            with contextlib.suppress(asyncio.QueueFull):
                exec_ctx.progress.put_nowait(
                    ProgressEvent(kind=ProgressKind.TOOL_EXECUTION, tool=name, message="executing")
                )

        try:
            if tool.timeout > 0:
                output = await asyncio.wait_for(tool.execute(arguments, exec_ctx), tool.timeout)
            else:
                output = await tool.execute(arguments, exec_ctx)
        except Exception as exc:
            raise ToolError(name, "execution failed", exc) from exc

        return truncate_output(output, self.max_output_bytes)


def truncate_output(text: str, max_bytes: int) -> str:
    """Cut ``text`` to at most ``max_bytes`` UTF-8 bytes, at a line boundary when possible."""
    encoded = text.encode("utf-8")
    if max_bytes <= 0 or len(encoded) <= max_bytes:
        return text
    head = encoded[:max_bytes]
    cut = head.rfind(b"\n")
    if cut < 0:
        cut = max_bytes
    return encoded[:cut].decode("utf-8", errors="ignore") + _TRUNCATION_MARKER