import asyncio

import pytest

from yantra.errors import ToolError
from yantra.messages import (
    ProgressKind,
    SafetyTier,
    Tool,
    ToolExecutionContext,
)
from yantra.tools.files import ListFilesTool, ReadFileTool, WriteFileTool
from yantra.tools.registry import DEFAULT_MAX_OUTPUT_BYTES, ToolRegistry, truncate_output
from yantra.tools.security import SecurityPolicy


class StubTool(Tool):
    safety_tier = SafetyTier.READ_ONLY

    def __init__(self, name, output="", delay=0.0, timeout=0.0, error=None):
        self.name = name
        self.description = "stub"
        self.output = output
        self.delay = delay
        self.timeout = timeout
        self.error = error
        self.calls = 0

    async def execute(self, arguments, exec_ctx):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.output


class BlockingPolicy(SecurityPolicy):
    def check_execution(self, tool, arguments, exec_ctx):
        raise PermissionError("blocked by policy")


def test_duplicate_registration():
    registry = ToolRegistry()
    tool = StubTool("dup")
    registry.register(tool)
    with pytest.raises(ValueError):
        registry.register(tool)
    assert registry.names() == ["dup"]


def test_get_and_names():
    registry = ToolRegistry()
    beta = StubTool("beta")
    alpha = StubTool("alpha")
    registry.register(beta)
    registry.register(alpha)
    assert registry.get("alpha") is alpha
    assert registry.get("missing") is None
    assert registry.names() == ["alpha", "beta"]
    assert len(registry) == 2
    assert "beta" in registry


def test_schemas_with_filter():
    registry = ToolRegistry()
    registry.register(ReadFileTool())
    registry.register(WriteFileTool())
    registry.register(ListFilesTool())

    all_decls = registry.schemas()
    assert [decl.name for decl in all_decls] == ["list_files", "read_file", "write_file"]

    filtered = registry.schemas(["read_file", "list_files", "unknown"])
    assert [decl.name for decl in filtered] == ["list_files", "read_file"]


@pytest.mark.asyncio
async def test_execute_with_policy_block():
    registry = ToolRegistry(BlockingPolicy())
    tool = StubTool("test", output="x")
    registry.register(tool)
    with pytest.raises(ToolError) as info:
        await registry.execute("test", "{}", ToolExecutionContext())
    assert info.value.tool == "test"
    assert info.value.message == "policy violation"
    assert isinstance(info.value.cause, PermissionError)
    assert tool.calls == 0


@pytest.mark.asyncio
async def test_execute_not_found():
    registry = ToolRegistry()
    with pytest.raises(ToolError) as info:
        await registry.execute("nonexistent", "{}", ToolExecutionContext())
    assert str(info.value) == "tool nonexistent: tool not found"


@pytest.mark.asyncio
async def test_execute_with_timeout():
    registry = ToolRegistry()
    registry.register(StubTool("slow", output="done", delay=0.5, timeout=0.05))
    with pytest.raises(ToolError) as info:
        await registry.execute("slow", "{}", ToolExecutionContext())
    assert info.value.message == "execution failed"
    assert isinstance(info.value.cause, TimeoutError)


@pytest.mark.asyncio
async def test_execute_wraps_tool_failure():
    registry = ToolRegistry()
    registry.register(StubTool("failing", error=RuntimeError("disk full")))
    with pytest.raises(ToolError) as info:
        await registry.execute("failing", "{}", ToolExecutionContext())
    assert str(info.value) == "tool failing: execution failed: disk full"


@pytest.mark.asyncio
async def test_output_truncation():
    registry = ToolRegistry(max_output_bytes=50)
    registry.register(StubTool("big", output="line\n" * 100))
    result = await registry.execute("big", "{}", ToolExecutionContext())
    assert "[output truncated]" in result
    assert len(result) <= 100
    assert result == "\n".join(["line"] * 10) + "\n... [output truncated]"


@pytest.mark.asyncio
async def test_progress_event_emitted():
    registry = ToolRegistry()
    registry.register(StubTool("mytool", output="ok"))
    queue = asyncio.Queue()
    result = await registry.execute("mytool", "{}", ToolExecutionContext(progress=queue))
    assert result == "ok"
    event = queue.get_nowait()
    assert event.kind == ProgressKind.TOOL_EXECUTION
    assert event.tool == "mytool"
    assert event.message == "executing"


@pytest.mark.asyncio
async def test_full_progress_queue_does_not_block():
    registry = ToolRegistry()
    registry.register(StubTool("mytool", output="ok"))
    queue = asyncio.Queue(maxsize=1)
    queue.put_nowait("occupied")
    result = await registry.execute("mytool", "{}", ToolExecutionContext(progress=queue))
    assert result == "ok"
    assert queue.qsize() == 1


def test_invalid_max_output_falls_back_to_default():
    assert ToolRegistry(max_output_bytes=0).max_output_bytes == DEFAULT_MAX_OUTPUT_BYTES
    assert DEFAULT_MAX_OUTPUT_BYTES == 128 * 1024


def test_truncate_output_cases():
    assert truncate_output("short", 100) == "short"
    assert truncate_output("abcdef", 0) == "abcdef"
    assert truncate_output("abcdef", 3) == "abc\n... [output truncated]"
    assert truncate_output("ab\ncdef", 5) == "ab\n... [output truncated]"