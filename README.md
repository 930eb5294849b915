# yantra

`yantra` is the core of an LLM agent: an asyncio runtime that drives the
think → act → observe loop, a registry of tools guarded by a workspace
security policy, and a layered configuration loader.

## Modules

- `yantra.runtime` — `AgentRuntime` and `RunResult`. The runtime streams a
  provider's reply, joins fragmented tool-call deltas (ordered by index),
  runs the requested tools and repeats until the model answers without tool
  calls. Contiguous read-only tool calls run concurrently; side-effecting and
  privileged calls run one at a time, in the order the model asked for them.
  When the estimated size of the conversation passes the trigger ratio of the
  context window, and a memory backend is set, older messages are summarised
  with `Provider.complete` and replaced by the summary.
  `build_summarization_prompt` builds the prompt used for that.
- `yantra.session` — `Session`, the conversation buffer that keeps the system
  prompt apart from the messages and can compact itself with a summary.
- `yantra.tools.registry` — `ToolRegistry` (`register`, `get`, `names`,
  `schemas`, `execute`) and `truncate_output`.
- `yantra.tools.schema` — `schema`, `Prop` and `SchemaType`, a builder for
  JSON Schema parameter objects.
- `yantra.tools.security` — `SecurityPolicy`, `WorkspacePolicy`,
  `resolve_path` and `extract_base_command`.
- Built-in tools: `ReadFileTool`, `WriteFileTool`, `ListFilesTool`
  (`yantra.tools.files`), `ShellExecTool` (`yantra.tools.shell`),
  `WebFetchTool` (`yantra.tools.web`), and `MemorySearchTool` /
  `MemorySaveTool` (`yantra.tools.memory_tools`). `register_builtins` in
  `yantra.tools.builtin` registers the first five, plus the two memory tools
  when a memory backend is passed.
- `yantra.config` — `YantraConfig`, its section dataclasses,
  `default_config`, `resolve_config_path` and `load_config`.
- `yantra.commands` — `parse_slash_command`, `is_valid_command`,
  `help_text` and `SlashCommand` for `/command args` chat input.
- `yantra.messages` — messages, tool calls, stream items, usage, progress
  events, and the abstract `Tool` and `Provider` classes.
- `yantra.memory` — memory records and the abstract `Memory`,
  `MemoryRetrieval`, `EmbeddingBackend` and `DelegationExecutor` interfaces.
- `yantra.frames` — client and server frame dataclasses with
  `to_dict`/`from_dict`, `SessionRecord`, and the abstract `Channel`.
- `yantra.errors` — the exception hierarchy.

## Running an agent

A provider is any subclass of `Provider` that implements `complete`,
`stream` (an async iterator of `StreamItem`) and `max_context_tokens`:

```python
import asyncio

from yantra.config import default_config
from yantra.messages import (
    Message, MessageRole, Provider, Response, StreamItem, StreamItemType, Usage,
)
from yantra.runtime import AgentRuntime
from yantra.tools.builtin import register_builtins
from yantra.tools.registry import ToolRegistry
from yantra.tools.security import WorkspacePolicy


class EchoProvider(Provider):
    provider_id = "echo"
    model_id = "echo-1"

    async def complete(self, context):
        return Response(message=Message(role=MessageRole.ASSISTANT, content="summary"))

    async def stream(self, context):
        last = context.messages[-1].content
        yield StreamItem(type=StreamItemType.TEXT, text=f"you said: {last}")
        yield StreamItem(type=StreamItemType.DONE, usage=Usage(1, 1, 2))

    def max_context_tokens(self):
        return 8192


async def main():
    config = default_config()
    registry = ToolRegistry(WorkspacePolicy(config.tools.shell))
    register_builtins(registry, config.tools)
    runtime = AgentRuntime(EchoProvider(), registry, config.runtime, workspace_dir="/tmp/work")
    result = await runtime.run("You are helpful.", "hello")
    print(result.final_content, result.turns_used, result.total_usage)


asyncio.run(main())
```

`run` accepts an optional `asyncio.Queue` that receives `ProgressEvent`s
(provider calls, tool executions, summarisation); events are dropped when the
queue is full. `stream_callback` is called with every stream item. Passing
`memory` and `session_id` persists every message through
`MemoryRetrieval.store_conversation_event` and prepends a stored summary to
the next run.

`run` raises `MaxTurnsReached` when the turn limit (default 25) is used up,
`TurnTimedOut` when a provider reply outlives the per-turn timeout (default
120 s), and `TurnCancelled` when the running task is cancelled. A tool that
fails, is refused by the policy, or runs past the turn deadline does not stop
the run: the text `Error: ...` is handed back to the model as the tool's
result.

## Tools

A tool subclasses `Tool`, sets `name`, `description`, `safety_tier` and
`timeout` (seconds, 0 for none), and implements
`async execute(arguments, exec_ctx)`, where `arguments` is the raw JSON text
from the model. `ToolRegistry.execute` checks the policy, applies the
timeout, wraps any failure in `ToolError`, and cuts output larger than
`max_output_bytes` (128 KiB by default) at a line boundary, appending
`... [output truncated]`.

Built-in tools:

| name | tier | does |
|---|---|---|
| `read_file` | read-only | numbered lines, `offset` (1-based) and `limit` (default 2000) |
| `write_file` | side-effecting | writes or appends, creating parent directories |
| `list_files` | read-only | names (directories with `/`), optional `recursive` with `max_depth` (default 3) |
| `shell_exec` | privileged | runs `sh -c` in the workspace, reports exit code, stdout, stderr |
| `web_fetch` | side-effecting | HTTP request via httpx, returns status and up to 1 MiB of body |
| `memory_search` | read-only | `recall` on the memory backend, top 5 by default |
| `memory_save` | side-effecting | `store` on the memory backend with source `user_saved` |

```python
from yantra.tools.schema import Prop, SchemaType, schema

params = schema(
    Prop(name="path", type=SchemaType.STRING, description="File path", required=True),
    Prop(name="limit", type=SchemaType.INTEGER, description="Max lines"),
)
```

## Workspace security

`WorkspacePolicy` resolves the `path` argument of the file tools inside the
workspace directory and refuses anything that escapes it. Shell commands are
checked against an allowlist and a denylist (the deny list wins; both can be
extended or replaced through `ShellConfig`) and, unless `allow_operators` is
set, may not contain `|`, `&&`, `||`, `;`, `>`, `<`, `$(`, backticks or `&`.
Refusals raise `PermissionError`.

```python
from yantra.config import ShellConfig
from yantra.tools.security import WorkspacePolicy, resolve_path

policy = WorkspacePolicy(ShellConfig(allow=["rg"], deny=["curl"]))
resolve_path("src/main.py", "/home/user/project")        # returns the joined path
resolve_path("../../etc/passwd", "/home/user/project")   # raises PermissionError
```

## Configuration

`load_config` layers three sources, the later ones winning:

1. built-in defaults (`default_config()`),
2. a TOML file — the path you pass, or the first of `yantra.toml`,
   `.yantra/config.toml` and `~/.config/yantra/config.toml` that exists,
3. environment variables prefixed `YANTRA__`, with `__` separating levels:
   `YANTRA__SELECTION__PROVIDER=gemini` sets `selection.provider`. Values are
   converted to the field's type; list fields take comma-separated text.

```python
from yantra.config import load_config

config = load_config("yantra.toml")
print(config.selection.provider, config.selection.model)
print(config.runtime.turn_timeout())
```

An explicitly named file that cannot be read or parsed raises `ValueError`;
a missing or broken auto-discovered file is skipped.

## Slash commands

```python
from yantra.commands import help_text, is_valid_command, parse_slash_command

command = parse_slash_command("/switch abc123")
assert command.name == "switch" and command.args == "abc123"
assert is_valid_command(command.name)
print(help_text())
```

## Errors

All exceptions derive from `YantraError`: `TurnCancelled`, `TurnTimedOut`,
`MaxTurnsReached`, `BudgetExceeded`, `SessionNotFound`, and the wrapping
errors `ProviderError`, `ToolError`, `MemoryOperationError` and
`GatewayError`, which keep the underlying exception as `cause`.

## What the package does not do

- It ships no LLM provider: you supply a `Provider` subclass that talks to
  your model's API.
- It ships no memory storage: `MemoryRetrieval` and `EmbeddingBackend` are
  interfaces only, so the memory tools and summarisation need a backend of
  your own.
- It has no gateway server, chat client, terminal interface or command-line
  entry point. `yantra.frames`, `Channel`, and the `gateway`, `mcp` and
  `agents` configuration sections describe data only; nothing in the package
  serves or consumes them.
- `DelegationExecutor` is an interface; no multi-agent delegation is
  implemented, and `max_cost` / `BudgetExceeded` are not enforced by the
  runtime.