"""Security policies applied before a tool runs."""

from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from typing import Any

from yantra.config import ShellConfig
from yantra.messages import Tool, ToolExecutionContext

_DEFAULT_ALLOWLIST = (
    "ls", "cat", "head", "tail", "wc", "find", "grep", "rg", "sed", "awk",
    "sort", "uniq", "cut", "tr", "tee", "diff", "patch",
    "git", "gh",
    "go", "gofmt", "goimports",
    "node", "npm", "npx", "yarn", "pnpm", "bun", "deno",
    "python", "python3", "pip", "pip3", "uv",
    "ruby", "gem", "bundle",
    "rustc", "cargo",
    "java", "javac", "mvn", "gradle",
    "make", "cmake",
    "docker", "docker-compose",
    "curl", "wget",
    "echo", "printf", "date", "env", "which", "whoami", "pwd",
    "mkdir", "cp", "mv", "touch", "chmod", "ln",
    "tar", "zip", "unzip", "gzip", "gunzip",
    "jq", "yq",
    "tree", "file", "stat", "du", "df",
)

_DEFAULT_DENYLIST = (
    "sudo", "su", "doas",
    "mkfs", "fdisk", "dd",
    "shutdown", "reboot", "halt", "poweroff", "init",
    "rm",
)

_SHELL_OPERATORS = ("|", "&&", "||", ";", ">", ">>", "<", "$(", "`", "&")

_FILE_TOOLS = frozenset({"read_file", "write_file", "list_files"})


class SecurityPolicy(ABC):
    """Decides whether a tool call may run."""

    @abstractmethod
    def check_execution(self, tool: Tool, arguments: str, exec_ctx: ToolExecutionContext) -> None:
        """Raise PermissionError if the call is not permitted."""


class WorkspacePolicy(SecurityPolicy):
    """Keeps file paths inside the workspace and restricts shell commands."""

    def __init__(self, config: ShellConfig | None = None) -> None:
        config = config or ShellConfig()
        allowed: set[str] = set()
        denied: set[str] = set()
        if not config.replace_defaults:
            allowed.update(_DEFAULT_ALLOWLIST)
            denied.update(_DEFAULT_DENYLIST)
        allowed.update(config.allow)
        denied.update(config.deny)
        self._allowed = frozenset(allowed)
        self._denied = frozenset(denied)
        self._allow_operators = config.allow_operators

    def check_execution(self, tool: Tool, arguments: str, exec_ctx: ToolExecutionContext) -> None:
        if tool.name in _FILE_TOOLS:
            self._check_file_path(arguments, exec_ctx.workspace_dir)
        elif tool.name == "shell_exec":
            self._check_shell_command(arguments)

    def _check_file_path(self, arguments: str, workspace: str) -> None:
        path = _string_argument(arguments, "path")
        if not path:
            raise PermissionError("security: path is required")
        resolve_path(path, workspace)

    def _check_shell_command(self, arguments: str) -> None:
        command = _string_argument(arguments, "command")
        if not command:
            raise PermissionError("security: command is required")

        if not self._allow_operators:
            for operator in _SHELL_OPERATORS:
                if operator in command:
                    raise PermissionError(
                        f"security: shell operator {json.dumps(operator)} is not allowed"
                    )

        base = extract_base_command(command)
        if base in self._denied:
            raise PermissionError(f"security: command {json.dumps(base)} is denied")
        if base not in self._allowed:
            raise PermissionError(f"security: command {json.dumps(base)} is not in the allowlist")


def _string_argument(arguments: str | bytes, name: str) -> str:
    try:
        data: Any = json.loads(arguments)
    except (json.JSONDecodeError, TypeError) as exc:
        raise PermissionError(f"security: invalid input: {exc}") from exc
    if data is None:
        return ""
    if not isinstance(data, dict):
        raise PermissionError("security: invalid input: arguments must be a JSON object")
    value = data.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise PermissionError(f"security: invalid input: {name} must be a string")
    return value


def resolve_path(path: str, workspace: str) -> str:
    """Resolve ``path`` against ``workspace`` and make sure it stays inside.

    Returns the cleaned path; raises PermissionError when it escapes the
    workspace or no workspace is set.
    """
    if not workspace:
        raise PermissionError("security: workspace directory not set")

    if os.path.isabs(path):
        resolved = os.path.normpath(path)
    else:
        resolved = os.path.normpath(os.path.join(workspace, path))

    workspace_clean = os.path.normpath(workspace)
    if resolved != workspace_clean and not resolved.startswith(workspace_clean + os.sep):
        raise PermissionError(
            f"security: path {json.dumps(path)} resolves outside workspace {json.dumps(workspace)}"
        )
    return resolved


def extract_base_command(command: str) -> str:
    """Return the first word of a command without its directory part."""
    words = command.split()
    if not words:
        return ""
    first = words[0].rstrip(os.sep)
    if not first:
        return os.sep
    return first.rsplit(os.sep, 1)[-1]