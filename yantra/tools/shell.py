"""The shell_exec tool: runs a command through ``sh -c``."""

from __future__ import annotations

import asyncio
import json
from typing import Any

from yantra.messages import FunctionDecl, SafetyTier, Tool, ToolExecutionContext
from yantra.tools.schema import Prop, SchemaType, schema


def _command_argument(arguments: str | bytes) -> str:
    try:
        data: Any = json.loads(arguments)
    except (json.JSONDecodeError, TypeError) as exc:
        raise ValueError(f"invalid input: {exc}") from exc
    if data is None:
        return ""
    if not isinstance(data, dict):
        raise ValueError("invalid input: arguments must be a JSON object")
    command = data.get("command")
    if command is None:
        return ""
    if not isinstance(command, str):
        raise ValueError("invalid input: command must be of type str")
    return command


class ShellExecTool(Tool):
    """Executes a shell command and reports its exit code, stdout and stderr."""

    name = "shell_exec"
    description = "Execute a shell command and return its stdout, stderr, and exit code."
    safety_tier = SafetyTier.PRIVILEGED
    timeout = 60.0

    def decl(self) -> FunctionDecl:
        return FunctionDecl(
            name=self.name,
            description=self.description,
            parameters=schema(
                Prop("command", SchemaType.STRING, "Shell command to execute", True),
            ),
        )

    async def execute(self, arguments: str, exec_ctx: ToolExecutionContext) -> str:
        command = _command_argument(arguments)
        try:
            process = await asyncio.create_subprocess_exec(
                "sh",
                "-c",
                command,
                cwd=exec_ctx.workspace_dir or None,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise OSError(f"exec error: {exc}") from exc

        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise

        exit_code = process.returncode if process.returncode >= 0 else -1
        result = f"exit_code: {exit_code}\n"
        if stdout:
            result += "stdout:\n" + stdout.decode("utf-8", errors="replace")
        if stderr:
            result += "stderr:\n" + stderr.decode("utf-8", errors="replace")
        return result