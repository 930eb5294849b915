"""Exception types raised by the agent runtime, tools, memory and gateway."""

from __future__ import annotations


class YantraError(Exception):
    """Base class for every error raised by the package."""

    default_message = "yantra error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)


class TurnCancelled(YantraError):
    """The caller cancelled the running turn."""

    default_message = "turn cancelled"


class BudgetExceeded(YantraError):
    """The configured cost budget was used up."""

    default_message = "budget exceeded"


class MaxTurnsReached(YantraError):
    """The turn loop hit its maximum number of turns."""

    default_message = "max turns reached"


class TurnTimedOut(YantraError):
    """A single turn ran past its deadline."""

    default_message = "turn timed out"


class SessionNotFound(YantraError):
    """No session exists with the requested identifier."""

    default_message = "session not found"


class _WrappedError(YantraError):
    """An error with a message and an optional underlying cause."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def _render(self, head: str) -> str:
        if self.cause is not None:
            return f"{head}: {self.cause}"
        return head


class ProviderError(_WrappedError):
    """An error reported by an LLM provider."""

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: int = 0,
        retryable: bool = False,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause)
        self.provider = provider
        self.status_code = status_code
        self.retryable = retryable

    def __str__(self) -> str:
        return self._render(f"{self.provider}: {self.message}")


class ToolError(_WrappedError):
    """A tool could not be found, was refused, or failed while running."""

    def __init__(self, tool: str, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message, cause)
        self.tool = tool

    def __str__(self) -> str:
        return self._render(f"tool {self.tool}: {self.message}")


class MemoryOperationError(_WrappedError):
    """A persistent-memory operation failed."""

    def __init__(self, op: str, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message, cause)
        self.op = op

    def __str__(self) -> str:
        return self._render(f"memory {self.op}: {self.message}")


class GatewayError(_WrappedError):
    """A gateway-level failure identified by a short code."""

    def __init__(self, code: str, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message, cause)
        self.code = code

    def __str__(self) -> str:
        return self._render(f"gateway [{self.code}]: {self.message}")