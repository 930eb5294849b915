"""The agent turn loop: think, act, observe, until the model answers in text."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from itertools import groupby

from yantra.config import RuntimeConfig
from yantra.errors import MaxTurnsReached, ToolError, TurnCancelled, TurnTimedOut
from yantra.memory import MemoryRetrieval, SessionSummary
from yantra.messages import (
    ConversationContext,
    FunctionCall,
    Message,
    MessageRole,
    ProgressEvent,
    ProgressKind,
    Provider,
    Response,
    SafetyTier,
    StreamItem,
    StreamItemType,
    ToolCall,
    ToolExecutionContext,
    Usage,
)
from yantra.session import Session
from yantra.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

StreamCallback = Callable[[StreamItem], None]

_DEFAULT_MAX_TURNS = 25
_DEFAULT_TRIGGER_RATIO = 0.85
_DEFAULT_MIN_TURNS = 6
_DEFAULT_TARGET_RATIO = 0.5
_SUMMARIZER_PROMPT = (
    "You are a summarization assistant. Produce a concise summary of the conversation "
    "that captures all key facts, decisions, and context needed to continue the conversation."
)

ProgressQueue = asyncio.Queue[ProgressEvent]


@dataclass
class RunResult:
    """The outcome of a successful run."""

    final_content: str
    turns_used: int
    total_usage: Usage = field(default_factory=Usage)


@dataclass
class _PartialCall:
    id: str = ""
    name: str = ""
    arguments: list[str] = field(default_factory=list)


class AgentRuntime:
    """Ties a provider and a tool registry together to run the turn loop.

    ``workspace_dir`` is the root used for tool path containment. When
    ``memory`` and ``session_id`` are set, messages are persisted and rolling
    summaries are kept. ``stream_callback`` sees every stream item.
    """

    def __init__(
        self,
        provider: Provider,
        tools: ToolRegistry,
        config: RuntimeConfig | None = None,
        workspace_dir: str = ".",
        memory: MemoryRetrieval | None = None,
        session_id: str = "",
        stream_callback: StreamCallback | None = None,
    ) -> None:
        self.provider = provider
        self.tools = tools
        self.config = config if config is not None else RuntimeConfig()
        self.workspace_dir = workspace_dir or "."
        self.memory = memory
        self.session_id = session_id
        self.stream_callback = stream_callback

    async def run(
        self,
        system_prompt: str,
        user_message: str,
        progress: ProgressQueue | None = None,
    ) -> RunResult:
        """Run turns until the model replies without tool calls.

        Raises MaxTurnsReached, TurnTimedOut when a provider call outlives
        the turn deadline, and TurnCancelled when the running task is
        cancelled. Progress events go to ``progress`` and are dropped when
        it is full.
        """
        try:
            return await self._run(system_prompt, user_message, progress)
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if task is not None:
                task.uncancel()
            raise TurnCancelled() from None

    async def _run(
        self, system_prompt: str, user_message: str, progress: ProgressQueue | None
    ) -> RunResult:
        session = Session(system_prompt, self.tools.schemas())

        prior = await self._get_summary()
        if prior is not None and prior.summary:
            session.append(
                Message(role=MessageRole.USER, content=f"[Conversation Summary]\n{prior.summary}")
            )
            session.append(
                Message(
                    role=MessageRole.ASSISTANT,
                    content="I have the context from our previous conversation. How can I help you?",
                )
            )

        user_msg = Message(role=MessageRole.USER, content=user_message)
        session.append(user_msg)
        await self._persist(user_msg)

        total_usage = Usage()
        turns_used = 0
        max_turns = self.config.max_turns if self.config.max_turns > 0 else _DEFAULT_MAX_TURNS
        loop = asyncio.get_running_loop()

        for turn in range(max_turns):
            deadline = loop.time() + self.config.turn_timeout()
            _emit_progress(
                progress, ProgressEvent(kind=ProgressKind.PROVIDER_CALL, message=f"turn {turn + 1}")
            )

            timer = asyncio.timeout_at(deadline)
            try:
                async with timer:
                    response = await self.collect_stream(session)
            except TimeoutError as exc:
                if timer.expired():
                    raise TurnTimedOut() from exc
                raise

            total_usage += response.usage
            turns_used += 1
            session.append(response.message)
            await self._persist(response.message)

            if not response.message.tool_calls:
                return RunResult(
                    final_content=response.message.content,
                    turns_used=turns_used,
                    total_usage=total_usage,
                )

            for message in await self._dispatch_tools(response.message.tool_calls, deadline, progress):
                session.append(message)
                await self._persist(message)

            timer = asyncio.timeout_at(deadline)
            try:
                async with timer:
                    await self._check_context_budget(session, progress)
            except TimeoutError:
                if not timer.expired():
                    raise
                logger.warning("context budget check ran past the turn deadline")

        raise MaxTurnsReached()

    async def collect_stream(self, session: Session) -> Response:
        """Read one streamed provider reply and assemble it into a Response.

        Fragmented tool call deltas are joined per index and ordered by index.
        An error item in the stream is raised.
        """
        content: list[str] = []
        partials: dict[int, _PartialCall] = {}
        usage = Usage()

        stream = self.provider.stream(session.context())
        try:
            async for item in stream:
                match item.type:
                    case StreamItemType.TEXT:
                        content.append(item.text)
                    case StreamItemType.TOOL_CALL_DELTA:
                        delta = item.tool_call_delta
                        if delta is None:
                            continue
                        partial = partials.setdefault(delta.index, _PartialCall())
                        if delta.id:
                            partial.id = delta.id
                        if delta.name:
                            partial.name = delta.name
                        partial.arguments.append(delta.arguments)
                    case StreamItemType.DONE:
                        if item.usage is not None:
                            usage = item.usage
                    case StreamItemType.ERROR:
                        if item.error is not None:
                            raise item.error
                if self.stream_callback is not None:
                    self.stream_callback(item)
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        tool_calls = [
            ToolCall(
                id=partials[index].id,
                function=FunctionCall(
                    name=partials[index].name, arguments="".join(partials[index].arguments)
                ),
            )
            for index in sorted(partials)
        ]
        return Response(
            message=Message(
                role=MessageRole.ASSISTANT, content="".join(content), tool_calls=tool_calls
            ),
            usage=usage,
        )

    def _is_read_only(self, call: ToolCall) -> bool:
        tool = self.tools.get(call.function.name)
        return tool is not None and tool.safety_tier == SafetyTier.READ_ONLY

    async def _dispatch_tools(
        self, calls: Iterable[ToolCall], deadline: float, progress: ProgressQueue | None
    ) -> list[Message]:
        """Run calls in model order: contiguous read-only runs in parallel, others one by one."""
        exec_ctx = ToolExecutionContext(
            session_id=self.session_id, workspace_dir=self.workspace_dir, progress=progress
        )
        results: list[Message] = []
        for read_only, group in groupby(calls, key=self._is_read_only):
            if read_only:
                results.extend(
                    await asyncio.gather(
                        *(self._execute_tool(call, exec_ctx, deadline) for call in group)
                    )
                )
            else:
                for call in group:
                    results.append(await self._execute_tool(call, exec_ctx, deadline))
        return results

    async def _execute_tool(
        self, call: ToolCall, exec_ctx: ToolExecutionContext, deadline: float
    ) -> Message:
        """Run one call; failures become the message content the model sees."""
        name = call.function.name
        timer = asyncio.timeout_at(deadline)
        try:
            async with timer:
                output = await self.tools.execute(name, call.function.arguments, exec_ctx)
        except ToolError as exc:
            output = f"Error: {exc}"
        except TimeoutError:
            if not timer.expired():
                raise
            output = f"Error: {ToolError(name, 'execution failed', TurnTimedOut())}"
        return Message(
            role=MessageRole.TOOL, content=output, tool_call_id=call.id, tool_name=name
        )

    async def _persist(self, message: Message) -> None:
        if self.memory is None or not self.session_id:
            return
        try:
            await self.memory.store_conversation_event(self.session_id, message)
        except Exception as exc:
            logger.warning("failed to persist conversation event: %s", exc)

    async def _get_summary(self) -> SessionSummary | None:
        if self.memory is None or not self.session_id:
            return None
        try:
            return await self.memory.get_summary(self.session_id)
        except Exception as exc:
            logger.debug("summary lookup failed: %s", exc)
            return None

    async def _check_context_budget(self, session: Session, progress: ProgressQueue | None) -> None:
        """Summarise older messages when the estimated size nears the context limit."""
        budget = self.config.context_budget
        max_tokens = self.provider.max_context_tokens()
        if max_tokens <= 0:
            max_tokens = budget.fallback_max_context_tokens
        if max_tokens <= 0:
            return

        trigger_ratio = budget.trigger_ratio if budget.trigger_ratio > 0 else _DEFAULT_TRIGGER_RATIO

        messages = session.messages()
        total_chars = sum(
            _byte_len(msg.content) + sum(_byte_len(tc.function.arguments) for tc in msg.tool_calls)
            for msg in messages
        )
        estimated_tokens = total_chars // 4
        if estimated_tokens <= int(max_tokens * trigger_ratio):
            return

        summarization = self.config.summarization
        min_turns = summarization.min_turns if summarization.min_turns > 0 else _DEFAULT_MIN_TURNS
        if len(session) < min_turns:
            logger.warning(
                "context budget warning: approaching limit but too few turns to summarize "
                "(estimated_tokens=%d session_len=%d min_turns=%d)",
                estimated_tokens, len(session), min_turns,
            )
            return

        if self.memory is None:
            logger.warning(
                "context budget warning: approaching limit, no memory configured for summarization "
                "(estimated_tokens=%d max_tokens=%d)",
                estimated_tokens, max_tokens,
            )
            return

        logger.info(
            "context budget: triggering summarization (estimated_tokens=%d max_tokens=%d ratio=%s)",
            estimated_tokens, max_tokens, trigger_ratio,
        )
        _emit_progress(
            progress,
            ProgressEvent(kind=ProgressKind.SUMMARIZATION, message="compacting conversation history"),
        )

        target_ratio = (
            summarization.target_ratio if summarization.target_ratio > 0 else _DEFAULT_TARGET_RATIO
        )
        keep_count = max(int(len(session) * (1.0 - target_ratio)), 2)
        to_summarize = messages[: max(len(messages) - keep_count, 0)]

        existing = await self._get_summary()
        prompt = build_summarization_prompt(to_summarize, existing.summary if existing else "")
        summary_context = ConversationContext(
            messages=[
                Message(role=MessageRole.SYSTEM, content=_SUMMARIZER_PROMPT),
                Message(role=MessageRole.USER, content=prompt),
            ]
        )

        try:
            response = await self.provider.complete(summary_context)
        except Exception as exc:
            logger.error("summarization failed: %s", exc)
            return

        summary = response.message.content
        if not summary:
            return

        if self.session_id:
            current = await self._get_summary()
            epoch = current.epoch + 1 if current is not None else 0
            try:
                await self.memory.set_summary(
                    self.session_id, SessionSummary(summary=summary, epoch=epoch)
                )
            except Exception as exc:
                logger.error("failed to store summary: %s", exc)

        session.compact_with_summary(summary, keep_count)
        logger.info(
            "summarization complete (kept_messages=%d summary_len=%d)", keep_count, len(summary)
        )


def build_summarization_prompt(messages: Iterable[Message], existing_summary: str = "") -> str:
    """Build the prompt asking the model to summarise ``messages``."""
    parts: list[str] = []
    if existing_summary:
        parts.append(f"Previous conversation summary:\n{existing_summary}\n\n")
    parts.append(
        "Summarize the following conversation, preserving all important facts, decisions, "
        "user preferences, and context:\n\n"
    )
    for msg in messages:
        parts.append(f"[{msg.role}]: {msg.content}\n")
        parts.extend(
            f"  -> called {tc.function.name}({tc.function.arguments})\n" for tc in msg.tool_calls
        )
    return "".join(parts)


def _byte_len(text: str) -> int:
    return len(text.encode("utf-8"))


def _emit_progress(queue: ProgressQueue | None, event: ProgressEvent) -> None:
    if queue is None:
        return
    with contextlib.suppress(asyncio.QueueFull):
        queue.put_nowait(event)