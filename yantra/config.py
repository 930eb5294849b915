"""Configuration model, built-in defaults and layered loading."""

import json
import os
import tomllib
import types
import typing
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, get_args, get_origin

_ENV_PREFIX = "YANTRA__"
_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


@dataclass
class ProviderSelection:
    """Which provider and model to use."""

    provider: str = ""
    model: str = ""


@dataclass
class ProviderRegistryEntry:
    """A single provider endpoint."""

    provider_type: str = ""
    base_url: str = ""
    api_key_env: str = ""
    max_context_tokens: int = 0
    max_output_tokens: int = 0


@dataclass
class ProvidersConfig:
    """The provider registry."""

    registry: dict[str, ProviderRegistryEntry] = field(default_factory=dict)


@dataclass
class ContextBudgetConfig:
    """When context compaction triggers."""

    trigger_ratio: float = 0.0
    safety_buffer_tokens: int = 0
    fallback_max_context_tokens: int = 0


@dataclass
class SummarizationConfig:
    """Rolling summarisation settings."""

    target_ratio: float = 0.0
    min_turns: int = 0


@dataclass
class RuntimeConfig:
    """Settings of the agent turn loop."""

    max_turns: int = 0
    turn_timeout_secs: int = 0
    max_cost: float = 0.0
    context_budget: ContextBudgetConfig = field(default_factory=ContextBudgetConfig)
    summarization: SummarizationConfig = field(default_factory=SummarizationConfig)

    def turn_timeout(self) -> float:
        """Return the per-turn timeout in seconds (120 when unset)."""
        if self.turn_timeout_secs <= 0:
            return 120.0
        return float(self.turn_timeout_secs)


@dataclass
class EmbeddingConfig:
    """Embedding backend settings."""

    model: str = ""
    ollama_url: str = ""
    ollama_model: str = ""


@dataclass
class RetrievalConfig:
    """Weights of hybrid retrieval."""

    top_k: int = 0
    vector_weight: float = 0.0
    fts_weight: float = 0.0


@dataclass
class MemoryConfig:
    """Persistent memory settings."""

    enabled: bool = False
    db_path: str = ""
    embedding_backend: str = ""
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)


@dataclass
class WebSearchConfig:
    """Settings of the web search tool."""

    provider: str = ""
    base_url: str = ""
    api_key_env: str = ""


@dataclass
class ShellConfig:
    """Allow and deny lists of the shell tool."""

    allow: list[str] = field(default_factory=list)
    deny: list[str] = field(default_factory=list)
    replace_defaults: bool = False
    allow_operators: bool = False


@dataclass
class ToolsConfig:
    """Tool-specific settings."""

    web_search: WebSearchConfig = field(default_factory=WebSearchConfig)
    shell: ShellConfig = field(default_factory=ShellConfig)


@dataclass
class GatewayConfig:
    """WebSocket gateway settings."""

    listen: str = ""
    api_key: str = ""
    max_sessions: int = 0
    max_concurrent_turns: int = 0
    session_idle_ttl_hours: int = 0


@dataclass
class MCPServerConfig:
    """A single MCP server connection."""

    transport: str = ""
    command: str = ""
    args: list[str] = field(default_factory=list)
    url: str = ""
    env: dict[str, str] = field(default_factory=dict)


@dataclass
class MCPConfig:
    """MCP server definitions."""

    servers: dict[str, MCPServerConfig] = field(default_factory=dict)


@dataclass
class AgentDefinition:
    """A specialist subagent."""

    system_prompt: str = ""
    tools: list[str] = field(default_factory=list)
    max_turns: int = 0
    max_cost: float = 0.0
    selection: ProviderSelection | None = None


@dataclass
class YantraConfig:
    """Root configuration."""

    selection: ProviderSelection = field(default_factory=ProviderSelection)
    providers: ProvidersConfig = field(default_factory=ProvidersConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    mcp: MCPConfig = field(default_factory=MCPConfig)
    agents: dict[str, AgentDefinition] = field(default_factory=dict)


def default_config() -> YantraConfig:
    """Return a configuration filled with the built-in defaults."""
    return YantraConfig(
        selection=ProviderSelection(provider="openai", model="gpt-4o-mini"),
        runtime=RuntimeConfig(
            max_turns=25,
            turn_timeout_secs=120,
            context_budget=ContextBudgetConfig(
                trigger_ratio=0.85,
                safety_buffer_tokens=1024,
                fallback_max_context_tokens=128000,
            ),
            summarization=SummarizationConfig(target_ratio=0.5, min_turns=6),
        ),
        memory=MemoryConfig(
            enabled=True,
            db_path=".yantra/memory.db",
            embedding_backend="openai",
            embedding=EmbeddingConfig(model="text-embedding-3-small"),
            retrieval=RetrievalConfig(top_k=8, vector_weight=0.7, fts_weight=0.3),
        ),
        gateway=GatewayConfig(
            listen="127.0.0.1:7700",
            max_sessions=50,
            max_concurrent_turns=10,
            session_idle_ttl_hours=48,
        ),
        tools=ToolsConfig(web_search=WebSearchConfig(provider="duckduckgo")),
    )


def resolve_config_path(explicit: str | None = None) -> str | None:
    """Return the config file to load, or None when none is found.

    An explicit path is returned as given. Otherwise ``yantra.toml``,
    ``.yantra/config.toml`` and ``~/.config/yantra/config.toml`` are tried in
    that order.
    """
    if explicit:
        return explicit
    candidates = ["yantra.toml", os.path.join(".yantra", "config.toml")]
    try:
        home = Path.home()
    except RuntimeError:
        home = None
    if home is not None:
        candidates.append(str(home / ".config" / "yantra" / "config.toml"))
    for candidate in candidates:
        if os.path.exists(candidate):
            return candidate
    return None


def load_config(config_path: str | None = None) -> YantraConfig:
    """Load configuration: defaults, then the config file, then YANTRA__ variables.

    A file that cannot be read or parsed is an error only when its path was
    given explicitly. Raises ValueError on failure.
    """
    merged: dict[str, Any] = asdict(default_config())

    path = resolve_config_path(config_path)
    if path:
        try:
            with open(path, "rb") as handle:
                file_data = tomllib.load(handle)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            if config_path:
                raise ValueError(f"loading config {path}: {exc}") from exc
        else:
            _deep_merge(merged, file_data)

    _deep_merge(merged, _env_overrides(os.environ))

    try:
        return _build(YantraConfig, merged)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"unmarshaling config: {exc}") from exc


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """Turn YANTRA__SECTION__KEY variables into a nested mapping."""
    result: dict[str, Any] = {}
    for name, value in environ.items():
        if not name.startswith(_ENV_PREFIX):
            continue
        key = name[len(_ENV_PREFIX):].lower().replace("__", ".")
        if not key:
            continue
        *parents, leaf = key.split(".")
        node = result
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[leaf] = value
    return result


def _deep_merge(target: dict[str, Any], source: Mapping[str, Any]) -> None:
    for key, value in source.items():
        existing = target.get(key)
        if isinstance(value, Mapping) and isinstance(existing, dict):
            _deep_merge(existing, value)
        elif isinstance(value, Mapping):
            target[key] = {}
            _deep_merge(target[key], value)
        else:
            target[key] = value


def _build(cls: type, data: Any) -> Any:
    if not isinstance(data, Mapping):
        raise TypeError(f"expected a table for {cls.__name__}, got {type(data).__name__}")
    kwargs = {
        item.name: _convert(item.type, data[item.name], item.name)
        for item in fields(cls)
        if item.name in data
    }
    return cls(**kwargs)


def _convert(target: Any, value: Any, key: str) -> Any:
    origin = get_origin(target)
    if origin in (types.UnionType, typing.Union):
        if value is None:
            return None
        inner = next(arg for arg in get_args(target) if arg is not type(None))
        return _convert(inner, value, key)
    if origin is list:
        (item_type,) = get_args(target)
        if isinstance(value, str):
            value = value.split(",") if value else []
        if not isinstance(value, list):
            raise TypeError(f"{key}: expected a list, got {type(value).__name__}")
        return [_convert(item_type, item, key) for item in value]
    if origin is dict:
        _, value_type = get_args(target)
        if not isinstance(value, Mapping):
            raise TypeError(f"{key}: expected a table, got {type(value).__name__}")
        return {str(k): _convert(value_type, v, f"{key}.{k}") for k, v in value.items()}
    if is_dataclass(target):
        return _build(target, value)
    if target is bool:
        return _to_bool(value, key)
    if target is int:
        return _to_int(value, key)
    if target is float:
        return _to_float(value, key)
    if target is str:
        return _to_str(value, key)
    return value


def _to_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        if value == "":
            return False
        if value in _TRUE_WORDS:
            return True
        if value in _FALSE_WORDS:
            return False
    raise ValueError(f"{key}: cannot parse {json.dumps(str(value))} as bool")


def _to_int(value: Any, key: str) -> int:
    if isinstance(value, (bool, int, float)):
        return int(value)
    if isinstance(value, str):
        if value == "":
            return 0
        try:
            return int(value, 0)
        except ValueError as exc:
            raise ValueError(f"{key}: cannot parse {json.dumps(value)} as int") from exc
    raise TypeError(f"{key}: expected an integer, got {type(value).__name__}")


def _to_float(value: Any, key: str) -> float:
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, str):
        if value == "":
            return 0.0
        try:
            return float(value)
        except ValueError as exc:
            raise ValueError(f"{key}: cannot parse {json.dumps(value)} as float") from exc
    raise TypeError(f"{key}: expected a number, got {type(value).__name__}")


def _to_str(value: Any, key: str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return str(value)
    raise TypeError(f"{key}: expected a string, got {type(value).__name__}")