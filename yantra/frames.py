"""Wire frames exchanged between clients and the gateway, and session records."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any


def _format_time(moment: datetime) -> str:
    text = moment.isoformat()
    return text[:-6] + "Z" if text.endswith("+00:00") else text


def _parse_time(text: str) -> datetime:
    return datetime.fromisoformat(text)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ClientFrameType(StrEnum):
    """Frames a client sends."""

    HELLO = "hello"
    SEND = "send"
    SUBSCRIBE = "subscribe"
    CANCEL = "cancel"
    SESSION_CMD = "session_cmd"


class ServerFrameType(StrEnum):
    """Frames the gateway sends."""

    WELCOME = "welcome"
    TEXT_DELTA = "text_delta"
    TOOL_PROGRESS = "tool_progress"
    TURN_COMPLETE = "turn_complete"
    ERROR = "error"
    SESSION_LIST = "session_list"
    SESSION_CREATED = "session_created"
    SESSION_SWITCHED = "session_switched"


@dataclass
class SessionRecord:
    """A persisted session."""

    id: str
    name: str = ""
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    message_count: int = 0
    archived: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id}
        if self.name:
            data["name"] = self.name
        data["created_at"] = _format_time(self.created_at)
        data["updated_at"] = _format_time(self.updated_at)
        data["message_count"] = self.message_count
        data["archived"] = self.archived
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionRecord:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            created_at=_parse_time(data["created_at"]) if "created_at" in data else _now(),
            updated_at=_parse_time(data["updated_at"]) if "updated_at" in data else _now(),
            message_count=int(data.get("message_count", 0)),
            archived=bool(data.get("archived", False)),
        )


_CLIENT_FIELDS = ("api_key", "session_id", "content", "command", "args")
_SERVER_FIELDS = ("session_id", "text", "tool", "status", "error")


@dataclass
class ClientFrame:
    """A message from a client to the gateway."""

    type: ClientFrameType
    api_key: str = ""
    session_id: str = ""
    content: str = ""
    command: str = ""
    args: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": str(self.type)}
        data.update({name: getattr(self, name) for name in _CLIENT_FIELDS if getattr(self, name)})
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClientFrame:
        """Build a frame; raises ValueError for an unknown frame type."""
        return cls(
            type=ClientFrameType(data.get("type")),
            **{name: data.get(name, "") for name in _CLIENT_FIELDS},
        )


@dataclass
class ServerFrame:
    """A message from the gateway to a client."""

    type: ServerFrameType
    session_id: str = ""
    text: str = ""
    tool: str = ""
    status: str = ""
    error: str = ""
    sessions: list[SessionRecord] = field(default_factory=list)
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": str(self.type)}
        data.update({name: getattr(self, name) for name in _SERVER_FIELDS if getattr(self, name)})
        if self.sessions:
            data["sessions"] = [record.to_dict() for record in self.sessions]
        if self.message:
            data["message"] = self.message
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ServerFrame:
        """Build a frame; raises ValueError for an unknown frame type."""
        return cls(
            type=ServerFrameType(data.get("type")),
            sessions=[SessionRecord.from_dict(item) for item in data.get("sessions") or []],
            message=data.get("message", ""),
            **{name: data.get(name, "") for name in _SERVER_FIELDS},
        )


class Channel(ABC):
    """An adapter that brings messages in from an outside chat service."""

    name: str = ""

    @abstractmethod
    def start(self) -> None:
        """Begin listening for inbound messages."""

    @abstractmethod
    def stop(self) -> None:
        """Shut the channel down gracefully."""

    @abstractmethod
    def health(self) -> str:
        """Return the current health status."""