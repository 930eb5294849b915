import json
from datetime import datetime, timezone

import pytest

from yantra.frames import (
    Channel,
    ClientFrame,
    ClientFrameType,
    ServerFrame,
    ServerFrameType,
    SessionRecord,
)

WHEN = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_hello_frame_wire_form():
    frame = ClientFrame(type=ClientFrameType.HELLO, api_key="placeholder")
    assert frame.to_dict() == {"type": "hello", "api_key": "placeholder"}


def test_cancel_frame_has_only_type():
    assert ClientFrame(type=ClientFrameType.CANCEL).to_dict() == {"type": "cancel"}


def test_client_frame_round_trip():
    frame = ClientFrame(type=ClientFrameType.SESSION_CMD, command="new", args="tui-session")
    wire = json.dumps(frame.to_dict())
    assert ClientFrame.from_dict(json.loads(wire)) == frame


def test_client_frame_unknown_type():
    with pytest.raises(ValueError):
        ClientFrame.from_dict({"type": "bogus"})


def test_server_frame_text_delta():
    frame = ServerFrame.from_dict({"type": "text_delta", "text": "hello"})
    assert frame.type is ServerFrameType.TEXT_DELTA
    assert frame.text == "hello"
    assert frame.sessions == []


def test_server_frame_round_trip_with_sessions():
    record = SessionRecord(id="s1", name="tui-session", created_at=WHEN, updated_at=WHEN, message_count=3)
    frame = ServerFrame(type=ServerFrameType.SESSION_LIST, sessions=[record], message="ok")
    data = json.loads(json.dumps(frame.to_dict()))
    assert ServerFrame.from_dict(data) == frame


def test_server_frame_unknown_type():
    with pytest.raises(ValueError):
        ServerFrame.from_dict({"type": "nope"})


def test_session_record_omits_empty_name():
    data = SessionRecord(id="s1", created_at=WHEN, updated_at=WHEN).to_dict()
    assert "name" not in data
    assert data["created_at"].endswith("Z")
    assert data["archived"] is False


def test_session_record_round_trip():
    record = SessionRecord(id="abc", name="work", created_at=WHEN, updated_at=WHEN, message_count=7, archived=True)
    assert SessionRecord.from_dict(record.to_dict()) == record


def test_channel_is_abstract():
    with pytest.raises(TypeError):
        Channel()