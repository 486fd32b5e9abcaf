from __future__ import annotations

import json

import pytest

from watchsync.models.events import (
    DeleteResourceCommand,
    InvalidCommand,
    TimeCommand,
    parse_command,
    resource_available_event,
    resource_removed_event,
    state_event,
    timeline_event,
)
from watchsync.models.playback import PausedAt, PlaybackState, PlayedAt, SeekedTo


def _frame(msg_type: str, **data: object) -> str:
    return json.dumps({"type": msg_type, "data": data})


@pytest.mark.parametrize(
    "msg_type, fact_type",
    [("play", PlayedAt), ("pause", PausedAt), ("seek", SeekedTo)],
)
def test_time_commands_map_to_facts(msg_type: str, fact_type: type) -> None:
    cmd = parse_command(_frame(msg_type, currentTime=12.5))
    assert isinstance(cmd, TimeCommand)
    fact = cmd.to_fact()
    assert isinstance(fact, fact_type)
    assert fact.time == 12.5


def test_optional_resource_ref_is_kept() -> None:
    cmd = parse_command(_frame("seek", currentTime=3, resourceRef="video_1.mkv"))
    assert cmd.resourceRef == "video_1.mkv"


def test_delete_resource() -> None:
    assert isinstance(parse_command(_frame("delete-resource")), DeleteResourceCommand)
    assert isinstance(parse_command('{"type": "delete-resource"}'), DeleteResourceCommand)


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2]",
        '{"type": "play"}',
        '{"type": "play", "data": {}}',
        '{"type": "play", "data": {"currentTime": null}}',
        '{"type": "play", "data": {"currentTime": "soon"}}',
        '{"type": "play", "data": {"currentTime": NaN}}',
        '{"type": "seek", "data": {"currentTime": Infinity}}',
        '{"type": "play", "data": [1]}',
        '{"type": "rewind", "data": {"currentTime": 1}}',
        '{"data": {"currentTime": 1}}',
    ],
)
def test_malformed_frames_are_rejected(raw: str) -> None:
    with pytest.raises(InvalidCommand):
        parse_command(raw)


def test_state_event_shape() -> None:
    msg = state_event(PlaybackState(isPlaying=True, currentTime=4.0, resourceRef="v.mkv", lastUpdate=1))
    assert msg == {
        "type": "state",
        "data": {
            "isPlaying": True,
            "currentTime": 4.0,
            "resourceRef": "v.mkv",
            "lastUpdate": 1,
            "resourceUrl": "/uploads/v.mkv",
        },
    }


def test_state_event_without_resource() -> None:
    data = state_event(PlaybackState())["data"]
    assert data["resourceRef"] is None
    assert data["resourceUrl"] is None


def test_fact_events() -> None:
    assert timeline_event(PlayedAt(1.5)) == {"type": "play", "data": {"currentTime": 1.5}}
    assert timeline_event(SeekedTo(2.0))["type"] == "seek"
    assert resource_available_event("v.mkv", "/media/") == {
        "type": "resource-available",
        "data": {"resourceRef": "v.mkv", "resourceUrl": "/media/v.mkv"},
    }
    assert resource_removed_event() == {"type": "resource-removed", "data": {}}
