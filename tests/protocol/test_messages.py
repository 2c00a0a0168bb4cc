"""Tests for wire message decoding and serialization."""

import pytest

from timerlink.protocol.errors import MessageDecodeError
from timerlink.protocol.messages import (
    CommandMessage,
    HeartRateMessage,
    PingMessage,
    PongMessage,
    TimerMode,
    TimerPhase,
    TimerWireMessage,
    decode_message,
    parse_message,
)


class TestDecodeMessage:
    """decode_message classifies payloads by their keys."""

    def test_timer_state(self) -> None:
        message = decode_message(
            {
                "type": "timerState",
                "mode": "FOR TIME",
                "phase": "running",
                "displaySeconds": 42,
                "headline": "Elapsed",
                "exercise": "Burpees",
            }
        )
        assert isinstance(message, TimerWireMessage)
        assert message.mode is TimerMode.FOR_TIME
        assert message.phase is TimerPhase.RUNNING
        assert message.display_seconds == 42
        assert message.exercise == "Burpees"
        assert message.carries_exercise

    def test_idle_with_empty_fields(self) -> None:
        message = decode_message({"type": "timerState", "mode": "", "phase": "idle", "displaySeconds": 0, "headline": ""})
        assert isinstance(message, TimerWireMessage)
        assert message.mode is None
        assert message.is_idle

    def test_empty_mode_is_idle_regardless_of_phase(self) -> None:
        message = decode_message({"type": "timerState", "mode": "", "phase": "running"})
        assert isinstance(message, TimerWireMessage)
        assert message.is_idle

    def test_command(self) -> None:
        assert decode_message({"command": "start"}) == CommandMessage(command="start")

    def test_ping(self) -> None:
        message = decode_message({"command": "ping", "pingId": "abc"})
        assert isinstance(message, PingMessage)
        assert message.ping_id == "abc"

    def test_pong_without_id(self) -> None:
        message = decode_message({"pong": True})
        assert isinstance(message, PongMessage)
        assert message.ping_id is None

    def test_heart_rate(self) -> None:
        message = decode_message({"heartRate": 128.5})
        assert isinstance(message, HeartRateMessage)
        assert message.heart_rate == 128.5

    @pytest.mark.parametrize(
        "payload",
        [
            {"type": "timerState", "mode": "EMOM", "phase": "running"},
            {"type": "timerState", "mode": "TABATA", "phase": "running", "displaySeconds": 1, "headline": "x"},
            {"type": "timerState", "mode": "EMOM", "phase": "running", "displaySeconds": -3, "headline": "x"},
            {"command": "jump"},
            {"heartRate": "fast"},
            {"heartRate": -1},
            {"unknown": 1},
            ["not", "a", "mapping"],
        ],
    )
    def test_malformed_raises(self, payload: object) -> None:
        with pytest.raises(MessageDecodeError):
            decode_message(payload)

    def test_parse_message_drops_and_logs(self, log_messages: list[str]) -> None:
        assert parse_message({"heartRate": "fast"}) is None
        assert any("malformed" in message for message in log_messages)


class TestPayloads:
    """Serialization uses the camelCase wire keys."""

    def test_timer_state_payload(self) -> None:
        message = TimerWireMessage(mode=TimerMode.EMOM, phase=TimerPhase.RUNNING, display_seconds=30, headline="Minute 1", exercise="Squats")
        assert message.to_payload() == {
            "type": "timerState",
            "mode": "EMOM",
            "phase": "running",
            "displaySeconds": 30,
            "headline": "Minute 1",
            "exercise": "Squats",
        }

    def test_timer_state_payload_without_exercise(self) -> None:
        message = TimerWireMessage(mode=TimerMode.EMOM, phase=TimerPhase.RUNNING, display_seconds=30, headline="Minute 1", exercise="Squats")
        payload = message.to_payload(include_exercise=False)
        assert "exercise" not in payload
        assert decode_message(payload).carries_exercise is False

    def test_ping_and_pong_payloads(self) -> None:
        assert PingMessage(ping_id="p-1").to_payload() == {"command": "ping", "pingId": "p-1"}
        assert PongMessage(ping_id="p-1").to_payload() == {"pong": True, "pingId": "p-1"}
        assert PongMessage().to_payload() == {"pong": True}

    def test_heart_rate_payload(self) -> None:
        assert HeartRateMessage(heart_rate=101.0).to_payload() == {"heartRate": 101.0}
