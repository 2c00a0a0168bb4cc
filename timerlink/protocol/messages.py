"""Wire message models.

Payloads cross the link as plain JSON-compatible dicts with camelCase keys:

- timer state: {type: "timerState", mode, phase, displaySeconds, headline, exercise?}
- command:     {command: "start" | "stop"}
- ping:        {command: "ping", pingId}
- pong:        {pong: true, pingId?}
- heart rate:  {heartRate: number}

decode_message() classifies and validates a payload, raising
MessageDecodeError; parse_message() is the tolerant variant every receiver
uses (malformed payloads are logged and dropped).
"""

from collections.abc import Mapping
from enum import StrEnum
from typing import Any, Literal

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from timerlink.protocol.errors import MessageDecodeError


class TimerMode(StrEnum):
    EMOM = "EMOM"
    AMRAP = "AMRAP"
    FOR_TIME = "FOR TIME"


class TimerPhase(StrEnum):
    IDLE = "idle"
    COUNTDOWN = "countdown"
    RUNNING = "running"
    COMPLETE = "complete"


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the camelCase wire dict."""
        return self.model_dump(by_alias=True, mode="json")


class TimerWireMessage(WireModel):
    """Primary timer state, pushed to the companion on every tick or transition.

    An idle phase or an empty mode is the explicit "stop following" signal;
    for those, every other field may be empty. Non-idle messages must carry
    mode, displaySeconds and headline.

    Attributes:
        mode: Timer mode (None only for idle messages)
        phase: Timer phase
        display_seconds: Seconds shown on the primary (never negative)
        headline: Short label for the current phase/round
        exercise: Current exercise, if any
    """

    type: Literal["timerState"] = "timerState"
    mode: TimerMode | None = None
    phase: TimerPhase
    display_seconds: int = Field(default=0, ge=0, alias="displaySeconds")
    headline: str = ""
    exercise: str | None = None

    @field_validator("mode", mode="before")
    @classmethod
    def empty_mode_is_none(cls, value: Any) -> Any:
        if value == "":
            return None
        return value

    @model_validator(mode="before")
    @classmethod
    def require_fields_when_active(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        phase = data.get("phase")
        mode = data.get("mode")
        if phase == TimerPhase.IDLE or not mode:
            return data
        missing = [
            key
            for key, alias in (("display_seconds", "displaySeconds"), ("headline", "headline"))
            if key not in data and alias not in data
        ]
        if missing:
            raise ValueError(f"missing required fields for phase {phase}: {', '.join(missing)}")
        return data

    @property
    def is_idle(self) -> bool:
        return self.phase is TimerPhase.IDLE or self.mode is None

    @property
    def carries_exercise(self) -> bool:
        """False when the sender omitted `exercise` because it was unchanged."""
        return "exercise" in self.model_fields_set

    def to_payload(self, include_exercise: bool = True) -> dict[str, Any]:
        payload = super().to_payload()
        if not include_exercise:
            payload.pop("exercise", None)
        return payload


class CommandMessage(WireModel):
    """Session command from the primary."""

    command: Literal["start", "stop"]


class PingMessage(WireModel):
    command: Literal["ping"] = "ping"
    ping_id: str | None = Field(default=None, alias="pingId")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class PongMessage(WireModel):
    pong: bool = True
    ping_id: str | None = Field(default=None, alias="pingId")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class HeartRateMessage(WireModel):
    heart_rate: float = Field(alias="heartRate", gt=0, allow_inf_nan=False)


WireMessage = TimerWireMessage | CommandMessage | PingMessage | PongMessage | HeartRateMessage


def decode_message(payload: Any) -> WireMessage:
    """Classify and validate an incoming payload.

    Args:
        payload: Raw dict received from the link

    Returns:
        The validated wire message

    Raises:
        MessageDecodeError: If the payload is not a mapping, is not a known
            message kind, or fails validation
    """
    if not isinstance(payload, Mapping):
        raise MessageDecodeError(f"payload must be a mapping, got {type(payload).__name__}")

    model: type[WireModel]
    if payload.get("type") == "timerState":
        model = TimerWireMessage
    elif "pong" in payload:
        model = PongMessage
    elif "command" in payload:
        model = PingMessage if payload.get("command") == "ping" else CommandMessage
    elif "heartRate" in payload:
        model = HeartRateMessage
    else:
        raise MessageDecodeError(f"unrecognized payload keys: {sorted(payload)}")

    try:
        return model.model_validate(dict(payload))  # type: ignore[return-value]
    except ValidationError as e:
        raise MessageDecodeError(f"invalid {model.__name__}: {e.error_count()} error(s)") from e


def parse_message(payload: Any) -> WireMessage | None:
    """Decode a payload, logging and dropping anything malformed."""
    try:
        return decode_message(payload)
    except MessageDecodeError as e:
        logger.warning(f"Dropping malformed message: {e}")
        return None
