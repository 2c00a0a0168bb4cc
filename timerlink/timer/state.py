"""Timer state variants.

The reference timer is always in exactly one of these states. Each converts
to the TimerWireMessage the companion receives.
"""

from dataclasses import dataclass

from timerlink.protocol.messages import TimerMode, TimerPhase, TimerWireMessage

COUNTDOWN_HEADLINE = "Get ready"


@dataclass(frozen=True)
class Idle:
    phase = TimerPhase.IDLE

    def to_wire(self, mode: TimerMode | None = None) -> TimerWireMessage:
        return TimerWireMessage(phase=TimerPhase.IDLE)


@dataclass(frozen=True)
class Countdown:
    """Pre-start countdown.

    Attributes:
        seconds: Seconds left before the workout starts
    """

    seconds: int
    phase = TimerPhase.COUNTDOWN

    def to_wire(self, mode: TimerMode | None = None) -> TimerWireMessage:
        return TimerWireMessage(mode=mode, phase=self.phase, display_seconds=max(0, self.seconds), headline=COUNTDOWN_HEADLINE)


@dataclass(frozen=True)
class Running:
    """Workout in progress.

    Attributes:
        display_seconds: Seconds shown (time to next beep, remaining or elapsed)
        headline: Round label or elapsed-time label
        exercise: Current exercise, if any
    """

    display_seconds: int
    headline: str
    exercise: str | None = None
    phase = TimerPhase.RUNNING

    def to_wire(self, mode: TimerMode | None = None) -> TimerWireMessage:
        return TimerWireMessage(
            mode=mode,
            phase=self.phase,
            display_seconds=max(0, self.display_seconds),
            headline=self.headline,
            exercise=self.exercise,
        )


@dataclass(frozen=True)
class Complete:
    display_seconds: int
    headline: str
    phase = TimerPhase.COMPLETE

    def to_wire(self, mode: TimerMode | None = None) -> TimerWireMessage:
        return TimerWireMessage(mode=mode, phase=self.phase, display_seconds=max(0, self.display_seconds), headline=self.headline)


TimerState = Idle | Countdown | Running | Complete
