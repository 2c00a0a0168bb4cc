"""Reference EMOM / AMRAP / FOR TIME timer."""

from timerlink.timer.state import Complete, Countdown, Idle, Running, TimerState
from timerlink.timer.utils import format_time, parse_exercises
from timerlink.timer.workout import WorkoutTimer

__all__ = [
    "Complete",
    "Countdown",
    "Idle",
    "Running",
    "TimerState",
    "WorkoutTimer",
    "format_time",
    "parse_exercises",
]
