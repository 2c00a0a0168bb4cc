"""Session-scoped heart-rate averaging.

Simple running mean: no windowing, no outlier rejection. A single bad
sample biases the session average until the next reset.
"""

import math
from dataclasses import dataclass


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    Python's round() uses banker's rounding (round(90.5) == 90), which is not
    what the displayed bpm values use.
    """
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


@dataclass
class HeartRateAccumulator:
    """Running heart-rate metrics for one session.

    Attributes:
        running_sum: Sum of all accepted raw samples
        sample_count: Number of accepted samples
        current_bpm: Latest sample, rounded
        average_bpm: Rounded mean of all samples
        last_sample_at: Scheduler time of the latest sample
    """

    running_sum: float = 0.0
    sample_count: int = 0
    current_bpm: int | None = None
    average_bpm: int | None = None
    last_sample_at: float | None = None

    def add_sample(self, bpm: float, at: float | None = None) -> None:
        self.current_bpm = round_half_up(bpm)
        self.running_sum += bpm
        self.sample_count += 1
        self.average_bpm = round_half_up(self.running_sum / self.sample_count)
        self.last_sample_at = at

    def reset(self) -> None:
        self.running_sum = 0.0
        self.sample_count = 0
        self.current_bpm = None
        self.average_bpm = None
        self.last_sample_at = None

    @property
    def is_empty(self) -> bool:
        return self.sample_count == 0
