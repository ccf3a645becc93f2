#!/usr/bin/env python3
"""Decide which timestamps to export from a marked range of a video.

Short ranges are exported frame by frame as the decoder presents them;
longer ranges get evenly spaced timestamps capped at a maximum count.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Optional


class SamplerError(ValueError):
    """Base exception for sampling precondition failures."""
    pass


class InvalidRange(SamplerError):
    """Raised when the end of a range is not after its start."""
    pass


class InvalidConfig(SamplerError):
    """Raised when the sample count or short-range threshold is unusable."""
    pass


class SamplingMode(Enum):
    EVERY_FRAME = "every_frame"
    FIXED_STEP = "fixed_step"


@dataclass(frozen=True)
class TimeRange:
    start: float
    end: float

    @property
    def length(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class SamplingPlan:
    mode: SamplingMode
    step: Optional[float]
    max_samples: int


@dataclass(frozen=True)
class Sample:
    index: int
    time: float


def plan(time_range: TimeRange, max_samples: int, short_threshold: float) -> SamplingPlan:
    """Pick the sampling mode and step for a range."""
    if time_range.start < 0:
        raise InvalidRange(f"start must be >= 0, got {time_range.start}")
    if not time_range.end > time_range.start:
        raise InvalidRange(
            f"end ({time_range.end}) must be after start ({time_range.start})")
    if max_samples < 2:
        raise InvalidConfig(f"max_samples must be >= 2, got {max_samples}")
    if not short_threshold > 0:
        raise InvalidConfig(f"short_threshold must be > 0, got {short_threshold}")

    if time_range.length <= short_threshold:
        return SamplingPlan(SamplingMode.EVERY_FRAME, None, max_samples)
    step = time_range.length / (max_samples - 1)
    return SamplingPlan(SamplingMode.FIXED_STEP, step, max_samples)


def produce_sequence(sampling_plan: SamplingPlan, time_range: TimeRange,
                     frame_advance: Callable[[], Optional[float]]) -> Iterator[Sample]:
    """Yield the samples of a plan, lazily.

    In every-frame mode each sample's time comes from ``frame_advance``, which
    decodes the next frame and returns its timestamp, or None at end of stream.
    Fixed-step mode never calls it.
    """
    if sampling_plan.mode is SamplingMode.FIXED_STEP:
        yield from _fixed_step(sampling_plan, time_range)
        return

    for index in range(sampling_plan.max_samples):
        t = frame_advance()
        if t is None or t > time_range.end:
            return
        yield Sample(index, t)


def _fixed_step(sampling_plan, time_range):
    for index in range(sampling_plan.max_samples):
        t = time_range.start + index * sampling_plan.step
        if t > time_range.end:
            # start + (n-1) * (length / (n-1)) can overshoot end by rounding
            if not math.isclose(t, time_range.end, rel_tol=1e-9, abs_tol=1e-9):
                return
            t = time_range.end
        yield Sample(index, t)
