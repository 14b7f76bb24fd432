"""Timing traces for the stages of a packaging run."""

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass, field
import logging
from time import perf_counter
from typing import Generator


_LOGGER = logging.getLogger(__name__)

__all__ = [
    "StageTimings",
    "stage",
    "collect_timings",
]


@dataclass
class StageTimings:
    """Elapsed time of each stage, in the order the stages finished."""

    timings: list[tuple[str, float]] = field(default_factory=list)

    def summary(self) -> str:
        """Render the timings as a single log line."""
        return ", ".join(f"{name}={duration:0.2f}s" for name, duration in self.timings)


_stack: contextvars.ContextVar[list[str]] = contextvars.ContextVar("stage_stack")
_collector: contextvars.ContextVar[StageTimings | None] = contextvars.ContextVar(
    "stage_collector", default=None
)


@contextmanager
def collect_timings() -> Generator[StageTimings, None, None]:
    """Record the duration of every stage entered within this context."""
    timings = StageTimings()
    token = _collector.set(timings)
    try:
        yield timings
    finally:
        _collector.reset(token)


@contextmanager
def stage(name: str) -> Generator[None, None, None]:
    """Trace a named pipeline stage."""
    stack = _stack.get([])
    token = _stack.set(stack + [name])
    label = " > ".join(stack + [name])
    t1 = perf_counter()
    _LOGGER.debug("[Stage] > %s", label)
    try:
        yield
    finally:
        elapsed = perf_counter() - t1
        _stack.reset(token)
        _LOGGER.debug("[Stage] < %s (%0.2fs)", label, elapsed)
        if (timings := _collector.get()) is not None:
            timings.timings.append((label, elapsed))
