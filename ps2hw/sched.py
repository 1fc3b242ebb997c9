"""Cycle-driven event scheduler that paces emulation against real time."""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

_log = logging.getLogger(__name__)

EE_FREQUENCY = 294_912_000
EE_CYCLES_PER_FRAME = EE_FREQUENCY // 60

_MASK64 = 0xFFFF_FFFF_FFFF_FFFF
_DRAW_BATCH_INTERVAL = 4_489_019
_VSYNC_DELAY = 431_096

EventCallback = Callable[[Any], None]


class Backend(Protocol):
    def run_for_cycles(self, cycles: int) -> Any: ...


@dataclass(order=True)
class Event:
    """A callback due at an absolute cycle; ties run in insertion order."""

    cycle: int
    seq: int
    callback: EventCallback = field(compare=False)


class Scheduler:
    """Orders timed events and splits execution into timeslices between them.

    Callbacks receive the machine, an object with ``gs`` and ``scheduler``
    attributes.
    """

    def __init__(self) -> None:
        self.events: list[Event] = []
        self.current_cycle = 0
        self.real_time_start: float | None = None
        self.disable_throttle = False
        self.vsync_count = 0
        self.last_vsync_time = time.monotonic()
        self.internal_fps = 0.0
        self._seq = itertools.count()

    def initialize_events(self) -> None:
        """Schedule the first draw batch, which keeps the frame cycle going."""

        def first_batch(machine: Any) -> None:
            machine.gs.draw_buffered()
            scheduler = machine.scheduler
            scheduler.add_event(_DRAW_BATCH_INTERVAL, Scheduler._draw_batch_callback)
            scheduler.add_event(_VSYNC_DELAY, Scheduler._vsync_callback)

        self.add_event(_DRAW_BATCH_INTERVAL, first_batch)

    def add_event(self, in_cycles: int, callback: EventCallback) -> None:
        """Schedule ``callback`` to run ``in_cycles`` cycles from now."""
        target = (self.current_cycle + in_cycles) & _MASK64
        _log.debug("Adding event for cycle %d (in %d cycles)", target, in_cycles)
        heapq.heappush(self.events, Event(target, next(self._seq), callback))

    def cycles_for_next_timeslice(self) -> int:
        """Cycles to run before the next event is due, at most one frame."""
        if not self.events:
            return EE_CYCLES_PER_FRAME
        until = max(0, self.events[0].cycle - self.current_cycle)
        return min(until, EE_CYCLES_PER_FRAME)

    def advance_cycles(self, cycles: int) -> None:
        """Move the emulated clock forward."""
        self.current_cycle = (self.current_cycle + cycles) & _MASK64

    def drain_due_events(self) -> list[EventCallback]:
        """Remove and return the callbacks of every event that is due."""
        callbacks = []
        while self.events and self.events[0].cycle <= self.current_cycle:
            event = heapq.heappop(self.events)
            _log.debug("Executing event for cycle %d", event.cycle)
            callbacks.append(event.callback)
        return callbacks

    def sleep_if_ahead(self) -> None:
        """Sleep until real time catches up with emulated time."""
        if self.disable_throttle or self.real_time_start is None:
            return
        expected = self.real_time_start + self.current_cycle / EE_FREQUENCY
        now = time.monotonic()
        if now < expected:
            _log.debug("Sleeping for %fs to sync", expected - now)
            time.sleep(expected - now)

    def run_timeslice(self, backend: Backend, machine: Any) -> None:
        """Run the backend up to the next event, then fire the due events."""
        if self.real_time_start is None:
            self.real_time_start = time.monotonic()
        cycles = self.cycles_for_next_timeslice()
        if cycles > 0:
            backend.run_for_cycles(cycles)
        self.advance_cycles(cycles)
        for callback in self.drain_due_events():
            callback(machine)
        self.sleep_if_ahead()

    def run_main_loop(self, backend: Backend, machine: Any) -> None:
        """Run timeslices until the backend or a callback raises."""
        if self.real_time_start is None:
            self.real_time_start = time.monotonic()
        while True:
            self.run_timeslice(backend, machine)

    @staticmethod
    def _vsync_callback(machine: Any) -> None:
        machine.gs.gs_csr |= 8
        scheduler = machine.scheduler
        scheduler.vsync_count += 1
        now = time.monotonic()
        elapsed = now - scheduler.last_vsync_time
        if elapsed >= 1.0:
            scheduler.internal_fps = scheduler.vsync_count / elapsed
            scheduler.vsync_count = 0
            scheduler.last_vsync_time = now

    @staticmethod
    def _draw_batch_callback(machine: Any) -> None:
        machine.gs.draw_buffered()
        scheduler = machine.scheduler
        _log.debug("Draw batch at cycle %d", scheduler.current_cycle)
        scheduler.add_event(_DRAW_BATCH_INTERVAL, Scheduler._draw_batch_callback)
        scheduler.add_event(_VSYNC_DELAY, Scheduler._vsync_callback)