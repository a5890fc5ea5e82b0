"""Wall-clock scheduling of instruction cycles and timer ticks."""

from typing import Callable, Optional

from chip8kit.constants import DEFAULT_CLOCK_HZ, TIMER_HZ
from chip8kit.emulator import step
from chip8kit.state import EmulatorState, RunState
from chip8kit.timers import tick


class Clock:
    """Turns elapsed wall time into instruction cycles and 60 Hz timer ticks.

    Cycles and ticks keep separate fractional budgets, so timers decrement at
    their fixed rate whatever the configured clock, and keep decrementing
    while the machine waits for a key.
    """

    def __init__(self, clock_hz: float = DEFAULT_CLOCK_HZ, timer_hz: float = TIMER_HZ, max_catchup: float = 0.25):
        if clock_hz <= 0:
            raise ValueError(f"clock_hz must be positive, got {clock_hz}")
        if timer_hz <= 0:
            raise ValueError(f"timer_hz must be positive, got {timer_hz}")
        self.clock_hz = clock_hz
        self.timer_hz = timer_hz
        self.max_catchup = max_catchup
        self.reset()

    def reset(self):
        self._cycle_budget = 0.0
        self._timer_budget = 0.0
        self.cycles_executed = 0
        self.ticks_elapsed = 0

    def advance(
        self,
        state: EmulatorState,
        elapsed: float,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> EmulatorState:
        """Advance the machine by ``elapsed`` seconds of wall time.

        ``should_stop`` is polled between cycles; once it returns True the
        remaining cycles of this quantum are dropped. Timer ticks still apply
        so the delay and sound timers track real time.
        """
        if elapsed < 0:
            raise ValueError(f"elapsed must be non-negative, got {elapsed}")
        if self.max_catchup is not None:
            elapsed = min(elapsed, self.max_catchup)

        self._cycle_budget += elapsed * self.clock_hz
        self._timer_budget += elapsed * self.timer_hz

        cycles = int(self._cycle_budget)
        self._cycle_budget -= cycles
        for _ in range(cycles):
            if state.status is not RunState.RUNNING:
                break
            if should_stop is not None and should_stop():
                break
            state = step(state)
            self.cycles_executed += 1

        ticks = int(self._timer_budget)
        self._timer_budget -= ticks
        if state.status is not RunState.HALTED:
            for _ in range(ticks):
                state = tick(state)
            self.ticks_elapsed += ticks
        return state
