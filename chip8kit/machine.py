"""Mutable owner of one emulator instance, shared by the front ends."""

import threading
from typing import Optional

import jax
import numpy as np
from omegaconf import DictConfig, OmegaConf

from chip8kit.clock import Clock
from chip8kit.config import load_config, quirks_from_config
from chip8kit.display import snapshot
from chip8kit.emulator import run_cycles
from chip8kit.errors import Chip8Error
from chip8kit.keypad import set_key
from chip8kit.logging import MachineLogger
from chip8kit.memory import load_program
from chip8kit.state import EmulatorState, RunState, create_state
from chip8kit.timers import is_sound_active


class Machine:
    """Holds the current EmulatorState and serializes every change to it.

    The state itself is immutable; the lock guards the reference swap, so a
    key event delivered from an input thread never interleaves with a cycle.
    Stop requests are honoured between instructions, and ``snapshot()``
    always returns the last completed frame.
    """

    def __init__(self, config: Optional[DictConfig] = None, logger: Optional[MachineLogger] = None):
        self.config = config if config is not None else load_config()
        self.logger = logger or MachineLogger(log_level=self.config.log_level)
        self.clock = Clock(self.config.clock_hz, max_catchup=self.config.max_catchup)
        self._lock = threading.RLock()
        self._stop_requested = threading.Event()
        self._program: Optional[bytes] = None
        self._state = self._fresh_state()
        self.logger.log_config(OmegaConf.to_container(self.config))

    def _fresh_state(self) -> EmulatorState:
        return create_state(jax.random.PRNGKey(self.config.seed), quirks=quirks_from_config(self.config))

    @property
    def state(self) -> EmulatorState:
        with self._lock:
            return self._state

    @property
    def status(self) -> RunState:
        return self.state.status

    @property
    def halted(self) -> bool:
        return self.state.halted

    @property
    def halt_reason(self) -> Optional[Chip8Error]:
        return self.state.halt_reason

    def load(self, program: bytes, source: Optional[str] = None) -> EmulatorState:
        """Reinitialize the machine with ``program``.

        Raises:
            ProgramTooLarge: the machine keeps its previous state
        """
        program = bytes(program)
        try:
            state = load_program(self._fresh_state(), program)
        except Chip8Error as error:
            self.logger.error(f"Cannot load program: {error}")
            raise
        with self._lock:
            self._state = state
            self._program = program
            self.clock.reset()
            self._stop_requested.clear()
        self.logger.log_load(len(program), source)
        return state

    def load_file(self, path: str) -> EmulatorState:
        with open(path, "rb") as f:
            return self.load(f.read(), source=path)

    def reset(self) -> EmulatorState:
        """Reload the last program from scratch."""
        if self._program is None:
            raise RuntimeError("No program loaded")
        self.logger.info("Reset")
        return self.load(self._program)

    def set_key(self, index: int, pressed: bool) -> None:
        with self._lock:
            was_waiting = self._state.awaiting_key
            self._state = set_key(self._state, index, pressed)
            if was_waiting and not self._state.awaiting_key:
                self.logger.debug(f"Key {index:X} resumed execution")

    def request_stop(self) -> None:
        self.logger.info("Stop requested")
        self._stop_requested.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested.is_set()

    def advance(self, elapsed: float) -> EmulatorState:
        """Run the cycles and timer ticks owed for ``elapsed`` seconds."""
        with self._lock:
            if self._state.halted or self.stop_requested:
                return self._state
            self._state = self.clock.advance(self._state, elapsed, self._stop_requested.is_set)
            if self._state.halted:
                self.logger.log_halt(self._state.halt_reason)
            return self._state

    def run_cycles(self, cycles: int) -> EmulatorState:
        """Run a fixed number of cycles without timer ticks."""
        with self._lock:
            if self._state.halted:
                return self._state
            self._state = run_cycles(self._state, cycles)
            if self._state.halted:
                self.logger.log_halt(self._state.halt_reason)
            return self._state

    def snapshot(self) -> np.ndarray:
        return snapshot(self.state)

    def is_sound_active(self) -> bool:
        return is_sound_active(self.state)
