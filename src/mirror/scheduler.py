"""
Update scheduling: decides whether captures come from the caller's trigger
or from a recurring timer, and tracks the engine lifecycle.
"""
from __future__ import annotations

import enum
import logging
import tkinter as tk
from typing import Any, Callable, Optional

from src.mirror.config import CaptureMode, PeriodicMode

LOGGER = logging.getLogger("CanvasMirror.Scheduler")


class EngineState(enum.Enum):
    UNINITIALIZED = 'uninitialized'
    RESOLVING = 'resolving'
    ACTIVE_MANUAL = 'active(manual)'
    ACTIVE_PERIODIC = 'active(periodic)'
    FAILED = 'failed'
    TORN_DOWN = 'torn_down'


_TERMINAL = (EngineState.FAILED, EngineState.TORN_DOWN)


class UpdateScheduler:
    def __init__(self, document: Any, mode: CaptureMode, capture: Callable[[], None]) -> None:
        self._document = document
        self._mode = mode
        self._capture = capture
        self._timer_job: Optional[str] = None
        self.state = EngineState.UNINITIALIZED

    @property
    def mode(self) -> CaptureMode:
        return self._mode

    @property
    def active(self) -> bool:
        return self.state in (EngineState.ACTIVE_MANUAL, EngineState.ACTIVE_PERIODIC)

    def _move(self, expected: EngineState, target: EngineState) -> bool:
        if self.state is not expected:
            LOGGER.debug("Ignoring %s -> %s while %s", expected.value, target.value, self.state.value)
            return False
        self.state = target
        return True

    def begin_resolving(self) -> bool:
        return self._move(EngineState.UNINITIALIZED, EngineState.RESOLVING)

    def arm(self) -> bool:
        """Enter the active state for the configured mode."""
        if isinstance(self._mode, PeriodicMode):
            if not self._move(EngineState.RESOLVING, EngineState.ACTIVE_PERIODIC):
                return False
            self._schedule_tick()
        elif not self._move(EngineState.RESOLVING, EngineState.ACTIVE_MANUAL):
            return False
        LOGGER.debug("Capture scheduler armed in %s mode", self._mode.name)
        return True

    def fail(self) -> None:
        self._move(EngineState.RESOLVING, EngineState.FAILED)

    def request_capture(self) -> None:
        """External trigger; only acts in manual mode."""
        if self.state is EngineState.ACTIVE_MANUAL:
            self._capture()

    def teardown(self) -> None:
        self._cancel_tick()
        self.state = EngineState.TORN_DOWN

    def _schedule_tick(self) -> None:
        try:
            self._timer_job = self._document.after(self._mode.interval_ms, self._tick)
        except tk.TclError as exc:
            self._timer_job = None
            LOGGER.debug("Cannot schedule periodic capture: %s", exc)

    def _cancel_tick(self) -> None:
        if self._timer_job is None:
            return
        try:
            self._document.after_cancel(self._timer_job)
        except tk.TclError:
            pass
        self._timer_job = None

    def _tick(self) -> None:
        self._timer_job = None
        if self.state is not EngineState.ACTIVE_PERIODIC:
            return
        self._capture()
        self._schedule_tick()

    @property
    def terminal(self) -> bool:
        return self.state in _TERMINAL
