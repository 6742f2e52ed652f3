"""
scheduler.py

Bookkeeping for the session timers. The scheduler does not sleep or count time
itself: starting or stopping a timer produces a StartTimer/StopTimer effect for
the driver, and every fire that comes back is checked against the timer's
current generation so that stale fires are ignored.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sensor_communication.models import StartTimer, StopTimer, Effect
from sensor_communication.param_types import TimerKind


@dataclass
class TimerState:
    kind: TimerKind
    interval_ms: int
    single_shot: bool
    active: bool = False
    generation: int = 0


class Scheduler:
    """
    Owns the power-poll, temperature-poll, zero-delay, frequency-delay and
    zero-timeout timers.
    """

    SINGLE_SHOT = {TimerKind.ZERO_DELAY, TimerKind.FREQUENCY_DELAY, TimerKind.ZERO_TIMEOUT}

    def __init__(self, intervals_ms: Dict[TimerKind, int], logger: Optional[logging.Logger] = None):
        """
        Args:
            intervals_ms: Period (or delay, for one-shot timers) of every timer kind.
            logger: Optional logger.
        """
        self.logger = logger or logging.getLogger(__name__)
        self._timers: Dict[TimerKind, TimerState] = {
            kind: TimerState(kind, int(intervals_ms[kind]), kind in self.SINGLE_SHOT)
            for kind in TimerKind
        }

    def is_active(self, kind: TimerKind) -> bool:
        return self._timers[kind].active

    def start(self, kind: TimerKind) -> List[Effect]:
        """
        Starts a timer, restarting it if it is already running.
        """
        timer = self._timers[kind]
        timer.generation += 1
        timer.active = True
        self.logger.debug(f"Timer {kind.value} started ({timer.interval_ms} ms, gen {timer.generation})")
        return [StartTimer(kind, timer.interval_ms, timer.single_shot, timer.generation)]

    def stop(self, kind: TimerKind) -> List[Effect]:
        """
        Stops a timer. Stopping an inactive timer does nothing.
        """
        timer = self._timers[kind]
        if not timer.active:
            return []
        timer.generation += 1
        timer.active = False
        self.logger.debug(f"Timer {kind.value} stopped")
        return [StopTimer(kind)]

    def stop_all(self) -> List[Effect]:
        effects: List[Effect] = []
        for kind in TimerKind:
            effects.extend(self.stop(kind))
        return effects

    def accept(self, kind: TimerKind, generation: int) -> bool:
        """
        Decides whether a fire should be processed.
        A one-shot timer becomes inactive once its fire is accepted.

        Returns:
            False for inactive timers and superseded generations.
        """
        timer = self._timers[kind]
        if not timer.active or generation != timer.generation:
            self.logger.debug(f"Ignoring stale {kind.value} fire (gen {generation})")
            return False
        if timer.single_shot:
            timer.active = False
        return True
