"""
High-resolution countdown timer for interview questions.

The remaining time is always derived from a monotonic clock snapshot
(``now - start - paused``) instead of accumulating per-tick deltas, so late or
missed frames never make the countdown drift. Frames run on the asyncio event
loop; state is only committed, and ``on_tick`` only fired, once every
``precision_ms`` milliseconds.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from interview_assistant.utils.constants import TIMER_FRAME_INTERVAL, TIMER_PRECISION_MS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimerState:
    """Committed timer state, as shown to the candidate."""
    time_left: float = 0.0
    is_running: bool = False
    is_paused: bool = False
    duration: float = 0.0
    progress: float = 0.0


class HostLifecycleSignal:
    """
    Foreground/background notifications from the host environment.

    A browser tab becoming hidden, a terminal losing focus, or a client
    disconnecting are all reported through ``set_foreground``.
    """

    def __init__(self):
        self.is_foreground = True
        self._listeners: List[Callable[[bool], None]] = []

    def subscribe(self, listener: Callable[[bool], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_foreground(self, foreground: bool) -> None:
        if foreground == self.is_foreground:
            return
        self.is_foreground = foreground
        logger.debug(f"Host moved to {'foreground' if foreground else 'background'}")
        for listener in list(self._listeners):
            listener(foreground)


class NullLifecycleSignal(HostLifecycleSignal):
    """Lifecycle signal for hosts that never go to the background."""

    def subscribe(self, listener: Callable[[bool], None]) -> Callable[[], None]:
        return lambda: None

    def set_foreground(self, foreground: bool) -> None:
        pass


class HighResolutionTimer:
    """
    Countdown timer with pause/resume that neither loses nor gains time.

    Args:
        precision_ms: Minimum milliseconds between committed updates
        on_tick: Called with the seconds left on every committed update
        on_complete: Called once when the countdown reaches zero
        clock: Monotonic clock in seconds
        frame_interval: Seconds between frame callbacks on the event loop
        loop: Event loop to schedule frames on (defaults to the running loop;
            without one the timer is driven by calling ``update()``)
    """

    def __init__(
        self,
        precision_ms: float = TIMER_PRECISION_MS,
        on_tick: Optional[Callable[[float], None]] = None,
        on_complete: Optional[Callable[[], None]] = None,
        clock: Callable[[], float] = time.monotonic,
        frame_interval: float = TIMER_FRAME_INTERVAL,
        loop: Optional[asyncio.AbstractEventLoop] = None
    ):
        self.precision = precision_ms / 1000.0
        self.on_tick = on_tick
        self.on_complete = on_complete
        self.clock = clock
        self.frame_interval = frame_interval
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None

        self._time_left = 0.0
        self._duration = 0.0
        self._running = False
        self._paused = False
        self._auto_paused = False
        self._completed = False

        self._start_instant = 0.0
        self._paused_total = 0.0
        self._pause_instant = 0.0
        self._last_commit = 0.0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> TimerState:
        return TimerState(
            time_left=self._time_left,
            is_running=self._running,
            is_paused=self._paused,
            duration=self._duration,
            progress=self._progress(self._time_left),
        )

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_paused(self) -> bool:
        return self._paused

    def remaining(self) -> float:
        """Live seconds left, computed from the clock rather than the last commit."""
        if not self._running:
            return self._time_left
        return self._compute_time_left(self.clock())

    def _elapsed(self, now: float) -> float:
        reference = self._pause_instant if self._paused else now
        return reference - self._start_instant - self._paused_total

    def _compute_time_left(self, now: float) -> float:
        return max(0.0, self._duration - self._elapsed(now))

    def _progress(self, time_left: float) -> float:
        if self._duration <= 0:
            return 0.0
        return (1 - time_left / self._duration) * 100

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    def start(self, duration: float) -> None:
        """Start a fresh countdown of ``duration`` seconds."""
        now = self.clock()
        self._cancel()
        self._start_instant = now
        self._paused_total = 0.0
        self._last_commit = now
        self._duration = max(0.0, float(duration))
        self._time_left = self._duration
        self._running = True
        self._paused = False
        self._auto_paused = False
        self._completed = False
        logger.debug(f"Timer started for {self._duration:.1f}s")
        self._schedule()

    def pause(self) -> None:
        self._auto_paused = False
        self._pause()

    def _pause(self) -> None:
        if not self._running or self._paused:
            return
        now = self.clock()
        self._time_left = self._compute_time_left(now)
        self._pause_instant = now
        self._paused = True
        self._cancel()
        logger.debug(f"Timer paused with {self._time_left:.2f}s left")

    def resume(self) -> None:
        self._auto_paused = False
        self._resume()

    def _resume(self) -> None:
        if not self._running or not self._paused:
            return
        now = self.clock()
        self._paused_total += now - self._pause_instant
        self._last_commit = now
        self._paused = False
        logger.debug(f"Timer resumed with {self._time_left:.2f}s left")
        self._schedule()

    def stop(self) -> None:
        """Reset to the idle state."""
        self._cancel()
        self._time_left = 0.0
        self._duration = 0.0
        self._running = False
        self._paused = False
        self._auto_paused = False
        self._completed = False

    def add_time(self, delta: float) -> None:
        """Extend (or shorten, with a negative delta) the current countdown."""
        self._duration = max(0.0, self._duration + delta)
        if self._running:
            self._time_left = self._compute_time_left(self.clock())
        else:
            self._time_left = max(0.0, self._time_left + delta)
        if self._time_left > 0:
            self._completed = False

    def set_time(self, seconds: float) -> None:
        """Restart the countdown from ``seconds`` without changing run/pause state."""
        now = self.clock()
        seconds = max(0.0, float(seconds))
        self._start_instant = now
        self._paused_total = 0.0
        self._pause_instant = now
        self._last_commit = now
        self._duration = seconds
        self._time_left = seconds
        if seconds > 0:
            self._completed = False

    # ------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------

    def update(self) -> None:
        """Frame callback: commit the countdown if ``precision`` has elapsed."""
        if not self._running or self._paused:
            return

        now = self.clock()
        if now - self._last_commit >= self.precision:
            self._time_left = self._compute_time_left(now)
            if self.on_tick:
                self.on_tick(self._time_left)
            if self._time_left <= 0:
                self._finish()
                return
            self._last_commit = now

        if self._handle is None:
            self._schedule()

    def _finish(self) -> None:
        self._running = False
        self._cancel()
        if self._completed:
            return
        self._completed = True
        logger.info("Timer reached zero")
        if self.on_complete:
            self.on_complete()

    def _on_frame(self) -> None:
        self._handle = None
        self.update()

    def _schedule(self) -> None:
        if self._handle is not None:
            return
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                return
        self._handle = loop.call_later(self.frame_interval, self._on_frame)

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    # ------------------------------------------------------------------
    # Host lifecycle
    # ------------------------------------------------------------------

    def attach_lifecycle(self, signal: HostLifecycleSignal) -> Callable[[], None]:
        """
        Pause automatically while the host is in the background.

        Only a pause made by this handler is undone when the host returns to
        the foreground; a pause requested by the user stays in place.

        Returns:
            A function that detaches the handler
        """
        def on_change(foreground: bool) -> None:
            if not foreground and self._running and not self._paused:
                self._pause()
                self._auto_paused = True
            elif foreground and self._auto_paused:
                self._auto_paused = False
                self._resume()

        return signal.subscribe(on_change)


def format_timer_display(seconds: float, fmt: str = "mm:ss") -> str:
    """Format seconds as ``mm:ss``, ``h:mm:ss`` or a compact ``1h 5m`` string."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)

    if fmt == "h:mm:ss":
        return f"{hours}:{minutes:02d}:{secs:02d}"
    if fmt == "compact":
        if hours > 0:
            return f"{hours}h {minutes}m"
        if minutes > 0:
            return f"{minutes}m {secs}s"
        return f"{secs}s"
    # mm:ss ignores hours, matching the question-timer display
    return f"{minutes:02d}:{secs:02d}"
