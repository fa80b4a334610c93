"""
Stopwatch used by the timed arenas.
"""

from typing import Callable, Optional

RUNNING = "RUNNING"
PAUSED = "PAUSED"
STOPPED = "STOPPED"


def format_clock(seconds: int) -> str:
    """
    Format seconds as MM:SS, or HH:MM:SS from one hour up.

    @param seconds: Non-negative number of seconds
    @return: Formatted clock string
    """
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


class GameClock:
    """Counting-up clock with an optional period length."""

    def __init__(
        self,
        initial_time: int = 0,
        period_duration: Optional[int] = None,
        on_update: Optional[Callable[[int], None]] = None,
        on_period_complete: Optional[Callable[[], None]] = None,
    ) -> None:
        self.initial_time = initial_time
        self.time = initial_time
        self.period_duration = period_duration
        self.on_update = on_update
        self.on_period_complete = on_period_complete
        self.is_running = False
        self.is_paused = False

    @property
    def status(self) -> str:
        if not self.is_running:
            return STOPPED
        return PAUSED if self.is_paused else RUNNING

    @property
    def display(self) -> str:
        return format_clock(self.time)

    def start(self) -> None:
        self.is_running = True
        self.is_paused = False

    def pause(self) -> None:
        if self.is_running:
            self.is_paused = True

    def resume(self) -> None:
        self.is_paused = False

    def stop(self) -> None:
        self.is_running = False
        self.is_paused = False

    def reset(self, initial_time: Optional[int] = None) -> None:
        """Stop the clock and rewind it to its initial time."""
        if initial_time is not None:
            self.initial_time = initial_time
        self.stop()
        self.time = self.initial_time
        if self.on_update:
            self.on_update(self.time)

    def tick(self, seconds: int = 1) -> int:
        """
        Advance the clock while it is running.

        @param seconds: Seconds to advance
        @return: Clock time after the tick
        """
        for _ in range(seconds):
            if not self.is_running or self.is_paused:
                break
            self.time += 1
            if self.on_update:
                self.on_update(self.time)
            if self.period_duration and self.time >= self.period_duration:
                self.stop()
                if self.on_period_complete:
                    self.on_period_complete()
                break
        return self.time
