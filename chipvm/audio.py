"""Audio collaborator callbacks.

The machine has no audio state beyond the sound timer. The host driver turns
the per-cycle ``tone_start``/``tone_end`` flags into calls on a ``ToneCallback``.
"""

from typing import List, Optional

from chipvm.logging import ConsoleLogger, get_logger


class ToneCallback:
    """Base class for tone event receivers."""

    def on_tone_start(self, cycle: int):
        """Called when the sound timer goes from zero to non-zero."""
        pass

    def on_tone_end(self, cycle: int):
        """Called when the sound timer counts down through 1."""
        pass


class ConsoleBeep(ToneCallback):
    """Log a ``BEEP!`` line each time a tone ends."""

    def __init__(self, logger: Optional[ConsoleLogger] = None):
        self.logger = logger or get_logger()

    def on_tone_end(self, cycle: int):
        self.logger.info("BEEP!")


class ToneRecorder(ToneCallback):
    """Collect tone events as ``(kind, cycle)`` pairs."""

    def __init__(self):
        self.events: List[tuple] = []

    def on_tone_start(self, cycle: int):
        self.events.append(("start", cycle))

    def on_tone_end(self, cycle: int):
        self.events.append(("end", cycle))
