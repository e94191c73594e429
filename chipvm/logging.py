"""Console logging and progress reporting.

``ConsoleLogger`` is a small level-filtered logger that prints straight to a
stream, used by the host driver for faults and by the console audio
notifier. ``scan_with_progress`` attaches a tqdm bar to a ``jax.lax.scan``
body through ``io_callback`` so long jitted runs still show progress.
"""

import sys
import time
from typing import Callable, Dict, Optional, TextIO, Tuple

import jax
from jax.experimental import io_callback
from tqdm import tqdm

LEVELS = {
    "DEBUG": 0,
    "INFO": 1,
    "WARNING": 2,
    "ERROR": 3,
    "CRITICAL": 4,
}

COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET = "\033[0m"


class ConsoleLogger:
    """Level-filtered console logger with optional colours and timestamps."""

    def __init__(
        self,
        name: str = "chipvm",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = False,
        stream: Optional[TextIO] = None,
    ):
        if log_level.upper() not in LEVELS:
            raise ValueError(
                f"Unknown log level '{log_level}'. Available: {list(LEVELS)}"
            )
        self.name = name
        self.log_level = log_level.upper()
        self.stream = stream
        out = self._out()
        self.use_colors = use_colors and hasattr(out, "isatty") and out.isatty()
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

    def _out(self) -> TextIO:
        # Resolved lazily so captured/redirected stdout is honoured
        return self.stream if self.stream is not None else sys.stdout

    def is_enabled_for(self, level: str) -> bool:
        return LEVELS.get(level.upper(), 1) >= LEVELS[self.log_level]

    def set_level(self, level: str):
        if level.upper() not in LEVELS:
            raise ValueError(f"Unknown log level '{level}'. Available: {list(LEVELS)}")
        self.log_level = level.upper()

    def _format_message(self, level: str, message: str) -> str:
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        if self.use_colors:
            level_str = f"{COLORS.get(level, '')}{level_str}{RESET}"
        return f"{timestamp}{level_str}[{self.name}] {message}"

    def log(self, level: str, message: str):
        level = level.upper()
        if self.is_enabled_for(level):
            print(self._format_message(level, message), file=self._out(), flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


_loggers: Dict[str, ConsoleLogger] = {}


def get_logger(name: str = "chipvm") -> ConsoleLogger:
    """Return the shared logger for ``name``, creating it on first use."""
    if name not in _loggers:
        _loggers[name] = ConsoleLogger(name)
    return _loggers[name]


def build_tqdm_progress_bar(
    n: int,
    print_rate: Optional[int] = None,
    desc: Optional[str] = None,
    **kwargs,
) -> Tuple[Callable, Callable]:
    """Build a tqdm progress bar driven from inside jitted code.

    Returns ``(update, close)``: ``update(i)`` is called at the top of
    iteration ``i`` and ``close(result, i)`` at its end.
    """
    if desc is None:
        desc = f"Running {n:,} cycles"

    for kwarg in ("total", "mininterval", "maxinterval", "miniters"):
        kwargs.pop(kwarg, None)

    if print_rate is None:
        print_rate = max(1, min(n // 20, 1000))
    else:
        print_rate = max(1, min(print_rate, n))
    remainder = n % print_rate

    bars = {}

    def _open():
        bars[0] = tqdm(total=n, desc=desc, unit="cycle", **kwargs)

    def _advance(steps):
        if 0 in bars:
            bars[0].update(int(steps))

    def _finish():
        _advance(remainder if remainder else print_rate)
        if 0 in bars:
            bars.pop(0).close()

    def update(iter_num):
        jax.lax.cond(
            iter_num == 0,
            lambda _: io_callback(_open, None, ordered=True),
            lambda _: None,
            operand=None,
        )
        jax.lax.cond(
            (iter_num % print_rate == 0) & (iter_num > 0),
            lambda _: io_callback(_advance, None, print_rate, ordered=True),
            lambda _: None,
            operand=None,
        )

    def close(result, iter_num):
        jax.lax.cond(
            iter_num == n - 1,
            lambda _: io_callback(_finish, None, ordered=True),
            lambda _: None,
            operand=None,
        )
        return result

    return update, close


def scan_with_progress(
    n: int,
    print_rate: Optional[int] = None,
    desc: Optional[str] = None,
    **tqdm_kwargs,
) -> Callable:
    """Decorator adding a progress bar to a ``jax.lax.scan`` body.

    The scanned ``xs`` must be the iteration index (or a tuple starting with it).
    """
    update, close = build_tqdm_progress_bar(n, print_rate, desc, **tqdm_kwargs)

    def decorator(func):
        def wrapper(carry, x):
            iter_num = x[0] if isinstance(x, tuple) else x
            update(iter_num)
            result = func(carry, x)
            return close(result, iter_num)
        return wrapper

    return decorator
