"""
Live progress for research runs.

On a terminal a single status line (state, rows done, rate, ETA) is
rewritten in place after every batch. When output is redirected the same
status goes to the log instead.
"""

import logging
import sys
import time
from typing import Optional

from ..models import RunProgress, RunState

STATUS_WIDTH = 120

# SDK and HTTP loggers that flood the console at INFO
NOISY_LOGGERS = (
    "google",
    "google.genai",
    "google_genai",
    "google_genai.models",
    "urllib3",
    "httpx",
    "httpcore",
)


def format_duration(seconds: float) -> str:
    """42s, 2m 5s, 2h 1m."""
    if seconds < 60:
        return f"{seconds:.0f}s"
    minutes, secs = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m"


class ProgressDisplay:
    """
    Session listener rendering `RunProgress` updates.

    Register `update` with `ResearchSession.add_listener`.
    """

    def __init__(self, verbose: bool = False, stream=None):
        self.verbose = verbose
        self.stream = stream or sys.stdout
        self.start_time: Optional[float] = None
        self.logger = logging.getLogger("table_enrich.progress")
        self._is_tty = bool(getattr(self.stream, "isatty", None) and self.stream.isatty())
        self._status_len = 0
        self._last_processed = -1

        if not verbose:
            for name in NOISY_LOGGERS:
                logging.getLogger(name).setLevel(logging.ERROR)
            if self._is_tty:
                self._quiet_console_logging()

    def _quiet_console_logging(self):
        """Only warnings reach console handlers while the status line is live."""
        for name in ("", "table_enrich"):
            for handler in logging.getLogger(name).handlers:
                if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                    handler.setLevel(logging.WARNING)

    def _erase(self):
        self.stream.write("\r" + " " * self._status_len + "\r")

    def _render(self, text: str, final: bool = False):
        if len(text) > STATUS_WIDTH:
            text = text[:STATUS_WIDTH - 3] + "..."
        self._erase()
        if final:
            self.stream.write(text + "\n")
            self._status_len = 0
        else:
            self.stream.write(text)
            self._status_len = len(text)
        self.stream.flush()

    def format_status(self, progress: RunProgress) -> str:
        parts = [
            f"[{progress.state.value.lower()}]",
            f"{progress.processed_count}/{progress.effective_total}",
            f"({progress.percent:.0f}%)",
        ]

        elapsed = time.time() - self.start_time if self.start_time is not None else 0.0
        if elapsed > 0 and progress.processed_count > 0:
            rate = progress.processed_count / elapsed
            parts.append(f"{rate:.1f} rows/s")
            remaining = progress.effective_total - progress.processed_count
            if remaining > 0 and progress.state == RunState.PROCESSING:
                parts.append(f"ETA: {format_duration(remaining / rate)}")

        return " | ".join(parts)

    def update(self, progress: RunProgress) -> None:
        if self.start_time is None and progress.state == RunState.PROCESSING:
            self.start_time = time.time()

        status = self.format_status(progress)
        if self._is_tty:
            self._render(status)
        elif progress.processed_count != self._last_processed or progress.state != RunState.PROCESSING:
            self.logger.info(status)
        self._last_processed = progress.processed_count

        if progress.state in (RunState.COMPLETED, RunState.IDLE) and self.start_time is not None:
            self.finish(progress)

    def finish(self, progress: RunProgress) -> None:
        elapsed = time.time() - self.start_time if self.start_time else 0.0
        outcome = "Complete" if progress.state == RunState.COMPLETED else "Stopped"
        line = f"{outcome}: {progress.processed_count}/{progress.effective_total} rows in {format_duration(elapsed)}"
        if self._is_tty:
            self._render(line, final=True)
        else:
            self.logger.info(line)
        self.start_time = None
