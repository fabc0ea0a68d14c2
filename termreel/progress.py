"""
Progress display for the recording phase.
"""

import sys
import time
from typing import Callable, Optional


class ProgressTracker:
    """Track runtime-step progress against the expected recording duration."""

    BAR_LENGTH = 30

    def __init__(
        self,
        total_steps: int,
        estimated_duration: float = 0,
        enabled: Optional[bool] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.total_steps = total_steps
        self.current_step = 0
        self.estimated_duration = estimated_duration
        self.clock = clock
        self.start_time = clock()
        self.enabled = sys.stdout.isatty() if enabled is None else enabled

    def render(self, step_name: str = "") -> str:
        """Render the progress line for the current step."""
        total = max(self.total_steps, 1)
        pct = (self.current_step / total) * 100
        filled = int(self.BAR_LENGTH * self.current_step // total)
        bar = "█" * filled + "░" * (self.BAR_LENGTH - filled)

        elapsed = self.clock() - self.start_time
        if self.estimated_duration > 0:
            remaining = max(0, self.estimated_duration - elapsed)
            time_str = f" ~{remaining:.0f}s left"
        else:
            time_str = ""

        step_info = f" [{step_name}]" if step_name else ""
        return (
            f"  [{bar}] {pct:5.1f}% ({self.current_step}/{self.total_steps})"
            f"{step_info}{time_str}"
        )

    def update(self, step_index: int, step_name: str = "") -> None:
        """Update progress display."""
        self.current_step = step_index + 1
        if not self.enabled:
            return
        print(f"\r{self.render(step_name[:40])}", end="", flush=True)

    def finish(self) -> None:
        """Complete the progress bar."""
        if self.enabled:
            elapsed = self.clock() - self.start_time
            print(f"\r  Recording completed in {elapsed:.1f}s" + " " * 40)
