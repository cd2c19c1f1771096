from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display service with tqdm (TTY only).

Imports of a few hundred rows make one catalog write per row, which can be
slow against a remote store. A single tqdm bar tracks rows written; it is
disabled when stdout is not a TTY (CI, pipes) to avoid ANSI control
sequence spam in logs.
"""

__all__ = [
    "RowProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """Check if TTY output is enabled.

    Returns:
        True if stdout is a TTY and progress should be displayed, False otherwise
    """
    return sys.stdout.isatty()


class RowProgressTracker:
    """Progress tracker using tqdm for row application."""

    def __init__(self, total_rows: int, *, description: str = "Importing rows") -> None:
        """Initialize progress tracker.

        Args:
            total_rows: Total number of rows to apply
            description: Description for the progress bar
        """
        self.total_rows = total_rows
        self.description = description
        self.current_row = 0
        self.failed_rows = 0

        self.enabled = is_tty_enabled() and total_rows > 0
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start_row(self, row_number: int) -> None:
        self.current_row += 1
        if self.enabled and self.pbar is not None:
            self.pbar.set_description(f"{self.description} (row {row_number})")

    def finish_row(self, success: bool = True) -> None:
        if not success:
            self.failed_rows += 1
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_description(self.description)

    def set_postfix(self, **kwargs: Any) -> None:
        """Show key-value stats after the bar."""
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> RowProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
