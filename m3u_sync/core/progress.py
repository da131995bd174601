"""
Progress bars for the long-running passes, built on Rich.

Bars:
    - MatchingProgressBar: one tick per remote track matched
    - FolderProgressBar: one tick per subfolder during playlist generation
    - SyncProgressBar: one tick per mapping during `sync --all`

Usage:
    from m3u_sync.core.progress import FolderProgressBar

    with FolderProgressBar(total=len(folders)) as progress:
        for folder in folders:
            progress.update(status="written")
"""

from abc import ABC, abstractmethod

from rich import get_console
from rich.console import JustifyMethod, OverflowMethod
from rich.progress import BarColumn, Progress, ProgressColumn, Task, TaskID
from rich.style import StyleType
from rich.text import Text
from rich.theme import Theme


# =============================================================================
# Theme
# =============================================================================

PROGRESS_THEME = Theme({
    "bar.back": "grey23",
    "bar.complete": "rgb(165,66,129)",
    "bar.finished": "rgb(114,156,31)",
    "bar.pulse": "rgb(165,66,129)",
    "progress.percentage": "white",
})


# =============================================================================
# Custom Column
# =============================================================================

class SizedTextColumn(ProgressColumn):
    """Text column truncated (or padded) to a fixed width."""

    def __init__(
        self,
        text_format: str,
        style: StyleType = "none",
        justify: JustifyMethod = "left",
        overflow: OverflowMethod | None = None,
        width: int = 20,
    ) -> None:
        self.text_format = text_format
        self.style = style
        self.justify: JustifyMethod = justify
        self.overflow: OverflowMethod | None = overflow
        self.width = width
        super().__init__()

    def render(self, task: Task) -> Text:
        text = Text.from_markup(
            self.text_format.format(task=task), style=self.style, justify=self.justify
        )
        text.truncate(max_width=self.width, overflow=self.overflow, pad=True)
        return text


# =============================================================================
# Base Progress Bar
# =============================================================================

class BaseProgressBar(ABC):
    """
    Common Rich progress bar with a status column of counters.

    Subclasses implement:
    - _get_status_text(): Rich markup for the counters
    - update(): advance by one item and bump the right counter

    Supports use as a context manager or manual start()/stop().
    """

    def __init__(self, total: int, description: str, status_width: int = 35):
        self.total = total
        self.description = description
        self.completed = 0

        self.console = get_console()

        self.progress = Progress(
            SizedTextColumn("[white]{task.description}", overflow="ellipsis", width=15),
            SizedTextColumn("{task.fields[status]}", width=status_width, style="white"),
            BarColumn(bar_width=40, finished_style="green"),
            "[progress.percentage]{task.percentage:>3.0f}%",
            console=self.console,
            transient=False,
            refresh_per_second=10,
        )

        self.task_id: TaskID | None = None
        self._started = False

    def __enter__(self) -> "BaseProgressBar":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def start(self) -> None:
        if not self._started:
            self.console.push_theme(PROGRESS_THEME)
            self.progress.start()
            self.task_id = self.progress.add_task(
                description=self.description,
                total=self.total,
                status=self._get_status_text(),
            )
            self._started = True

    def stop(self) -> None:
        if self._started:
            self.progress.stop()
            self.console.pop_theme()
            self._started = False

    def _update_progress(self) -> None:
        if self.task_id is not None:
            self.progress.update(
                self.task_id,
                completed=self.completed,
                status=self._get_status_text(),
            )

    @abstractmethod
    def _get_status_text(self) -> str:
        pass

    @abstractmethod
    def update(self, *args, **kwargs) -> None:
        pass


# =============================================================================
# Matching
# =============================================================================

class MatchingProgressBar(BaseProgressBar):
    """
    Matching       ✓ 45  ✗ 2               ━━━━━━━━━━━━━━━  47%
    """

    def __init__(self, total: int, description: str = "Matching"):
        super().__init__(total=total, description=description)
        self.matched = 0
        self.unmatched = 0

    def _get_status_text(self) -> str:
        return f"[green]✓ {self.matched}[/green]  [red]✗ {self.unmatched}[/red]"

    def update(self, matched: bool) -> None:
        self.completed += 1
        if matched:
            self.matched += 1
        else:
            self.unmatched += 1
        self._update_progress()


# =============================================================================
# Folder Playlist Generation
# =============================================================================

class FolderProgressBar(BaseProgressBar):
    """
    Generating     ✓ 12  ⊘ 1  ✗ 0          ━━━━━━━━━━━━━━━  80%

    ✓ playlist written, ⊘ folder skipped (no audio files), ✗ write failed.
    """

    STATUSES = ("written", "skipped", "failed")

    def __init__(self, total: int, description: str = "Generating"):
        super().__init__(total=total, description=description)
        self.written = 0
        self.skipped = 0
        self.failed = 0

    def _get_status_text(self) -> str:
        parts = [f"[green]✓ {self.written}[/green]"]
        if self.skipped > 0:
            parts.append(f"[yellow]⊘ {self.skipped}[/yellow]")
        parts.append(f"[red]✗ {self.failed}[/red]")
        return "  ".join(parts)

    def update(self, status: str) -> None:
        """
        Args:
            status: One of "written", "skipped", "failed".
        """
        if status not in self.STATUSES:
            raise ValueError(f"Unknown folder status: {status!r}")
        self.completed += 1
        setattr(self, status, getattr(self, status) + 1)
        self._update_progress()


# =============================================================================
# Batch Sync
# =============================================================================

class SyncProgressBar(BaseProgressBar):
    """
    Syncing        ✓ 3  ✗ 1                ━━━━━━━━━━━━━━━  100%
    """

    def __init__(self, total: int, description: str = "Syncing"):
        super().__init__(total=total, description=description)
        self.synced = 0
        self.failed = 0

    def _get_status_text(self) -> str:
        return f"[green]✓ {self.synced}[/green]  [red]✗ {self.failed}[/red]"

    def update(self, success: bool) -> None:
        self.completed += 1
        if success:
            self.synced += 1
        else:
            self.failed += 1
        self._update_progress()


__all__ = [
    "PROGRESS_THEME",
    "SizedTextColumn",
    "BaseProgressBar",
    "MatchingProgressBar",
    "FolderProgressBar",
    "SyncProgressBar",
]
