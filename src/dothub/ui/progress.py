"""progress indicators for slow dothub operations."""

from contextlib import contextmanager
from typing import Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn


class ProgressManager:
    """central manager for progress output, written to stderr."""

    def __init__(self, console: Optional[Console] = None, interval: float = 0.12):
        """
        initialize progress manager.

        args:
            console: optional rich console instance. if not provided, creates
                one on stderr.
            interval: seconds between spinner redraws
        """
        self.console = console or Console(stderr=True)
        self.interval = interval
        self._enabled = self._should_show_progress()

    def _should_show_progress(self) -> bool:
        """
        check if we should animate.

        returns false in non-interactive environments (ci/cd, piped output).
        """
        stream = self.console.file
        return stream.isatty() and not stream.closed

    def print(self, *args, **kwargs):
        """print through managed console to avoid interference with the spinner."""
        self.console.print(*args, **kwargs)

    @contextmanager
    def spinner(self, description: str, transient: bool = False):
        """
        show an indeterminate spinner while the block runs.

        the spinner is redrawn from rich's refresh thread, which stops when
        the block exits. the status line is then ended with a newline unless
        `transient` clears it instead.

        args:
            description: text to display next to the spinner
            transient: if true, spinner disappears when done

        yields:
            task id for the spinner, or None in non-interactive mode
        """
        if not self._enabled:
            # in non-interactive mode, just print the message
            self.console.print(f"{description}...")
            yield None
            return

        with Progress(
            SpinnerColumn("line"),
            TextColumn("[progress.description]{task.description}"),
            console=self.console,
            transient=transient,
            refresh_per_second=1 / self.interval,
        ) as progress:
            task_id = progress.add_task(description, total=None)
            yield task_id
