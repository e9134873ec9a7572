"""Windows-safe Console wrapper for the result-janitor CLI.

Wraps Rich's Console to automatically sanitize Unicode characters
on terminals that don't support UTF-8, and adds the error/success/warning
lines every command prints.
"""
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape

from .logger import sanitize_for_terminal, is_utf8_capable


class SafeConsole(Console):
    """Console wrapper that sanitizes Unicode output for Windows compatibility.

    Inherits from Rich's Console and overrides print() to automatically
    replace Unicode icons with ASCII equivalents on non-UTF-8 terminals.
    """

    def __init__(self, *args, ascii_only: Optional[bool] = None, **kwargs):
        """Initialize SafeConsole with UTF-8 capability detection.

        Args:
            ascii_only: Force (True) or disable (False) sanitisation; None
                detects it from the terminal encoding
            *args, **kwargs: Passed through to Rich's Console
        """
        self._needs_sanitization = (not is_utf8_capable()) if ascii_only is None else ascii_only

        # Legacy mode keeps spinners and box drawing ASCII-only
        if self._needs_sanitization:
            kwargs['legacy_windows'] = True

        super().__init__(*args, **kwargs)

    def print(self, *objects: Any, **kwargs) -> None:
        """Print with automatic Unicode sanitization.

        Args:
            *objects: Objects to print (same as Rich Console.print)
            **kwargs: Keyword arguments (same as Rich Console.print)
        """
        if self._needs_sanitization:
            objects = tuple(
                sanitize_for_terminal(obj, force=True) if isinstance(obj, str) else obj
                for obj in objects
            )
        super().print(*objects, **kwargs)

    def status(self, *args, **kwargs):
        """Create a status context with ASCII-safe spinner on legacy terminals."""
        if self._needs_sanitization:
            kwargs['spinner'] = 'line'  # Simple ASCII spinner: - \ | /

        return super().status(*args, **kwargs)

    def error(self, message: str) -> None:
        """Print a red error line; ``message`` is escaped."""
        self.print(f"[bold red]Error:[/bold red] {escape(message)}")

    def warning(self, message: str) -> None:
        self.print(f"[yellow]⚠ {escape(message)}[/yellow]")

    def success(self, message: str) -> None:
        self.print(f"[green]✓ {escape(message)}[/green]")
