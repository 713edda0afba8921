"""Rich Console wrapper used by the hooklint CLI.

Sanitizes Unicode on terminals that are not UTF-8 capable and knows how to
style diagnostic severities consistently across commands.
"""
from typing import Any

from rich.console import Console
from rich.markup import escape

from .logger import is_utf8_capable, sanitize_for_terminal


SEVERITY_STYLES = {
    "error": "bold red",
    "warning": "yellow",
    "info": "cyan",
}


class SafeConsole(Console):
    """Console that replaces Unicode symbols with ASCII on legacy terminals."""

    def __init__(self, *args, **kwargs):
        self._needs_sanitization = not is_utf8_capable()
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
                sanitize_for_terminal(obj) if isinstance(obj, str) else obj
                for obj in objects
            )
        super().print(*objects, **kwargs)

    def severity(self, level: str, text: str) -> str:
        """Wrap escaped text in the markup style for a severity level.

        Args:
            level: 'error', 'warning' or 'info'
            text: Plain text to style

        Returns:
            Rich markup string
        """
        style = SEVERITY_STYLES.get(level, "white")
        return f"[{style}]{escape(text)}[/{style}]"

    def error(self, message: str):
        self.print(f"[bold red]Error:[/bold red] {escape(message)}")
