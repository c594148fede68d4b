"""Diagnostic output for the command line."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape


class Reporter:
    """Writes diagnostics to stderr, or nothing at all in quiet mode."""

    def __init__(self, quiet: bool = False, console: Console | None = None) -> None:
        """Initialize reporter.

        Args:
            quiet: Suppress all output.
            console: Console to write to. Defaults to a stderr console.
        """
        self.quiet = quiet
        self.console = console or Console(stderr=True, highlight=False)

    def show_error(self, message: str) -> None:
        """Display a failure diagnostic."""
        if not self.quiet:
            self.console.print(f"[red]{escape(message)}[/red]")

    def show_info(self, message: str) -> None:
        """Display an informational line."""
        if not self.quiet:
            self.console.print(escape(message))


def configure_logging(verbose: bool) -> None:
    """Send debug logging to stderr when running verbosely."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
