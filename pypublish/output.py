"""Console output helpers for the PyPublish CLI."""

import json
import logging
import os
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

MASK = "***"


def running_in_github_actions() -> bool:
    """Check if the process runs inside a GitHub Actions job."""
    return os.environ.get("GITHUB_ACTIONS", "").lower() == "true"


class SecretMasker:
    """Replaces registered secret values with a mask."""

    def __init__(self) -> None:
        self._secrets: set[str] = set()

    def add(self, value: Optional[str]) -> None:
        """Register a value that must never be printed."""
        if value:
            self._secrets.add(value)

    def mask(self, text: str) -> str:
        # Longest first so a secret containing another is fully masked
        for secret in sorted(self._secrets, key=len, reverse=True):
            text = text.replace(secret, MASK)
        return text


class SecretMaskingFilter(logging.Filter):
    """Logging filter that redacts registered secrets from records."""

    def __init__(self, masker: SecretMasker):
        super().__init__()
        self.masker = masker

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self.masker.mask(record.getMessage())
        record.args = None
        return True


class OutputFormatter:
    """Formats user-facing output.

    All text goes through a SecretMasker before it is printed, so the
    access token cannot leak through error messages or file listings.
    """

    def __init__(
        self,
        json_output: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
        masker: Optional[SecretMasker] = None,
    ):
        """Initialize output formatter.

        Args:
            json_output: Print machine readable JSON instead of text
            quiet: Suppress informational messages
            console: Console for regular output (default: stdout)
            masker: Secret masker shared with the logging filter
        """
        self.json_output = json_output
        self.quiet = quiet
        self.console = console or Console(highlight=False, soft_wrap=True)
        self.err_console = Console(stderr=True, highlight=False, soft_wrap=True)
        self.masker = masker or SecretMasker()

    def add_secret(self, value: Optional[str]) -> None:
        """Register a value to be masked in all further output."""
        self.masker.add(value)

    def _clean(self, message: str) -> str:
        return escape(self.masker.mask(message))

    def print(self, message: str = "") -> None:
        """Print a plain line unless quiet or in JSON mode."""
        if self.quiet or self.json_output:
            return
        self.console.print(self._clean(message))

    def info(self, message: str) -> None:
        """Print an informational message."""
        if self.quiet or self.json_output:
            return
        self.console.print(self._clean(message))

    def success(self, message: str) -> None:
        """Print a success message."""
        if self.json_output:
            return
        self.console.print(f"[green]{self._clean(message)}[/green]")

    def warning(self, message: str) -> None:
        """Print a warning message to stderr."""
        self.err_console.print(f"[yellow]Warning: {self._clean(message)}[/yellow]")

    def error(self, message: str) -> None:
        """Print an error message to stderr."""
        self.err_console.print(f"[red]Error: {self._clean(message)}[/red]")

    def print_json(self, data: Any) -> None:
        """Print data as JSON."""
        text = self.masker.mask(json.dumps(data, indent=2, sort_keys=True))
        self.console.print_json(text)

    def print_summary(self, title: str, items: Iterable[tuple[str, str]]) -> None:
        """Print a two column summary table."""
        if self.json_output:
            return
        table = Table(title=self._clean(title), show_header=False)
        table.add_column("Key", style="bold")
        table.add_column("Value")
        for key, value in items:
            table.add_row(self._clean(key), self._clean(value))
        self.console.print(table)

    def print_files(self, manifest: dict[str, str]) -> None:
        """Print a path/hash table of files."""
        if self.json_output:
            self.print_json(
                [{"path": path, "hash": manifest[path]} for path in sorted(manifest)]
            )
            return
        table = Table(show_header=True, header_style="bold")
        table.add_column("Path")
        table.add_column("Hash", style="dim")
        for path in sorted(manifest):
            table.add_row(self._clean(path), manifest[path])
        self.console.print(table)

    @contextmanager
    def group(self, title: str) -> Iterator[None]:
        """Group the output of one pipeline step.

        In GitHub Actions the step becomes a collapsible log group.
        """
        if self.quiet or self.json_output:
            yield
            return

        if running_in_github_actions():
            self.console.print(f"::group::{self._clean(title)}")
            try:
                yield
            finally:
                self.console.print("::endgroup::")
        else:
            self.console.print(f"[bold]{self._clean(title)}[/bold]")
            yield
