"""Output formatting utilities for the CLI."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import questionary
from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from tmops.cli.common.tui_style import QUESTIONARY_STYLE_CONFIRM

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

console = Console(theme=_THEME)


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    def _q(self, message: str) -> str:
        """Prefix Questionary prompts to be TMOPS consistent."""
        return f"[TMOPS] {message}"

    def info(self, msg: str) -> None:
        """Print an info message."""
        console.print(f"[title]›[/] {msg}")

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with console.status(msg, spinner="dots"):
            yield

    def success(self, msg: str) -> None:
        """Print a success message."""
        console.print(f"[ok]✓[/] {msg}")

    def warn(self, msg: str) -> None:
        """Print a warning message."""
        console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        """Print an error message."""
        console.print(f"[err]✗[/] {msg}")

    def header(self, title: str) -> None:
        """Print a header message."""
        console.print(f"[title]{title}[/]")

    def kv(self, items: Mapping[str, Any]) -> None:
        """Print key-value pairs."""
        for k, v in items.items():
            console.print(f"[meta]{k}[/]: {v}")

    def confirm(self, message: str, *, default: bool = False) -> bool:
        """
        Ask the user for confirmation using a standardized Questionary prompt.

        Args:
            message: Confirmation question shown to the user.
            default: Default answer if the user just presses enter.

        Returns:
            True if the user confirms, False otherwise.
        """
        console.print("[meta]Use y/n then Enter[/]")

        prompt = questionary.confirm(
            self._q(message),
            default=default,
            style=QUESTIONARY_STYLE_CONFIRM,
            qmark="✦",
            auto_enter=False,
        )
        return bool(prompt.ask())

    def servers_table(self, servers: Iterable[Any], title: str = "Database servers") -> None:
        """
        Expects objects with .name and .properties (like tmops.core.tm.DatabaseServerRef)
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Name", style="ok", no_wrap=True)
        t.add_column("Properties", style="meta")

        for s in servers:
            props = ", ".join(
                f"{k}={v}" for k, v in (getattr(s, "properties", None) or {}).items()
            )
            t.add_row(s.name, props)

        console.print(t)

    def containers_table(self, containers: Iterable[Any], title: str = "Containers") -> None:
        """
        Expects objects with .full_path, .database_name and .server
        (like tmops.core.tm.ContainerDescriptor)
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Path", style="ok")
        t.add_column("Database", style="meta")
        t.add_column("Server", style="meta")

        for c in containers:
            t.add_row(c.full_path, c.database_name, c.server.name)

        console.print(t)

    def delete_results_table(self, results: Iterable[Any], title: str = "Delete results") -> None:
        """
        Expects objects with .full_path .database_name .purged .deleted
        (like tmops.core.containers.ContainerDeleteResult)
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Container", style="ok")
        t.add_column("Database", style="meta")
        t.add_column("Physical data")
        t.add_column("Deleted")

        for r in results:
            physical = "[err]purge[/]" if r.purged else "keep"
            t.add_row(r.full_path, r.database_name, physical, "yes" if r.deleted else "no")

        console.print(t)


out = Out()
