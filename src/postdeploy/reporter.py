"""Operator-facing console output.

Progress lines keep the glyphs operators already know from the shell script:
yellow `[⏳]` for a step starting, green `[✓]` for success, red `[✗]` for
failure, and indented `→` detail lines.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rich.console import Console
from rich.markup import escape

_INDENT = " " * 11


@dataclass
class Reporter:
    console: Console = field(default_factory=Console)
    verbose: bool = False

    def blank(self) -> None:
        self.console.print()

    def progress(self, message: str) -> None:
        self.console.print(f"[bold yellow]\\[⏳][/bold yellow] {escape(message)}")

    def success(self, message: str) -> None:
        self.console.print(f"[green]\\[✓][/green] {escape(message)}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]\\[✗][/red] {escape(message)}")

    def detail(self, message: str, *, arrow: bool = True) -> None:
        prefix = "→ " if arrow else ""
        self.console.print(f"{_INDENT}{prefix}{escape(message)}")

    def plain(self, message: str = "") -> None:
        self.console.print(escape(message))

    def dump(self, text: str) -> None:
        """Print captured command output verbatim."""
        self.console.print(text.rstrip("\n"), markup=False, highlight=False)

    def debug(self, message: str) -> None:
        if self.verbose:
            self.console.print(f"[dim]{_INDENT}{escape(message)}[/dim]")

    def rule(self) -> None:
        self.console.print("=" * 41)

    def header(self, title: str) -> None:
        self.blank()
        self.rule()
        self.console.print(escape(title))
        self.rule()
        self.blank()
