"""Central console styling for the mason CLI.

Usage:
    from sqlmason.ui import console, print_header

    print_header("APPLY")
    console.print("[success]Committed[/success]")
"""

import sys

from rich.console import Console
from rich.theme import Theme

MASON_THEME = Theme({
    "info": "bold cyan",
    "warning": "bold yellow",
    "error": "bold red",
    "success": "bold green",
    "table": "bold magenta",
    "path": "bold cyan",
    "dim": "dim white",
})

# Single console instance - import this, don't create your own
console = Console(
    theme=MASON_THEME,
    force_terminal=sys.stdout.isatty()
)


def print_header(title: str) -> None:
    """Print a styled section header with horizontal rules."""
    console.rule(f"[bold]{title}[/bold]")


def print_success(msg: str) -> None:
    console.print(f"[success]OK:[/success] {msg}")
