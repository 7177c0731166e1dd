"""
prompts.py

Responsibility: Ask the user for the project name and optional features in a terminal.

Built on `rich.prompt.Prompt`. Ctrl-C / Ctrl-D at any prompt raises `PromptAborted`.
"""

from __future__ import annotations

import re
from typing import Iterable

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from unstack.options import validate_project_name

_SPLIT_RE = re.compile(r"[\s,]+")
_NONE_TOKENS = {"none", "-", "0"}


class PromptAborted(RuntimeError):
    pass


def parse_selection(raw: str, options: list[tuple[str, str]]) -> list[str]:
    """
    Parse a multi-select answer into flag names.

    Accepts 1-based numbers and flag names separated by commas or spaces,
    `all`, or `none`. Raises ValueError on anything else.
    """
    answer = raw.strip().lower()
    flags = [flag for flag, _label in options]
    if answer in _NONE_TOKENS:
        return []
    if answer == "all":
        return list(flags)

    chosen: set[str] = set()
    for token in _SPLIT_RE.split(answer):
        if not token:
            continue
        if token.isdigit():
            index = int(token)
            if not 1 <= index <= len(flags):
                raise ValueError(f"No option numbered {index}")
            chosen.add(flags[index - 1])
        elif token in flags:
            chosen.add(token)
        else:
            raise ValueError(f"Unknown option: {token}")
    # Keep declaration order.
    return [flag for flag in flags if flag in chosen]


class ConsolePrompter:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def _ask(self, message: str, default: str) -> str:
        try:
            return Prompt.ask(message, console=self.console, default=default)
        except (KeyboardInterrupt, EOFError) as e:
            raise PromptAborted("Operation cancelled") from e

    def ask_project_name(self, default: str) -> str:
        while True:
            value = self._ask("What is your project name?", default).strip()
            problem = validate_project_name(value)
            if problem is None:
                return value
            self.console.print(f"[red]{problem}[/red]")

    def select_features(self, options: list[tuple[str, str]], preselected: Iterable[str]) -> list[str]:
        selected = set(preselected)
        table = Table(title="Optional features", show_header=True)
        table.add_column("#", justify="right", style="cyan")
        table.add_column("Feature")
        table.add_column("Selected", justify="center")
        for i, (flag, label) in enumerate(options, 1):
            table.add_row(str(i), label, "✔" if flag in selected else "")
        self.console.print(table)

        default = ",".join(str(i) for i, (flag, _l) in enumerate(options, 1) if flag in selected) or "none"
        while True:
            raw = self._ask("Select optional features (numbers, 'all' or 'none')", default)
            try:
                return parse_selection(raw, options)
            except ValueError as e:
                self.console.print(f"[red]{e}[/red]")
