"""
cli.py

Responsibility: CLI entrypoint for create-unstack.

High-level flow:
1) Resolve project name + features (flags, `--config` file, or interactive prompts)
2) Derive the artifact manifest for those choices
3) Write the manifest under `<directory>/<name>`
4) Initialize git and create the initial commit (best effort)

This module orchestrates behavior and owns all console output:
- Options: `options.py` / `prompts.py`
- Derivation: `manifest.py`
- Emission and git: `emitter.py`
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.status import Status

from unstack import __version__
from unstack.emitter import EmissionError, Emitter
from unstack.features import feature_labels
from unstack.manifest import derive_manifest
from unstack.options import (
    DEFAULT_PROJECT_NAME,
    OptionsError,
    ProjectConfig,
    Prompter,
    load_config,
    resolve_options,
    validate_project_name,
)
from unstack.prompts import ConsolePrompter, PromptAborted

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_ABORTED = 130


class ConsoleReporter:
    """Shows a spinner while a phase runs, then a one-line outcome."""

    def __init__(self, console: Console) -> None:
        self.console = console
        self._status: Status | None = None

    def _stop(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None

    def close(self) -> None:
        """Stop the spinner if one is still running."""
        self._stop()

    def start(self, message: str) -> None:
        self._stop()
        self._status = self.console.status(escape(message))
        self._status.start()

    def succeed(self, message: str) -> None:
        self._stop()
        self.console.print(f"[green]✔[/green] {escape(message)}")

    def fail(self, message: str) -> None:
        self._stop()
        self.console.print(f"[red]✖ {escape(message)}[/red]")

    def warn(self, message: str) -> None:
        self._stop()
        self.console.print(f"[yellow]▲ {escape(message)}[/yellow]")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _next_steps(name: str) -> Panel:
    body = (
        f"[green]✅ Success![/green] Your project [cyan]{name}[/cyan] has been created.\n\n"
        "To get started:\n\n"
        f"  [yellow]cd[/yellow] {name}\n"
        "  [yellow]bun install[/yellow] [dim]# or npm install / yarn[/dim]\n"
        "  [yellow]bun dev[/yellow] [dim]# or npm run dev / yarn dev[/dim]\n\n"
        "[dim]Happy coding! 🚀[/dim]"
    )
    return Panel(body, title="🎉 Next Steps", border_style="green", padding=(1, 2))


def create_cmd(args: argparse.Namespace, *, console: Console, prompter: Prompter | None = None) -> int:
    config = load_config(args.config) if args.config else ProjectConfig()

    console.print(Panel("Create Unstack", title="🚀 Next.js Scaffolding Tool", border_style="cyan", padding=(1, 2)))

    if not args.yes and prompter is None:
        prompter = ConsolePrompter(console)

    options, notices = resolve_options(
        flags={"db": args.db, "auth": args.auth, "react_scan": args.react_scan},
        prompter=prompter,
        use_defaults=bool(args.yes),
        name=args.name,
        config=config,
        feature_labels=feature_labels(),
    )
    if args.yes and not args.name and not config.name:
        console.print(f"Using default project name: [green]{DEFAULT_PROJECT_NAME}[/green]")
    for notice in notices:
        console.print(f"[yellow]{escape(notice)}[/yellow]")
    if not options.features.enabled():
        console.print("[dim]No optional features selected.[/dim]")

    manifest = derive_manifest(options.name, options.features)

    if args.dry_run:
        for path in manifest.paths():
            console.print(escape(path), highlight=False)
        console.print(f"[dim]{len(manifest)} files (dry run, nothing written)[/dim]")
        return EXIT_OK

    parent = Path(args.directory) if args.directory else Path.cwd()
    project_dir = (parent / options.name).resolve()
    logger.debug("Scaffolding %d files into %s", len(manifest), project_dir)

    reporter = ConsoleReporter(console)
    emitter = Emitter(
        reporter,
        git=config.git.enabled and not args.no_git,
        commit_message=config.git.message,
        deterministic_git=bool(args.deterministic_git or config.git.deterministic),
    )
    try:
        emitter.run(manifest, project_dir)
    except EmissionError:
        return EXIT_FAILURE
    finally:
        reporter.close()

    console.print(_next_steps(options.name))
    return EXIT_OK


def _project_name(value: str) -> str:
    problem = validate_project_name(value)
    if problem:
        raise argparse.ArgumentTypeError(problem)
    return value


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="create-unstack", description="Scaffold a Next.js starter project")
    p.add_argument("name", nargs="?", type=_project_name, default=None, help="Project name (prompted when omitted)")

    p.add_argument("--db", action="store_true", default=None, help="Include MongoDB")
    p.add_argument("--auth", action="store_true", default=None, help="Include Better-Auth (implies --db)")
    p.add_argument(
        "--react-scan",
        "--reactScan",
        "--million",
        dest="react_scan",
        action="store_true",
        default=None,
        help="Include React Scan performance instrumentation",
    )
    p.add_argument("-y", "--yes", action="store_true", help="Skip prompts and use defaults/flags as given")

    p.add_argument("--config", default=None, help="YAML file with name, features and git settings")
    p.add_argument("--directory", default=None, help="Parent directory for the project (default: cwd)")
    p.add_argument("--dry-run", action="store_true", help="List the files that would be created and exit")

    p.add_argument("--no-git", action="store_true", help="Do not initialize a git repository")
    p.add_argument(
        "--deterministic-git",
        action="store_true",
        help="Use fixed git author/commit metadata for the initial commit",
    )

    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def main(argv: list[str] | None = None, *, console: Console | None = None, prompter: Prompter | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(bool(args.verbose))
    console = console or Console()

    try:
        return create_cmd(args, console=console, prompter=prompter)
    except PromptAborted:
        console.print("[red]Operation cancelled.[/red]")
        return EXIT_ABORTED
    except OptionsError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        return EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
