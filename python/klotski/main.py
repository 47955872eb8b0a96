#!/usr/bin/env python3
"""Klotski sliding-block solver.

Usage::

    klotski solve puzzle.json             # print the shortest solution
    klotski solve --name daily --json     # solve a saved puzzle, JSON output
    klotski play --token <share-token>    # step through the solution
    klotski puzzles save daily puzzle.json
    klotski classic heng-dao-li-ma        # built-in layout as JSON
"""

import json
import logging
import random
from dataclasses import asdict
from enum import StrEnum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from klotski.backend.engine.gamegenerator import GameGenerator
from klotski.backend.engine.gamesolver import SearchResult, Solver, SolverOptions
from klotski.backend.errors import PuzzleError, SearchAborted
from klotski.backend.models.puzzle import Puzzle
from klotski.backend.models.storage import (
    PuzzleStore,
    dump_puzzle_file,
    from_share_token,
    load_puzzle_file,
    to_share_token,
)
from klotski.frontend.cli.rich import app as rich_app

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".klotski"
STORE_FILENAME = "puzzles.json"

EXIT_UNSOLVABLE = 1
EXIT_ABORTED = 2

err_console = Console(stderr=True)


class MirrorMode(StrEnum):
    auto = "auto"
    on = "on"
    off = "off"


_MIRROR = {MirrorMode.auto: None, MirrorMode.on: True, MirrorMode.off: False}


# -- helpers ------------------------------------------------------------------


def _configure_logging(level: str) -> None:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise typer.BadParameter(f"Unknown log level {level!r}.", param_hint="--log-level")
    logging.basicConfig(
        level=numeric,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _fail(message: str, code: int = 1) -> typer.Exit:
    err_console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    return typer.Exit(code=code)


def _store(ctx: typer.Context) -> PuzzleStore:
    return PuzzleStore(ctx.obj / STORE_FILENAME)


def _resolve_puzzle(
    ctx: typer.Context,
    file: Optional[Path],
    name: Optional[str],
    token: Optional[str],
) -> Puzzle:
    """Pick the puzzle from a file, a share token, a saved name, or the
    store's default, in that order."""
    try:
        if file is not None:
            logger.debug("Loading puzzle from %s", file)
            return load_puzzle_file(file)
        if token:
            return from_share_token(token)
        store = _store(ctx)
        if name:
            puzzle = store.get_puzzle(name)
            if puzzle is None:
                raise _fail(f"No saved puzzle named {name!r}.")
            return puzzle
        logger.debug("Falling back to default puzzle %r", store.get_default_name())
        puzzle = store.get_default_puzzle()
    except (OSError, PuzzleError) as exc:
        raise _fail(str(exc)) from exc
    if puzzle is None:
        raise _fail("No puzzle given and no default puzzle is set.")
    return puzzle


def _search(puzzle: Puzzle, options: SolverOptions) -> SearchResult:
    try:
        return Solver.search(puzzle, options)
    except PuzzleError as exc:
        raise _fail(str(exc)) from exc
    except SearchAborted as exc:
        raise _fail(f"Search aborted: {exc.reason}", EXIT_ABORTED) from exc


# -- CLI entry point ----------------------------------------------------------

app = typer.Typer(add_completion=False, no_args_is_help=True)
puzzles_app = typer.Typer(no_args_is_help=True, help="Manage saved puzzles.")
app.add_typer(puzzles_app, name="puzzles")

_FILE = typer.Argument(None, exists=True, dir_okay=False, help="Puzzle JSON file.")
_NAME = typer.Option(None, "--name", "-n", help="Use a saved puzzle.")
_TOKEN = typer.Option(None, "--token", "-t", help="Use a share token.")


@app.callback()
def main(
    ctx: typer.Context,
    data_dir: Path = typer.Option(
        DEFAULT_DATA_DIR, "--data-dir",
        envvar="KLOTSKI_DATA_DIR",
        file_okay=False,
        help="Where saved puzzles are kept.",
    ),
    log_level: str = typer.Option(
        "WARNING", "--log-level",
        envvar="KLOTSKI_LOG_LEVEL",
        help="DEBUG, INFO, WARNING or ERROR.",
    ),
) -> None:
    """Klotski sliding-block puzzle solver."""
    _configure_logging(log_level)
    ctx.obj = data_dir


@app.command()
def solve(
    ctx: typer.Context,
    file: Optional[Path] = _FILE,
    name: Optional[str] = _NAME,
    token: Optional[str] = _TOKEN,
    max_nodes: Optional[int] = typer.Option(
        None, "--max-nodes", min=1, help="Give up after expanding this many states."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=0.0, help="Give up after this many seconds."
    ),
    mirror: MirrorMode = typer.Option(
        MirrorMode.auto, "--mirror", help="Treat left-right reflections as equal."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print moves as JSON."),
    stats: bool = typer.Option(False, "--stats", help="Report search statistics."),
) -> None:
    """Print the shortest solution."""
    puzzle = _resolve_puzzle(ctx, file, name, token)
    options = SolverOptions(
        max_nodes=max_nodes, timeout=timeout, mirror_pruning=_MIRROR[mirror]
    )
    result = _search(puzzle, options)

    if result.moves is None:
        if as_json:
            if stats:
                typer.echo(json.dumps({"moves": None, "stats": asdict(result.stats)}))
            err_console.print("[red]This puzzle has no solution[/red]")
        else:
            rich_app.console.print("[red]This puzzle has no solution[/red]")
            if stats:
                rich_app.console.print(rich_app.render_stats(result.stats))
        raise typer.Exit(code=EXIT_UNSOLVABLE)

    if as_json:
        moves = [m.to_dict() for m in result.moves]
        if stats:
            typer.echo(json.dumps({"moves": moves, "stats": asdict(result.stats)}))
        else:
            typer.echo(json.dumps(moves))
        return

    rich_app.print_solution(result.moves, result.stats if stats else None)


@app.command()
def show(
    ctx: typer.Context,
    file: Optional[Path] = _FILE,
    name: Optional[str] = _NAME,
    token: Optional[str] = _TOKEN,
) -> None:
    """Render the board."""
    puzzle = _resolve_puzzle(ctx, file, name, token)
    rich_app.print_board(puzzle, title=name or "")


@app.command()
def play(
    ctx: typer.Context,
    file: Optional[Path] = _FILE,
    name: Optional[str] = _NAME,
    token: Optional[str] = _TOKEN,
    speed: int = typer.Option(
        300, "--speed", min=10, help="Auto-play delay between slides, in ms."
    ),
) -> None:
    """Solve, then step through the solution interactively."""
    puzzle = _resolve_puzzle(ctx, file, name, token)
    result = _search(puzzle, SolverOptions())
    if result.moves is None:
        rich_app.console.print("[red]This puzzle has no solution[/red]")
        raise typer.Exit(code=EXIT_UNSOLVABLE)
    if not result.moves:
        rich_app.console.print("[green]Already solved![/green]")
        return
    rich_app.run(puzzle, result.moves, speed_ms=speed)


@app.command()
def share(
    ctx: typer.Context,
    file: Optional[Path] = _FILE,
    name: Optional[str] = _NAME,
    token: Optional[str] = _TOKEN,
) -> None:
    """Print a share token for the puzzle."""
    puzzle = _resolve_puzzle(ctx, file, name, token)
    typer.echo(to_share_token(puzzle))


@app.command()
def classic(
    name: Optional[str] = typer.Argument(None, help="Layout name; omit to list them."),
) -> None:
    """Print a built-in 4×5 layout as JSON."""
    if name is None:
        for layout in GameGenerator.classic_names():
            typer.echo(layout)
        return
    try:
        puzzle = GameGenerator.classic(name)
    except KeyError as exc:
        raise _fail(exc.args[0]) from exc
    typer.echo(json.dumps(puzzle.to_dict(), indent=2))


@app.command()
def generate(
    ctx: typer.Context,
    cols: int = typer.Option(4, "--cols", min=3, max=8),
    rows: int = typer.Option(5, "--rows", min=4, max=10),
    steps: int = typer.Option(200, "--steps", min=1, help="Random slides to scramble."),
    seed: Optional[int] = typer.Option(None, "--seed"),
    save_as: Optional[str] = typer.Option(None, "--save", help="Save under this name."),
) -> None:
    """Scramble a solved board into a new solvable puzzle."""
    puzzle = GameGenerator.generate(cols, rows, steps=steps, rng=random.Random(seed))
    if save_as:
        _store(ctx).save_puzzle(save_as, puzzle)
        rich_app.print_board(puzzle, title=save_as)
        return
    typer.echo(json.dumps(puzzle.to_dict(), indent=2))


# -- saved puzzles ------------------------------------------------------------


@puzzles_app.command("list")
def list_puzzles(ctx: typer.Context) -> None:
    """List saved puzzles; the default is starred."""
    store = _store(ctx)
    names = store.list_names()
    if not names:
        rich_app.console.print("[dim]No saved puzzles.[/dim]")
        return
    default = store.get_default_name()
    table = Table(show_header=False, box=None)
    table.add_column(width=1, style="bold yellow")
    table.add_column(style="bold cyan")
    for n in names:
        table.add_row("*" if n == default else "", n)
    rich_app.console.print(table)


@puzzles_app.command("save")
def save_puzzle(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name to save under."),
    file: Optional[Path] = _FILE,
    token: Optional[str] = _TOKEN,
    classic_name: Optional[str] = typer.Option(
        None, "--classic", help="Save a built-in layout."
    ),
) -> None:
    """Save a puzzle from a file, a share token or a built-in layout."""
    if classic_name:
        try:
            puzzle = GameGenerator.classic(classic_name)
        except KeyError as exc:
            raise _fail(exc.args[0]) from exc
    elif file is None and not token:
        raise _fail("Give a puzzle file, --token or --classic.")
    else:
        puzzle = _resolve_puzzle(ctx, file, None, token)
    try:
        puzzle.validate()
        _store(ctx).save_puzzle(name, puzzle)
    except ValueError as exc:
        raise _fail(str(exc)) from exc
    rich_app.console.print(f"Saved [bold cyan]{name.strip()}[/bold cyan].")


@puzzles_app.command("delete")
def delete_puzzle(ctx: typer.Context, name: str = typer.Argument(...)) -> None:
    """Delete a saved puzzle."""
    if not _store(ctx).delete_puzzle(name):
        raise _fail(f"No saved puzzle named {name!r}.")
    rich_app.console.print(f"Deleted [bold cyan]{name}[/bold cyan].")


@puzzles_app.command("export")
def export_puzzle(
    ctx: typer.Context,
    name: str = typer.Argument(...),
    out: Optional[Path] = typer.Argument(None, dir_okay=False, help="Output file."),
) -> None:
    """Write a saved puzzle as JSON to a file or stdout."""
    puzzle = _resolve_puzzle(ctx, None, name, None)
    if out is None:
        typer.echo(json.dumps(puzzle.to_dict(), indent=2))
        return
    dump_puzzle_file(out, puzzle)
    rich_app.console.print(f"Wrote [bold]{out}[/bold].")


@puzzles_app.command("set-default")
def set_default(ctx: typer.Context, name: str = typer.Argument(...)) -> None:
    """Use a saved puzzle when no other source is given."""
    try:
        _store(ctx).set_default_name(name)
    except KeyError as exc:
        raise _fail(f"No saved puzzle named {name!r}.") from exc


@puzzles_app.command("clear-default")
def clear_default(ctx: typer.Context) -> None:
    """Forget the default puzzle."""
    _store(ctx).clear_default_name()


if __name__ == "__main__":
    app()
