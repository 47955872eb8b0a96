"""Rich terminal frontend — board tables, solution listings and replay.

Uses the ``rich`` library for styled output and the shared input handler
for the interactive replay viewer.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence

import rich.box
from rich.align import Align
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from klotski.backend.engine.gameplay import ReplayPlayer
from klotski.backend.engine.gamesolver import SearchStats, total_slides
from klotski.backend.models.board import BoardModel
from klotski.backend.models.move import Move
from klotski.backend.models.puzzle import Puzzle
from klotski.frontend.cli.input_handler import get_key, get_key_timeout

console = Console()

_PALETTE = (
    "bold cyan",
    "bold yellow",
    "bold magenta",
    "bold green",
    "bold blue",
    "bold white",
)
_ESCAPE_STYLE = "bold white on red"
_GOAL_STYLE = "on #3b2a2a"


# -- board rendering ----------------------------------------------------------


def _piece_styles(board: BoardModel) -> dict[str, str]:
    escape = board.catalog.by_size(board.goal.w, board.goal.h)
    styles: dict[str, str] = {}
    for i, p in enumerate(board.pieces):
        if escape is not None and p.kind == escape.name:
            styles[p.id] = _ESCAPE_STYLE
        else:
            styles[p.id] = _PALETTE[i % len(_PALETTE)]
    return styles


def render_board(board: BoardModel) -> Table:
    """Return a Rich Table representing the board, one cell per column."""
    styles = _piece_styles(board)
    width = max((len(p.id) for p in board.pieces), default=1)
    goal = board.goal
    table = Table(
        show_header=False,
        show_edge=True,
        pad_edge=True,
        box=rich.box.HEAVY,
        border_style="bright_blue",
        padding=(0, 1),
    )
    for _ in range(board.cols):
        table.add_column(width=width + 1, justify="center")

    for y in range(board.rows):
        cells: list[Text] = []
        for x in range(board.cols):
            in_goal = goal.x <= x < goal.x + goal.w and goal.y <= y < goal.y + goal.h
            piece = board.occupant(x, y)
            if piece is None:
                cells.append(Text("·", style=_GOAL_STYLE if in_goal else "dim"))
            else:
                cells.append(Text(f"{piece.id:>{width}}", style=styles[piece.id]))
        table.add_row(*cells)

    return table


def render_moves(moves: Sequence[Move]) -> Table:
    table = Table(box=rich.box.ROUNDED, border_style="dim")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Piece", style="bold cyan")
    table.add_column("Direction")
    table.add_column("Cells", justify="right", style="yellow")
    for i, move in enumerate(moves, 1):
        table.add_row(str(i), move.piece_id, move.direction.value, str(move.count))
    return table


def render_stats(stats: SearchStats) -> Text:
    text = Text()
    text.append("  Expanded: ", style="dim")
    text.append(f"{stats.expanded:,}", style="bold yellow")
    text.append("    Generated: ", style="dim")
    text.append(f"{stats.generated:,}", style="bold yellow")
    text.append("    Duplicates: ", style="dim")
    text.append(f"{stats.duplicates:,}", style="bold yellow")
    text.append("    Peak frontier: ", style="dim")
    text.append(f"{stats.peak_frontier:,}", style="bold yellow")
    text.append("    Mirror: ", style="dim")
    text.append("on" if stats.mirror_pruning else "off", style="bold yellow")
    text.append("    Time: ", style="dim")
    text.append(f"{stats.elapsed_ms} ms", style="bold yellow")
    return text


# -- one-shot output ----------------------------------------------------------


def print_board(puzzle: Puzzle, title: str = "") -> None:
    board = BoardModel.from_puzzle(puzzle)
    heading = title or f"Klotski  {puzzle.cols}×{puzzle.rows}"
    console.print(
        Panel(
            Align.center(render_board(board)),
            title=f"[bold cyan]{heading}[/bold cyan]",
            border_style="bright_blue",
            padding=(1, 2),
            expand=False,
        )
    )


def print_solution(moves: Sequence[Move], stats: SearchStats | None = None) -> None:
    if not moves:
        console.print("[green]Already solved![/green]")
    else:
        console.print(render_moves(moves))
        console.print(
            f"[bold green]{len(moves)} moves, {total_slides(moves)} slides[/bold green]"
        )
    if stats is not None:
        console.print(render_stats(stats))


# -- replay viewer ------------------------------------------------------------


def _controls() -> Text:
    controls = Text()
    controls.append("  ←→", style="bold cyan")
    controls.append(" / ", style="dim")
    controls.append("AD", style="bold cyan")
    controls.append("  step   ", style="dim")
    controls.append("Space", style="bold cyan")
    controls.append("  play/pause   ", style="dim")
    controls.append("R", style="bold cyan")
    controls.append("  rewind   ", style="dim")
    controls.append("E", style="bold cyan")
    controls.append("  end   ", style="dim")
    controls.append("Q", style="bold cyan")
    controls.append("  quit", style="dim")
    return controls


def _draw_replay(player: ReplayPlayer, playing: bool) -> None:
    console.clear()

    board = player.board
    progress = Text()
    progress.append(f"  {player.current_step}/{player.total_steps} ", style="bold cyan")
    progress.append(player.status_text() or "Start", style="dim")
    if playing:
        progress.append("  ▶", style="bold green")

    parts = [Align.center(render_board(board)), Align.center(progress)]
    if player.at_end and board.is_solved():
        parts.append(Align.center(Text("\n  ★ Solved! ★", style="bold green")))

    panel = Panel(
        Group(*parts),
        title=f"[bold cyan]Replay  {board.cols}×{board.rows}[/bold cyan]",
        border_style="bold green" if player.at_end else "bright_blue",
        padding=(1, 2),
    )
    console.print()
    console.print(Align.center(panel))
    console.print(Align.center(_controls()))
    sys.stdout.flush()


def run(puzzle: Puzzle, moves: Sequence[Move], speed_ms: int = 300) -> None:
    """Step through *moves* on a live board until the user quits.

    While auto-play is on, the next slide is applied every *speed_ms*
    milliseconds unless a key arrives first.
    """
    player = ReplayPlayer(puzzle, moves)
    playing = False

    while True:
        _draw_replay(player, playing)
        if playing:
            key = get_key_timeout(speed_ms / 1000)
            if key is None:
                if not player.step_forward():
                    playing = False
                continue
        else:
            key = get_key()

        if key == "forward":
            player.step_forward()
        elif key == "back":
            player.step_backward()
        elif key == "play":
            if player.at_end:
                player.reset()
            playing = not playing
        elif key == "rewind":
            playing = False
            player.reset()
        elif key == "end":
            playing = False
            player.jump_to_end()
        elif key == "quit":
            return
