#!/usr/bin/env python3
"""Klotski puzzle engine — command line.

Usage::

    python main.py levels                    # list built-in levels
    python main.py show -l 1                 # draw level 1
    python main.py solve -l 0 --time-limit 10
    python main.py hint --save game.json -n 3   # data/game.json
    python main.py check --save path/to/game.json
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import rich.box
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

ROOT = Path(__file__).resolve().parent  # python/
PROJECT_ROOT = ROOT.parent
DATA_DIR = PROJECT_ROOT / "data"

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from klotski.engine.gameplay import GamePlay  # noqa: E402
from klotski.engine.gamesolver import Solver, SolverLimits, is_solvable  # noqa: E402
from klotski.models import LEVELS, Board, Cell, KlotskiError  # noqa: E402
from klotski.models.savegame import load_record  # noqa: E402

console = Console()


# -- board rendering ----------------------------------------------------------

_STYLES = {
    Cell.EMPTY: "[dim]·[/dim]",
    Cell.TARGET: "[bold red]T[/bold red]",
    Cell.BAR: "[bold cyan]B[/bold cyan]",
    Cell.POST: "[bold yellow]P[/bold yellow]",
    Cell.UNIT: "[bold green]U[/bold green]",
    Cell.TRIPLE: "[bold magenta]X[/bold magenta]",
    Cell.OBSTACLE: "[white on grey23]#[/white on grey23]",
    Cell.CAMP: "[blue]^[/blue]",
    Cell.HIDDEN_OBSTACLE: "[dim]+[/dim]",
}


def _render_board(board: Board, title: str | None = None) -> Table:
    """Return a Rich Table representing the grid."""
    table = Table(
        title=title,
        show_header=False,
        show_edge=True,
        box=rich.box.HEAVY,
        border_style="bright_blue",
        padding=(0, 1),
    )
    for _ in range(board.width):
        table.add_column(width=1, justify="center")
    for row in board.cells:
        table.add_row(*(_STYLES[v] for v in row))
    return table


# -- helpers ------------------------------------------------------------------


def _resolve_save(save: Path) -> Path:
    """Relative names that do not exist here are looked up in DATA_DIR."""
    if not save.is_absolute() and not save.exists():
        return DATA_DIR / save
    return save


def _load_game(level: int, save: Optional[Path], solver: Solver | None = None) -> GamePlay:
    if save is None:
        return GamePlay(level, solver=solver)
    save = _resolve_save(save)
    try:
        return GamePlay.from_save(load_record(save), solver=solver)
    except (OSError, KlotskiError) as exc:
        console.print(f"[red]Cannot load {save}: {exc}[/red]")
        raise typer.Exit(code=1)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


# -- CLI entry point ----------------------------------------------------------

app = typer.Typer(add_completion=False, no_args_is_help=True)

LevelOption = typer.Option(0, "-l", "--level", min=0, help="Built-in level index.")
SaveOption = typer.Option(None, "-s", "--save", help="Load a saved game instead.")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Debug logging."),
) -> None:
    """Klotski sliding-block puzzle engine."""
    _setup_logging(verbose)


@app.command()
def levels() -> None:
    """List the built-in levels."""
    table = Table(title="Levels", box=rich.box.SIMPLE_HEAVY)
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Size")
    table.add_column("Props")
    for i, lvl in enumerate(LEVELS):
        board = lvl.board()
        props = ", ".join(f"{k} {v}" for k, v in lvl.props.items()) or "-"
        table.add_row(str(i), lvl.name, f"{board.height}×{board.width}", props)
    console.print(table)


@app.command()
def show(
    level: int = LevelOption,
    save: Optional[Path] = SaveOption,
) -> None:
    """Draw a board."""
    game = _load_game(level, save)
    console.print(_render_board(game.board, title=f"Moves: {game.moves}"))


@app.command()
def check(
    level: int = LevelOption,
    save: Optional[Path] = SaveOption,
) -> None:
    """Run the quick solvability screening."""
    game = _load_game(level, save)
    if is_solvable(game.board):
        console.print("[green]Board passes the solvability checks.[/green]")
    else:
        console.print("[yellow]Board fails the solvability checks.[/yellow]")
        raise typer.Exit(code=1)


@app.command()
def hint(
    level: int = LevelOption,
    save: Optional[Path] = SaveOption,
    count: int = typer.Option(3, "-n", "--count", min=1, help="Moves to show."),
    time_limit: float = typer.Option(30.0, "--time-limit", min=0.1, help="Seconds."),
) -> None:
    """Show the next few moves towards the goal."""
    solver = Solver(SolverLimits(time_limit=time_limit))
    game = _load_game(level, save, solver)
    moves = solver.hint(game.board, game.state.terrain, count)
    if not moves:
        console.print("[red]No hint available.[/red]")
        raise typer.Exit(code=1)
    for i, move in enumerate(moves, 1):
        console.print(f"  {i:>2}. {move}")


@app.command()
def solve(
    level: int = LevelOption,
    save: Optional[Path] = SaveOption,
    max_states: int = typer.Option(
        1_000_000, "--max-states", min=1, help="Explored-state cap."
    ),
    time_limit: float = typer.Option(30.0, "--time-limit", min=0.1, help="Seconds."),
    quiet: bool = typer.Option(False, "-q", "--quiet", help="Only print the count."),
) -> None:
    """Solve a board and replay the solution."""
    solver = Solver(SolverLimits(max_states_cap=max_states, time_limit=time_limit))
    game = _load_game(level, save, solver)
    console.print(_render_board(game.board, title="Start"))
    try:
        moves = game.solve()
    except KlotskiError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    if not quiet:
        for i, move in enumerate(moves, 1):
            console.print(f"  {i:>3}. {move}")
    outcome = game.replay(moves)
    console.print(_render_board(game.board, title="Final"))
    if outcome.completed and game.is_won:
        console.print(f"[bold green]Solved in {len(moves)} moves![/bold green]")
    else:
        console.print("[red]Replay did not reach the goal.[/red]")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
