# ABOUTME: Provides a CLI to replay, inspect, and reset per-learner adaptive difficulty state.
# ABOUTME: Renders difficulty traces with rich so estimator behavior can be checked offline.

from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from src.common.categories import classify_game_category, difficulty_to_label
from src.common.config import ESTIMATOR_VARIANTS, load_config
from src.common.log import configure_logging
from src.common.replay import load_samples, replay_samples
from src.common.session import build_estimator
from src.common.storage import MemoryStore

console = Console()
app = typer.Typer(help="Replay and inspect adaptive difficulty estimator state.")


def _load(config_path: Optional[Path], estimator: Optional[str]):
    cfg = load_config(config_path)
    if estimator is not None:
        if estimator not in ESTIMATOR_VARIANTS:
            console.print(f"[red]Unknown estimator '{estimator}'[/red]")
            raise typer.Exit(code=1)
        cfg = replace(cfg, estimator=estimator)
    configure_logging(cfg.log_level)
    return cfg


@app.command()
def replay(
    samples: Path = typer.Option(..., "--samples", help="CSV or parquet of performance samples."),
    learner_id: str = typer.Option("default", "--learner-id", help="Learner whose state is used."),
    estimator: Optional[str] = typer.Option(None, "--estimator", help="rule-based or online-model."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to adaptive config YAML."),
    persist: bool = typer.Option(False, "--persist/--no-persist", help="Start from and write to stored state."),
    output: Optional[Path] = typer.Option(None, "--output", help="Write the trace to CSV or parquet."),
) -> None:
    """Feed samples through an estimator and print the difficulty trace."""
    cfg = _load(config, estimator)
    if not samples.exists():
        console.print(f"[red]Missing samples file at {samples}[/red]")
        raise typer.Exit(code=1)

    store = None if persist else MemoryStore()
    model = build_estimator(cfg, learner_id=learner_id, store=store)
    model.load_or_init()

    samples_df = load_samples(samples)
    trace_df = replay_samples(model, samples_df)

    console.rule(f"[bold blue]{model.variant} trace for {learner_id}[/bold blue]")
    table = Table(show_header=True, header_style="bold magenta")
    for column in ("Step", "Category", "Correct", "Reaction (ms)", "Scalar", "Difficulty", "Label", "Focus"):
        table.add_column(column)
    for row in trace_df.itertuples(index=False):
        table.add_row(
            str(row.step),
            row.category,
            str(row.is_correct),
            f"{row.reaction_ms:.0f}",
            f"{row.difficulty_scalar:.2f}",
            str(row.difficulty),
            row.label,
            row.focus,
        )
    console.print(table)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        if output.suffix == ".parquet":
            trace_df.to_parquet(output, index=False)
        else:
            trace_df.to_csv(output, index=False)
        console.print(f"[green]Trace written to {output}[/green]")


@app.command()
def show(
    learner_id: str = typer.Option("default", "--learner-id", help="Learner to inspect."),
    estimator: Optional[str] = typer.Option(None, "--estimator", help="rule-based or online-model."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to adaptive config YAML."),
) -> None:
    """Print stored state and the current recommendation for a learner."""
    cfg = _load(config, estimator)
    model = build_estimator(cfg, learner_id=learner_id)
    model.load_or_init()
    prediction = model.get_recommendation()

    console.print(f"[bold]Learner:[/] {learner_id}")
    console.print(f"[bold]Estimator:[/] {model.variant}")
    console.print(
        f"[bold]Difficulty:[/] {prediction.difficulty} ({difficulty_to_label(prediction.difficulty)}), "
        f"scalar {model.current_difficulty:.2f}"
    )
    console.print(f"[bold]Focus:[/] {prediction.focus}")
    console.print(f"[bold]Average reaction:[/] {model.average_reaction_ms:.0f} ms")

    errors = Table(show_header=True, header_style="bold magenta")
    errors.add_column("Category")
    errors.add_column("Error score")
    for category, score in model.error_memory.items():
        errors.add_row(category, f"{score:.1f}")
    console.print(errors)


@app.command()
def reset(
    learner_id: str = typer.Option("default", "--learner-id", help="Learner to reset."),
    estimator: Optional[str] = typer.Option(None, "--estimator", help="rule-based or online-model."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to adaptive config YAML."),
) -> None:
    """Delete a learner's stored state so the next session starts fresh."""
    cfg = _load(config, estimator)
    model = build_estimator(cfg, learner_id=learner_id)
    model.reset()
    console.print(f"[yellow]Reset {model.variant} state for {learner_id}[/yellow]")


@app.command()
def classify(game_type: str = typer.Argument(..., help="Game type identifier, e.g. letter-jump.")) -> None:
    """Show which skill category a game type feeds."""
    console.print(classify_game_category(game_type))


if __name__ == "__main__":
    app()
