"""Command-line interface for the roguelike agent."""

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from rogue_agent.agent.bot import Bot
from rogue_agent.agent.reporting import ConsoleReporter
from rogue_agent.agent.risk import assess
from rogue_agent.config import settings
from rogue_agent.engine.generate import make_hostile, make_player, parse_level, render_level
from rogue_agent.engine.types import Action, Goal, LevelSnapshot, Location, TurnResult
from rogue_agent.orchestrator.runner import EpisodeRunner, EpisodeSummary
from rogue_agent.storage.logger import RunLogger, RunReplay

app = typer.Typer()
console = Console()


def _describe_action(action: Action) -> str:
    offset = getattr(action, "offset", None)
    if offset is None:
        return action.type
    return f"{action.type} ({offset.dx}, {offset.dy})"


def _print_tick(snapshot: LevelSnapshot, action: Action, goals: List[Goal], result: TurnResult) -> None:
    player = snapshot.player
    goal_text = " > ".join(g.value for g in goals)
    console.print(
        f"[bold]turn {snapshot.turn:>4}[/bold] hp {player.health:>3} "
        f"at ({player.location.x}, {player.location.y}) "
        f"[cyan]{goal_text}[/cyan] -> [green]{_describe_action(action)}[/green]"
    )


def _print_summaries(summaries: List[EpisodeSummary]) -> None:
    table = Table(title="Episodes")
    table.add_column("Level", justify="right")
    table.add_column("Status")
    table.add_column("Turns", justify="right")
    table.add_column("Health", justify="right")
    table.add_column("Run ID")
    for summary in summaries:
        table.add_row(
            str(summary.level_index),
            summary.status.value,
            str(summary.turns),
            str(summary.final_health),
            summary.run_id or "-",
        )
    console.print(table)


@app.command()
def play(
    map_file: Optional[Path] = typer.Option(None, "--map", help="ASCII level to play instead of generated levels"),
    seed: str = typer.Option(None, help="Seed for generated levels"),
    levels: int = typer.Option(None, help="Number of generated levels to play"),
    max_turns: int = typer.Option(None, help="Turn limit per level"),
    db: Optional[str] = typer.Option(None, help="Record the run into this SQLite file"),
    verbose: bool = typer.Option(False, help="Print every tick and the agent's diagnostics"),
):
    """Let the agent play a map file or a generated campaign."""
    console.print("[bold blue]Rogue Agent[/bold blue] - Starting run...")
    runner = EpisodeRunner(
        bot=Bot(),
        logger=RunLogger(db) if db else None,
        reporter=ConsoleReporter(console) if verbose else None,
        on_tick=_print_tick if verbose else None,
    )
    try:
        if map_file is not None:
            snapshot = parse_level(map_file.read_text())
            summaries = [runner.run_level(snapshot, max_turns=max_turns, seed=map_file.name)]
        else:
            summaries = runner.run_campaign(seed=seed, levels=levels, max_turns=max_turns)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    _print_summaries(summaries)


@app.command(name="assess")
def assess_fight(
    health: int = typer.Option(100, help="Agent health"),
    attack: int = typer.Option(10, help="Agent innate attack"),
    defence: int = typer.Option(10, help="Agent innate defence"),
    attack_bonus: int = typer.Option(0, help="Agent attack from equipment"),
    defence_bonus: int = typer.Option(0, help="Agent defence from equipment"),
    level: int = typer.Option(1, help="Level index used to build the hostile"),
    hostile_health: Optional[int] = typer.Option(None, help="Override the hostile's health"),
    hostile_attack: Optional[int] = typer.Option(None, help="Override the hostile's attack"),
    hostile_defence: Optional[int] = typer.Option(None, help="Override the hostile's defence"),
):
    """Print the fight estimate against a hostile of the given level."""
    agent = make_player(Location(x=0, y=0), health=health).model_copy(update={
        "attack": attack,
        "defence": defence,
        "total_attack": attack + attack_bonus,
        "total_defence": defence + defence_bonus,
    })

    hostile = make_hostile(Location(x=1, y=0), level)
    overrides = {}
    if hostile_health is not None:
        overrides["health"] = hostile_health
    if hostile_attack is not None:
        overrides.update(attack=hostile_attack, total_attack=hostile_attack)
    if hostile_defence is not None:
        overrides.update(defence=hostile_defence, total_defence=hostile_defence)
    hostile = hostile.model_copy(update=overrides)

    fight = assess(hostile, agent, settings.damage_factor)

    table = Table(title=f"Hostile on level {level}")
    table.add_column("Estimate")
    table.add_column("Value", justify="right")
    table.add_row("damage to agent", str(fight.damage_to_self))
    table.add_row("damage from agent", str(fight.damage_from_self))
    table.add_row("hits to kill agent", str(fight.hits_to_kill_self) if fight.hits_to_kill_self is not None else "never")
    table.add_row("hits to kill hostile", str(fight.hits_to_death) if fight.hits_to_death is not None else "never")
    table.add_row("safe to engage", "yes" if fight.safe_to_engage else "no")
    console.print(table)


@app.command()
def replay(
    run_id: str = typer.Argument(..., help="Run ID to replay"),
    db: str = typer.Option(None, help="SQLite file holding the run"),
    show_map: bool = typer.Option(False, help="Draw the level on every tick"),
):
    """Print the recorded ticks of a previous run."""
    replay_store = RunReplay(db or settings.db_path)
    info = replay_store.get_run_info(run_id)
    if not info:
        console.print(f"[red]Error:[/red] Run {run_id} not found")
        raise typer.Exit(1)

    console.print(
        f"[bold blue]Rogue Agent[/bold blue] - Replaying run {run_id} "
        f"(seed: {info['seed']}, status: {info['status']})"
    )
    for tick in replay_store.get_ticks(run_id):
        snapshot = LevelSnapshot.model_validate(tick["snapshot"])
        if show_map:
            console.print("\n".join(render_level(snapshot)), highlight=False)
        action = tick["action"]
        offset = action.get("offset")
        action_text = action["type"] if not offset else f"{action['type']} ({offset['dx']}, {offset['dy']})"
        console.print(
            f"[bold]turn {tick['turn']:>4}[/bold] hp {snapshot.player.health:>3} "
            f"[cyan]{' > '.join(tick['goals'])}[/cyan] -> [green]{action_text}[/green]"
        )
        for event in tick["events"]:
            console.print(f"    [dim]{event['kind']} {event['payload']}[/dim]", highlight=False)


@app.command()
def runs(
    limit: int = typer.Option(10, help="How many runs to list"),
    db: str = typer.Option(None, help="SQLite file holding the runs"),
):
    """List recently recorded runs."""
    table = Table(title="Recent runs")
    table.add_column("Run ID")
    table.add_column("Seed")
    table.add_column("Level", justify="right")
    table.add_column("Status")
    table.add_column("Turns", justify="right")
    for run in RunReplay(db or settings.db_path).list_recent_runs(limit):
        table.add_row(
            run["run_id"],
            run["seed"],
            str(run["level_index"]),
            run["status"] or "-",
            str(run["turns"]) if run["turns"] is not None else "-",
        )
    console.print(table)


@app.callback()
def callback():
    """Rogue Agent: a goal-stack bot for turn-based grid roguelikes."""
    pass


if __name__ == "__main__":
    app()
