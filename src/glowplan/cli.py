"""CLI commands for creating, advancing, and inspecting a glow roadmap."""

from __future__ import annotations

import copy
import logging
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional

import typer
import yaml

from .analysis import AnalysisError, load_analysis
from .memory.store import RoadmapStore, StoreError
from .planning.progression import (
    DEFAULT_OWNER,
    AdvanceOutcome,
    IncompleteWeek,
    PlanSnapshot,
    ProgressionController,
    TaskNotFoundError,
    WaitingPeriod,
)
from .reminders import LoggingReminderSink

APP_HELP = "Glow roadmap CLI entry point."
DEFAULT_CONFIG_NAME = "config.yaml"
RETRY_MESSAGE = "Could not save your roadmap right now. Please try again."
MAX_COOLDOWN_DAYS = 365

DEFAULT_CONFIG_TEMPLATE: Dict[str, Any] = {
    "owner": {
        "id": DEFAULT_OWNER,
    },
    "roadmap": {
        "cooldown_days": 7,
    },
    "paths": {
        "data": "data",
        "db_path": "data/glowplan.sqlite",
        "config": DEFAULT_CONFIG_NAME,
    },
}


def _copy_config_template() -> Dict[str, Any]:
    """Return a deep copy of the default configuration template."""
    return copy.deepcopy(DEFAULT_CONFIG_TEMPLATE)


def _write_config(config_path: Path, config_data: Dict[str, Any]) -> None:
    """Persist configuration data to disk with stable formatting."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(config_data, handle, sort_keys=False)


app = typer.Typer(help=APP_HELP)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_config(config_path: Path) -> Dict[str, Any]:
    """Load YAML configuration from disk and return it as a dictionary."""
    if not config_path.exists():
        raise typer.BadParameter(f"Config file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        typer.echo(f"Failed to parse config: {error}")
        raise typer.Exit(code=1) from error

    if not isinstance(data, dict):
        typer.echo("Configuration must be a mapping at the top level.")
        raise typer.Exit(code=1)

    return data


def _resolve_paths(config: Dict[str, Any], config_path: Path) -> Dict[str, Any]:
    """Anchor relative data paths at the directory holding the config file."""
    resolved = copy.deepcopy(config)
    paths_cfg = dict(resolved.get("paths") or {})
    resolved["paths"] = paths_cfg
    paths_cfg.setdefault("data", "data")
    base = config_path.resolve().parent
    for key in ("data", "db_path"):
        value = paths_cfg.get(key)
        if isinstance(value, str) and value.strip():
            candidate = Path(value.strip())
            if not candidate.is_absolute():
                candidate = base / candidate
            paths_cfg[key] = candidate.as_posix()
    return resolved


def _resolve_owner(config: Dict[str, Any], owner: Optional[str]) -> str:
    if owner and owner.strip():
        return owner.strip()
    owner_cfg = config.get("owner") or {}
    value = owner_cfg.get("id")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return DEFAULT_OWNER


def _cooldown(config: Dict[str, Any]) -> timedelta:
    roadmap_cfg = config.get("roadmap") or {}
    value = roadmap_cfg.get("cooldown_days", 7)
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or not 0 <= value <= MAX_COOLDOWN_DAYS
    ):
        typer.echo(f"Invalid roadmap.cooldown_days {value!r}; using 7.")
        value = 7
    return timedelta(days=value)


def _open_store(config: Dict[str, Any], config_path: Path) -> RoadmapStore:
    try:
        return RoadmapStore.from_config(_resolve_paths(config, config_path))
    except StoreError as error:
        typer.echo(f"{RETRY_MESSAGE}\nDetails: {error}")
        raise typer.Exit(code=1) from error


def _build_controller(store: RoadmapStore, config: Dict[str, Any]) -> ProgressionController:
    return ProgressionController(
        store,
        cooldown=_cooldown(config),
        sinks=[LoggingReminderSink()],
    )


def _render_outcome(outcome: AdvanceOutcome, controller: ProgressionController) -> None:
    """Explain an advance result in user-facing terms."""
    if outcome.added_new_week:
        title = outcome.week.title if outcome.week else f"Week {outcome.current_week}"
        typer.echo(f"Unlocked {title}.")
        return

    reason = outcome.reason
    if isinstance(reason, IncompleteWeek):
        typer.echo(reason.message())
    elif isinstance(reason, WaitingPeriod):
        typer.echo(reason.message(controller.clock()))
    typer.echo(f"Current week: {outcome.current_week}")


def _render_snapshot(snapshot: PlanSnapshot, *, show_all: bool) -> None:
    """Render the roadmap header plus the active (or every) week."""
    if not snapshot.exists:
        typer.echo("No roadmap yet. Complete your first photo analysis to generate one.")
        return

    typer.echo(snapshot.headline)
    typer.echo(f"Overall progress: {round(snapshot.overall_progress * 100)}%")
    for week in snapshot.weeks:
        if not show_all and not week.is_current:
            continue
        marker = "*" if week.is_current else " "
        typer.echo(f"{marker} {week.title} [{round(week.progress * 100)}%]")
        if week.summary:
            typer.echo(f"    {week.summary}")
        if week.next_unlock_at is not None:
            typer.echo(f"    Next week unlocks on {week.next_unlock_at:%B %d, %Y}.")
        for task in week.tasks:
            check = "x" if task.is_completed else " "
            typer.echo(f"    [{check}] {task.title} ({task.timeframe}) {task.id}")


@app.command()
def init(
    config: str = typer.Option(
        DEFAULT_CONFIG_NAME,
        "--config",
        "-c",
        help="Path to the roadmap configuration file.",
    ),
    owner: Optional[str] = typer.Option(
        None,
        "--owner",
        help="Owner identifier stored in the configuration.",
    ),
) -> None:
    """Write a default configuration and create the roadmap database."""
    config_path = Path(config)
    config_created = not config_path.exists()
    if config_created:
        config_data = _copy_config_template()
        config_data["paths"]["config"] = config_path.name
    else:
        config_data = load_config(config_path)
        typer.echo(f"Using existing configuration at {config_path}")

    config_dirty = config_created
    if owner and owner.strip():
        config_data["owner"] = {**(config_data.get("owner") or {}), "id": owner.strip()}
        config_dirty = True
    if config_dirty:
        _write_config(config_path, config_data)
        typer.echo(f"Wrote configuration to {config_path}")

    with _open_store(config_data, config_path) as store:
        typer.echo(f"Roadmap database ready at {store.db_path}")


@app.command()
def advance(
    analysis_path: Path = typer.Argument(..., help="Analysis JSON produced by the photo scan."),
    source_id: Optional[str] = typer.Option(
        None,
        "--source-id",
        help="Identifier of the scan that produced the analysis.",
    ),
    owner: Optional[str] = typer.Option(None, "--owner", help="Override the configured owner."),
    config: str = typer.Option(
        DEFAULT_CONFIG_NAME,
        "--config",
        "-c",
        help="Path to the roadmap configuration file.",
    ),
) -> None:
    """Feed a completed analysis into the roadmap and unlock the next week if eligible."""
    config_path = Path(config)
    config_data = load_config(config_path)

    try:
        analysis = load_analysis(analysis_path)
    except AnalysisError as error:
        typer.echo(str(error))
        raise typer.Exit(code=1) from error

    owner_id = _resolve_owner(config_data, owner)
    with _open_store(config_data, config_path) as store:
        controller = _build_controller(store, config_data)
        try:
            outcome = controller.advance(owner_id, analysis, source_id)
        except StoreError as error:
            typer.echo(f"{RETRY_MESSAGE}\nDetails: {error}")
            raise typer.Exit(code=1) from error
        _render_outcome(outcome, controller)


@app.command()
def status(
    owner: Optional[str] = typer.Option(None, "--owner", help="Override the configured owner."),
    show_all: bool = typer.Option(False, "--all", help="List every week, not only the active one."),
    config: str = typer.Option(
        DEFAULT_CONFIG_NAME,
        "--config",
        "-c",
        help="Path to the roadmap configuration file.",
    ),
) -> None:
    """Show roadmap progress for the configured owner."""
    config_path = Path(config)
    config_data = load_config(config_path)

    owner_id = _resolve_owner(config_data, owner)
    with _open_store(config_data, config_path) as store:
        controller = _build_controller(store, config_data)
        try:
            snapshot = controller.get_current_state(owner_id)
        except StoreError as error:
            typer.echo(f"{RETRY_MESSAGE}\nDetails: {error}")
            raise typer.Exit(code=1) from error
    _render_snapshot(snapshot, show_all=show_all)


@app.command()
def toggle(
    task_id: str = typer.Argument(..., help="Identifier of the task to check or uncheck."),
    owner: Optional[str] = typer.Option(None, "--owner", help="Override the configured owner."),
    config: str = typer.Option(
        DEFAULT_CONFIG_NAME,
        "--config",
        "-c",
        help="Path to the roadmap configuration file.",
    ),
) -> None:
    """Toggle completion of a single task."""
    config_path = Path(config)
    config_data = load_config(config_path)

    owner_id = _resolve_owner(config_data, owner)
    with _open_store(config_data, config_path) as store:
        controller = _build_controller(store, config_data)
        try:
            task = controller.toggle_task_completion(owner_id, task_id)
        except TaskNotFoundError as error:
            typer.echo(str(error))
            raise typer.Exit(code=1) from error
        except StoreError as error:
            typer.echo(f"{RETRY_MESSAGE}\nDetails: {error}")
            raise typer.Exit(code=1) from error

    state = "completed" if task.is_completed else "reopened"
    typer.echo(f"Task '{task.title}' {state}.")


if __name__ == "__main__":
    app()
