"""mnemos CLI: scheduling, forecasting, ability and session commands over record files."""

import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer

from mnemos.application.config import AppConfig, resolve_config
from mnemos.application.service import LearningService
from mnemos.domain.errors import MnemosError
from mnemos.domain.scheduling.models import PreviousResult, ReviewContext, TimeOfDay
from mnemos.infrastructure.record_store import RecordStore, load_state, save_state
from mnemos.infrastructure.serialization import (
    plan_to_dict,
    profile_to_dict,
    state_to_dict,
    to_plain,
)

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="mnemos: spaced-repetition scheduling and learner ability estimation.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Inspect mnemos configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging.")
    ] = False,
    seed: Annotated[
        int | None, typer.Option(help="Seed the interval fuzz for replayable output.")
    ] = None,
):
    """Global settings for mnemos."""
    ctx.ensure_object(dict)
    config = resolve_config({"seed": seed, "log_level": "DEBUG" if verbose else None})
    logging.getLogger().setLevel(config.log_level)
    ctx.obj["config"] = config


def _config(ctx: typer.Context) -> AppConfig:
    if ctx.obj and "config" in ctx.obj:
        return ctx.obj["config"]
    return resolve_config()


def _service(ctx: typer.Context, store: RecordStore | None = None) -> LearningService:
    return LearningService.from_config(_config(ctx), items_repo=store, history_repo=store)


def _emit(data: Any) -> None:
    typer.echo(json.dumps(to_plain(data), indent=2))


def _fail(error: Exception) -> None:
    typer.secho(f"Error: {error}", fg="red", err=True)
    raise typer.Exit(1)


def _local_hour() -> int:
    return datetime.now().hour


# ---------------------------------------------------------------------------
# Item commands
# ---------------------------------------------------------------------------


@app.command()
def review(
    ctx: typer.Context,
    state_file: Annotated[
        Path, typer.Argument(help="Item state file (YAML/JSON). Missing or empty = new item.")
    ],
    quality: Annotated[int, typer.Option("--quality", "-q", help="Answer grade, 0-5.")],
    time_of_day: Annotated[
        TimeOfDay | None,
        typer.Option(help="When the review happened. Defaults to the local wall clock."),
    ] = None,
    study_streak: Annotated[
        int | None, typer.Option(help="Consecutive days of study.")
    ] = None,
    previous_result: Annotated[
        PreviousResult | None, typer.Option(help="Outcome of the previous review.")
    ] = None,
    subject_difficulty: Annotated[
        float | None, typer.Option(help="Subject difficulty, 0-10.")
    ] = None,
    write: Annotated[
        bool, typer.Option("--write/--no-write", help="Save the new state back to the file.")
    ] = False,
):
    """[bold green]Schedule[/bold green] an item after a review."""
    if time_of_day is None:
        time_of_day = TimeOfDay.from_hour(_local_hour())
    try:
        state = load_state(state_file)
        context = ReviewContext(
            time_of_day=time_of_day,
            study_streak=study_streak,
            previous_result=previous_result,
            subject_difficulty=subject_difficulty,
        )
        updated = _service(ctx).schedule_review(state, quality, context)
    except MnemosError as e:
        _fail(e)

    if write:
        save_state(state_file, updated)
        logger.info(f"Saved new state to {state_file}")
    _emit(state_to_dict(updated))


@app.command()
def stats(
    ctx: typer.Context,
    state_file: Annotated[Path, typer.Argument(help="Item state file (YAML/JSON).")],
):
    """Show retention, difficulty, stability and mastery of an item."""
    try:
        state = load_state(state_file)
    except MnemosError as e:
        _fail(e)
    if state is None:
        _fail(MnemosError(f"{state_file} holds no item state"))

    service = _service(ctx)
    _emit({"status": state.status, **vars(service.compute_stats(state))})


@app.command()
def forecast(
    ctx: typer.Context,
    state_file: Annotated[Path, typer.Argument(help="Item state file (YAML/JSON).")],
    days: Annotated[int, typer.Option(min=0, help="Days to forecast.")] = 30,
):
    """Predict recall probability over the coming days."""
    try:
        state = load_state(state_file)
    except MnemosError as e:
        _fail(e)

    points = _service(ctx).predict_performance(state, days)
    _emit([vars(p) for p in points])


@app.command("reset-leech")
def reset_leech_cmd(
    ctx: typer.Context,
    state_file: Annotated[Path, typer.Argument(help="Item state file (YAML/JSON).")],
    write: Annotated[
        bool, typer.Option("--write/--no-write", help="Save the reset state back to the file.")
    ] = False,
):
    """Manually reset a leech: clear lapses and restart its schedule."""
    try:
        state = load_state(state_file)
    except MnemosError as e:
        _fail(e)
    if state is None:
        _fail(MnemosError(f"{state_file} holds no item state"))

    reset = _service(ctx).reset_leech(state)
    if write:
        save_state(state_file, reset)
    _emit(state_to_dict(reset))


# ---------------------------------------------------------------------------
# Learner commands
# ---------------------------------------------------------------------------


@app.command()
def ability(
    ctx: typer.Context,
    records: Annotated[Path, typer.Argument(help="Learner records file (YAML/JSON).")],
    learner: Annotated[str, typer.Option("--learner", "-l", help="Learner ID.")],
    subject: Annotated[str | None, typer.Option(help="Restrict to one subject.")] = None,
    difficulty: Annotated[
        float | None, typer.Option(help="Also predict accuracy on an item of this difficulty.")
    ] = None,
):
    """Estimate a learner's ability, zone and Bloom level, with what to serve next."""
    store = RecordStore(records)
    service = _service(ctx, store)
    try:
        profile = asyncio.run(service.learner_profile(learner, subject))
    except MnemosError as e:
        _fail(e)

    data = profile_to_dict(profile)
    data["guidance"] = vars(service.guidance(profile))
    if difficulty is not None:
        data["prediction"] = vars(service.predict_accuracy(profile, difficulty))
    _emit(data)


@app.command()
def feedback(
    ctx: typer.Context,
    records: Annotated[Path, typer.Argument(help="Learner records file (YAML/JSON).")],
    learner: Annotated[str, typer.Option("--learner", "-l", help="Learner ID.")],
    correct: Annotated[
        bool, typer.Option("--correct/--wrong", help="Outcome of the answer.")
    ] = True,
    hints: Annotated[int, typer.Option(min=0, help="Hints used on the answer.")] = 0,
    subject: Annotated[str | None, typer.Option(help="Restrict to one subject.")] = None,
):
    """Learner-facing feedback on one answer, in light of their ability."""
    store = RecordStore(records)
    service = _service(ctx, store)
    try:
        profile = asyncio.run(service.learner_profile(learner, subject))
    except MnemosError as e:
        _fail(e)
    _emit(vars(service.feedback(profile, correct, hints)))


@app.command()
def learners(
    records: Annotated[Path, typer.Argument(help="Learner records file (YAML/JSON).")],
):
    """List the learners in a records file."""
    try:
        ids = RecordStore(records).learner_ids()
    except MnemosError as e:
        _fail(e)
    for learner_id in ids:
        typer.echo(learner_id)


@app.command()
def session(
    ctx: typer.Context,
    records: Annotated[Path, typer.Argument(help="Learner records file (YAML/JSON).")],
    learner: Annotated[str, typer.Option("--learner", "-l", help="Learner ID.")],
    minutes: Annotated[
        float | None, typer.Option(help="Session budget in minutes. Defaults to config.")
    ] = None,
    subject: Annotated[
        str | None, typer.Option(help="Subject used to estimate ability for new items.")
    ] = None,
    due_only: Annotated[
        bool, typer.Option("--due-only", help="Only consider due and new items.")
    ] = False,
):
    """Pick the items to study now within a time budget."""
    config = _config(ctx)
    budget = minutes if minutes is not None else config.session_minutes
    store = RecordStore(records)
    try:
        plan = asyncio.run(_service(ctx, store).plan_session(learner, budget, subject, due_only))
    except (MnemosError, ValueError) as e:
        _fail(e)
    _emit(plan_to_dict(plan))


@app.command()
def summary(
    ctx: typer.Context,
    records: Annotated[Path, typer.Argument(help="Learner records file (YAML/JSON).")],
    learner: Annotated[str, typer.Option("--learner", "-l", help="Learner ID.")],
):
    """Dashboard counts: due, new, learning, graduated, leeches and averages."""
    store = RecordStore(records)
    try:
        items = asyncio.run(store.get_items(learner))
    except MnemosError as e:
        _fail(e)
    _emit(vars(_service(ctx).summarize([i.state for i in items])))


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@app.command()
def serve(
    ctx: typer.Context,
    host: Annotated[str | None, typer.Option(help="Host to bind the server to.")] = None,
    port: Annotated[int | None, typer.Option(help="Port to bind the server to.")] = None,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API."""
    import uvicorn

    config = _config(ctx)
    uvicorn.run(
        "mnemos.server:app",
        host=host or config.host,
        port=port or config.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _config(ctx)
    _emit(config.model_dump())
