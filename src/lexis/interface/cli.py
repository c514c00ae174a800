"""Lexis CLI: review, stats, and config commands."""

import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Annotated

import typer

from lexis.application.config import AppConfig, config_file_candidates, resolve_config
from lexis.application.utils.review_time import format_time_until_review
from lexis.domain.exceptions import LexisError

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="lexis: Spaced-repetition vocabulary review.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

config_app = typer.Typer(help="Manage lexis configuration.")
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    user: Annotated[str | None, typer.Option("--user", "-u", help="Learner id.")] = None,
    db_path: Annotated[Path | None, typer.Option("--db", help="SQLite database path.")] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for lexis."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {"user_id": user, "db_path": db_path, "verbose": verbose or None}


def _resolve(ctx: typer.Context) -> AppConfig:
    overrides = (ctx.obj or {}).get("overrides", {})
    config = resolve_config(overrides)
    if config.verbose:
        logging.getLogger("lexis").setLevel(
            logging.DEBUG if config.verbose > 1 else logging.INFO
        )
    return config


def _run(coro):
    """Run a service coroutine, turning domain errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except LexisError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1)


def _service(config: AppConfig):
    from lexis.application.factory import get_review_service

    return get_review_service(config)


def _format_due(value) -> str:
    if value is None:
        return "unscheduled"
    return f"{format_time_until_review(value)} ({value.isoformat(timespec='minutes')})"


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def start(
    ctx: typer.Context,
    words: Annotated[list[str], typer.Argument(help="Word ids to start learning.")],
):
    """[bold green]Start[/bold green] tracking words for review."""
    config = _resolve(ctx)
    service = _service(config)
    started = _run(service.start_learning(config.user_id, words))
    skipped = len(set(words)) - started
    typer.echo(f"Started {started} words ({skipped} already tracked).")


@app.command()
def due(
    ctx: typer.Context,
    limit: Annotated[int | None, typer.Option(help="Maximum words to list.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List words due for review now."""
    config = _resolve(ctx)
    service = _service(config)

    async def run():
        word_ids = await service.get_due_words(config.user_id, limit=limit)
        total = await service.get_due_count(config.user_id)
        return word_ids, total

    word_ids, total = _run(run())

    if json_output:
        typer.echo(json.dumps({"count": total, "word_ids": word_ids}, indent=2))
        return

    if not word_ids:
        typer.secho("Nothing due. Come back later!", fg="green")
        return

    typer.echo(f"Due: {total} (showing {len(word_ids)})")
    for word_id in word_ids:
        typer.echo(f"  {word_id}")


@app.command()
def grade(
    ctx: typer.Context,
    word: Annotated[str, typer.Argument(help="Word id to grade.")],
    value: Annotated[
        str, typer.Argument(help="forgot, struggled, remembered, perfect (or 0-3).")
    ],
):
    """Grade one word and show when it is due next."""
    config = _resolve(ctx)
    service = _service(config)
    state = _run(service.process_review(config.user_id, word, value))

    typer.echo(
        f"{state.word_id}: interval {state.interval:g}d, ease {state.ease_factor:.2f}, "
        f"status {state.status.value}"
    )
    typer.echo(f"Next review: {_format_due(state.next_review_date)}")


@app.command()
def stats(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show streak, weekly review counts, and mastery."""
    config = _resolve(ctx)
    service = _service(config)

    async def run():
        return (
            await service.get_streak(config.user_id),
            await service.get_weekly_stats(config.user_id),
            await service.get_due_count(config.user_id),
            await service.get_mastery(config.user_id),
        )

    streak, weekly, due_count, mastery = _run(run())

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "streak": streak,
                    "this_week": weekly.this_week,
                    "last_week": weekly.last_week,
                    "due": due_count,
                    "total_mastery": mastery.total_mastery,
                    "mastery_levels": mastery.levels,
                    "total_reviews": mastery.total_reviews,
                },
                indent=2,
            )
        )
        return

    typer.echo(f"Streak: {streak} day{'s' if streak != 1 else ''}")
    typer.echo(f"Reviews this week: {weekly.this_week}  (last week: {weekly.last_week})")
    typer.echo(f"Due now: {due_count}")
    typer.echo(f"Mastery: {mastery.total_mastery}%  Total reviews: {mastery.total_reviews}")
    for level, count in mastery.levels.items():
        typer.echo(f"  {level}: {count}")


@app.command()
def window(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="this-week, this-month, or learned.")],
):
    """List words whose next review falls in a look-ahead window."""
    from lexis.application.due_selector import ReviewWindow

    try:
        review_window = ReviewWindow.parse(name)
    except ValueError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(2)

    config = _resolve(ctx)
    service = _service(config)
    states = _run(service.list_window(config.user_id, review_window))

    typer.echo(f"{review_window.value}: {len(states)} words")
    for state in states:
        typer.echo(f"  {state.word_id}  {_format_due(state.next_review_date)}")


@app.command()
def archive(ctx: typer.Context, word: Annotated[str, typer.Argument(help="Word id.")]):
    """Archive a word so it is never due."""
    config = _resolve(ctx)
    state = _run(_service(config).archive_word(config.user_id, word))
    typer.echo(f"Archived {state.word_id}.")


@app.command()
def restore(ctx: typer.Context, word: Annotated[str, typer.Argument(help="Word id.")]):
    """Bring an archived word back into review."""
    config = _resolve(ctx)
    state = _run(_service(config).restore_word(config.user_id, word))
    typer.echo(f"Restored {state.word_id} ({state.status.value}).")


@app.command()
def forget(
    ctx: typer.Context,
    word: Annotated[str, typer.Argument(help="Word id.")],
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Bypass confirmation.")
    ] = False,
):
    """Stop tracking a word and delete its review history."""
    if not force:
        typer.confirm(f"Delete all progress for '{word}'?", abort=True)
    config = _resolve(ctx)
    _run(_service(config).forget_word(config.user_id, word))
    typer.echo(f"Removed {word}.")


@app.command()
def serve(
    host: Annotated[str, typer.Option(help="Bind address.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port to listen on.")] = 8777,
):
    """Run the HTTP API server."""
    import uvicorn

    uvicorn.run("lexis.server:app", host=host, port=port)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _resolve(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


@config_app.command("open")
def config_open():
    """Open the config file in your default editor."""
    import subprocess

    cfg_path = config_file_candidates()[0]
    if not cfg_path.exists():
        cfg_path.parent.mkdir(parents=True, exist_ok=True)
        cfg_path.touch()

    if sys.platform == "darwin":
        subprocess.run(["open", str(cfg_path)])
    elif sys.platform == "win32":
        os.startfile(str(cfg_path))
    else:
        subprocess.run(["xdg-open", str(cfg_path)])


def main():
    app()


if __name__ == "__main__":
    main()
