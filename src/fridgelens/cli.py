"""Command-line interface for Fridgelens."""

from __future__ import annotations

import json
import mimetypes
from pathlib import Path
from typing import NoReturn, Optional

import typer

from fridgelens.config import get_settings
from fridgelens.db import build_store
from fridgelens.devtools.doctor import run_doctor
from fridgelens.errors import FridgelensError
from fridgelens.images import inspect_image
from fridgelens.llm import build_detector, build_generator
from fridgelens.logging_utils import configure_logging
from fridgelens.reports import summarize, to_csv

app = typer.Typer(help="Fridgelens recipe evaluation commands.")
evaluations_app = typer.Typer(help="Inspect and manage stored evaluations.")
app.add_typer(evaluations_app, name="evaluations")


@app.callback()
def _configure() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format, settings.secrets())


def _fail(exc: FridgelensError) -> NoReturn:
    typer.secho(f"Error: {exc.message}", fg=typer.colors.RED, err=True)
    if exc.details:
        typer.secho(exc.details, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(8000, "--port", help="Port to listen on."),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes."),
) -> None:
    """Run the web application."""

    from fridgelens.server.run import serve as run_server

    run_server(host, port, reload=reload)


@app.command()
def detect(image_path: Path = typer.Argument(..., exists=True, dir_okay=False)) -> None:
    """Detect ingredients in a local photo using the configured backend."""

    settings = get_settings()
    content = image_path.read_bytes()
    declared_type, _ = mimetypes.guess_type(image_path.name)
    try:
        mime_type = inspect_image(
            content, max_bytes=settings.max_image_bytes, declared_type=declared_type
        )
        ingredients = build_detector(settings).detect(content, mime_type)
    except FridgelensError as exc:
        _fail(exc)
    typer.echo(ingredients)


@app.command()
def generate(ingredients: str = typer.Argument(..., help="Comma-separated ingredients.")) -> None:
    """Generate a recipe for the given ingredients."""

    if not ingredients.strip():
        typer.secho("Error: Please provide ingredients", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    try:
        recipe = build_generator(get_settings()).generate(ingredients.strip())
    except FridgelensError as exc:
        _fail(exc)
    typer.echo(recipe)


@evaluations_app.command("list")
def evaluations_list(
    limit: int = typer.Option(20, "--limit", min=1, help="Maximum rows to show."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """Show the newest evaluations."""

    store = build_store(get_settings())
    try:
        evaluations = store.list(limit=limit)
    except FridgelensError as exc:
        _fail(exc)
    finally:
        store.close()

    if as_json:
        typer.echo(json.dumps([evaluation.to_public() for evaluation in evaluations], indent=2))
        return
    if not evaluations:
        typer.echo("No evaluations recorded yet.")
        return
    for evaluation in evaluations:
        stars = "★" * evaluation.rating
        typer.echo(
            f"{evaluation.timestamp:%Y-%m-%d %H:%M}  {stars:<5}  {evaluation.ingredients[:50]}"
            f"  ({evaluation.image_name})"
        )


@evaluations_app.command("export")
def evaluations_export(
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write CSV to this file instead of stdout."
    ),
) -> None:
    """Export evaluations as CSV."""

    settings = get_settings()
    store = build_store(settings)
    try:
        evaluations = store.list(limit=settings.evaluations_list_limit)
    except FridgelensError as exc:
        _fail(exc)
    finally:
        store.close()

    if not evaluations:
        typer.secho("No evaluations to export!", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=1)
    payload = to_csv(evaluations)
    if output is None:
        typer.echo(payload, nl=False)
        return
    output.write_text(payload, encoding="utf-8")
    typer.echo(f"Wrote {len(evaluations)} evaluation(s) to {output}")


@evaluations_app.command("stats")
def evaluations_stats() -> None:
    """Print totals, average rating and the per-star histogram."""

    settings = get_settings()
    store = build_store(settings)
    try:
        evaluations = store.list(limit=settings.evaluations_list_limit)
    except FridgelensError as exc:
        _fail(exc)
    finally:
        store.close()

    summary = summarize(evaluations)
    typer.echo(f"Total evaluations: {summary.total}")
    typer.echo(f"Average rating: {summary.average_rating:.1f}")
    for star in sorted(summary.histogram, reverse=True):
        typer.echo(f"{star}★: {summary.histogram[star]}")


@evaluations_app.command("clear")
def evaluations_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Delete every stored evaluation."""

    if not yes:
        typer.confirm("Delete all evaluations?", abort=True)
    store = build_store(get_settings())
    try:
        deleted = store.delete_all()
    except FridgelensError as exc:
        _fail(exc)
    finally:
        store.close()
    typer.echo(f"Deleted {deleted} evaluation(s).")


@app.command()
def doctor(
    probe: bool = typer.Option(False, "--probe", help="Send a short prompt to the generator."),
) -> None:
    """Inspect configuration and backend reachability."""

    exit_code, report = run_doctor(probe=probe)
    typer.echo(report)
    raise typer.Exit(code=exit_code)


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the `fridgelens` script."""
    app(prog_name="fridgelens", args=argv)


if __name__ == "__main__":
    main()
