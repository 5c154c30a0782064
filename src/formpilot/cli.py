from __future__ import annotations

import logging
from pathlib import Path

import typer

from formpilot.config import Settings
from formpilot.seed import export_submissions, seed_forms
from formpilot.storage import init_storage

cli = typer.Typer(add_completion=False)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run_server(host: str | None, port: int | None) -> None:
    import uvicorn

    from formpilot.app import create_app

    settings = Settings()
    configure_logging(settings)
    resolved_host = host or settings.host
    resolved_port = port if port is not None else settings.port
    uvicorn.run(create_app(settings), host=resolved_host, port=resolved_port)


@cli.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    host: str | None = typer.Option(None, help="Address to bind"),
    port: int | None = typer.Option(None, help="Port to bind"),
) -> None:
    ctx.obj = {"host": host, "port": port}
    if ctx.invoked_subcommand is None:
        run_server(host, port)


@cli.command()
def run(
    ctx: typer.Context,
    host: str | None = typer.Option(None, help="Address to bind"),
    port: int | None = typer.Option(None, help="Port to bind"),
) -> None:
    base = ctx.obj or {}
    resolved_host = host or base.get("host")
    resolved_port = port if port is not None else base.get("port")
    run_server(resolved_host, resolved_port)


@cli.command()
def seed(
    submissions: int = typer.Option(100, help="Submissions to create per form"),
    random_seed: int | None = typer.Option(None, "--seed", help="Random seed"),
) -> None:
    """Insert sample forms with random submissions."""
    settings = Settings()
    configure_logging(settings)
    form_ids = seed_forms(init_storage(settings), submissions, seed=random_seed)
    for form_id in form_ids:
        typer.echo(form_id)


@cli.command()
def export(
    output: Path = typer.Argument(..., help="JSON file to write"),
    form_id: str | None = typer.Option(None, "--form-id", help="Only this form"),
) -> None:
    """Write submission answers to a JSON file."""
    settings = Settings()
    configure_logging(settings)
    count = export_submissions(init_storage(settings), output, form_id)
    typer.echo(f"Exported {count} submissions to {output}")
