"""Punch CLI.

Usage:
    punch in TASK
    punch out
    punch list TASK [--billed]
"""

import logging
from contextlib import closing

import click

from main import list_task, punch_in, punch_out
from models.schema import PunchStatus
from utils.config import Settings, configure_logging
from utils.errors import PunchError
from utils.formatting import format_report
from utils.helper import connect, ensure_schema

__version__ = "0.1.0"


def open_store(ctx: click.Context):
    settings: Settings = ctx.obj
    conn = connect(settings.db_path)
    try:
        created = ensure_schema(conn)
    except PunchError:
        conn.close()
        raise
    if created:
        click.echo(f"Initializing {settings.db_path}")
    return conn


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Time tracking."""
    try:
        settings = Settings.from_env()
    except PunchError as exc:
        raise click.ClickException(str(exc)) from exc
    configure_logging(settings)
    logging.debug(f"Using store {settings.db_path}")
    ctx.obj = settings


@cli.command("in")
@click.argument("task")
@click.pass_context
def in_(ctx: click.Context, task: str) -> None:
    """Punch into a task."""
    try:
        with closing(open_store(ctx)) as conn:
            result = punch_in(conn, task)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="TASK") from exc
    except PunchError as exc:
        raise click.ClickException(str(exc)) from exc

    if result.status == PunchStatus.ALREADY_PUNCHED_IN:
        click.echo("Can't punch in again")
    else:
        click.echo(f"Punching into {result.task}")


@cli.command("out")
@click.pass_context
def out(ctx: click.Context) -> None:
    """Punch out from the current task."""
    try:
        with closing(open_store(ctx)) as conn:
            result = punch_out(conn)
    except PunchError as exc:
        raise click.ClickException(str(exc)) from exc

    if result.status == PunchStatus.NOT_PUNCHED_IN:
        click.echo("Can't punch out if you're not in...")
    else:
        click.echo(f"Punched out from '{result.task}' after {result.minutes} minutes")


@cli.command("list")
@click.argument("task")
@click.option("--billed", is_flag=True, help="Also show billed entries.")
@click.pass_context
def list_(ctx: click.Context, task: str, billed: bool) -> None:
    """List date and time for given task."""
    try:
        with closing(open_store(ctx)) as conn:
            if billed:
                click.echo("showing billed entries")
            report = list_task(conn, task, show_billed=billed)
    except PunchError as exc:
        raise click.ClickException(str(exc)) from exc

    if report.is_empty:
        click.echo(f"Nothing for task '{task}'")
    else:
        click.echo(format_report(report))


def main():
    cli(prog_name="punch")


if __name__ == "__main__":
    main()
