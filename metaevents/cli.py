"""CLI entrypoint for metaevents."""

import sys
from pathlib import Path

import click

from . import __version__
from .config import load_config, load_config_or_default
from .errors import ConfigurationError


@click.group()
@click.version_option(__version__, prog_name="metaevents")
@click.option(
    "--log",
    "-l",
    "log_path",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    default=None,
    help="Path to the JSON Lines event log (defaults to the one in metaevents.toml)",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to metaevents.toml (defaults to the nearest one above the current directory)",
)
@click.pass_context
def cli(ctx: click.Context, log_path: Path | None, config_path: Path | None) -> None:
    """metaevents - inspect metadata change and audit events.

    Reads the append-only event log written by the JSON Lines transport.
    """
    ctx.ensure_object(dict)
    try:
        config = load_config(config_path) if config_path else load_config_or_default(Path.cwd())
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    if log_path is None:
        log_path = config.event_log

    ctx.obj["config"] = config
    ctx.obj["log"] = log_path.resolve()


@cli.command("events")
@click.option("--last", "last_n", type=int, default=None, help="Show only the last N events")
@click.option(
    "--kind",
    "event_kinds",
    multiple=True,
    default=None,
    help="Filter by event kind (metadata_change_event, metadata_audit_event, "
    "aspect_metadata_audit_event, search_metric). Repeatable.",
)
@click.option(
    "--change-type",
    "change_types",
    multiple=True,
    default=None,
    help="Filter by change type (CREATE, UPSERT, DELETE). Repeatable.",
)
@click.option("--urn", type=str, default=None, help="Only events for this entity urn")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Output format",
)
@click.pass_context
def events(
    ctx: click.Context,
    last_n: int | None,
    event_kinds: tuple[str, ...],
    change_types: tuple[str, ...],
    urn: str | None,
    output_format: str,
) -> None:
    """List events from the event log.

    Examples:

        metaevents events --last 10

        metaevents events --change-type DELETE --format json

        metaevents events --urn urn:li:dataset:1
    """
    from .commands.events_cmd import run_events

    count = run_events(
        ctx.obj["log"],
        last_n=last_n,
        event_kinds=list(event_kinds) if event_kinds else None,
        change_types=list(change_types) if change_types else None,
        urn=urn,
        format=output_format,
    )
    sys.exit(0 if count > 0 else 1)


@cli.command("summary")
@click.pass_context
def summary(ctx: click.Context) -> None:
    """Display a summary of logged events."""
    from .commands.events_cmd import run_summary

    count = run_summary(ctx.obj["log"])
    sys.exit(0 if count > 0 else 1)


@cli.command("validate-urn")
@click.argument("urn")
@click.option("--json", "output_json", is_flag=True, help="Output components as JSON")
def validate_urn(urn: str, output_json: bool) -> None:
    """Parse URN and show its components."""
    from .commands.events_cmd import run_validate_urn

    sys.exit(run_validate_urn(urn, output_json=output_json))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
