"""Event log commands - list and summarise emitted events."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..errors import InvalidUrnError
from ..event_log import EventLog, format_event
from ..events import EVENT_KINDS
from ..models import ChangeType
from ..urn import Urn


def run_events(
    log_path: Path,
    *,
    last_n: int | None = None,
    event_kinds: list[str] | None = None,
    change_types: list[str] | None = None,
    urn: str | None = None,
    format: str = "text",
) -> int:
    """
    Read and display events from the event log.

    Returns the number of events displayed.
    """
    console = Console()

    kind_filter: list[str] | None = None
    if event_kinds:
        kind_filter = []
        for k in event_kinds:
            if k.lower() in EVENT_KINDS:
                kind_filter.append(k.lower())
            else:
                console.print(f"[yellow]Unknown event kind: {k}[/yellow]", highlight=False)

    change_filter: list[ChangeType] | None = None
    if change_types:
        change_filter = []
        for c in change_types:
            try:
                change_filter.append(ChangeType(c.upper()))
            except ValueError:
                console.print(f"[yellow]Unknown change type: {c}[/yellow]", highlight=False)

    # A filter whose values were all unknown matches nothing.
    if kind_filter == [] or change_filter == []:
        console.print("[dim]No events found.[/dim]")
        return 0

    events = EventLog(log_path).read(
        last_n=last_n,
        event_kinds=kind_filter,
        change_types=change_filter,
        urn=urn,
    )

    if not events:
        console.print("[dim]No events found.[/dim]")
        return 0

    if format == "json":
        for event in events:
            print(json.dumps(event.to_dict()))
    else:
        for event in events:
            console.print(format_event(event), markup=False, highlight=False)
            console.print()

    return len(events)


def run_summary(log_path: Path) -> int:
    """
    Display a summary of the event log.

    Returns the total event count.
    """
    console = Console()
    s = EventLog(log_path).summary()

    if s["total_events"] == 0:
        console.print("[dim]No events logged yet.[/dim]")
        return 0

    table = Table(title="Event Summary")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Total events", str(s["total_events"]))

    if s["event_kind_counts"]:
        table.add_row("", "")
        for kind, count in sorted(s["event_kind_counts"].items()):
            table.add_row(f"  {kind}", str(count))

    if s["change_type_counts"]:
        table.add_row("", "")
        for ct in ChangeType:
            count = s["change_type_counts"].get(ct.value, 0)
            if count:
                table.add_row(f"  {ct.value}", str(count))

    if s["ingestion_mode_counts"]:
        table.add_row("", "")
        for mode, count in sorted(s["ingestion_mode_counts"].items()):
            table.add_row(f"  {mode}", str(count))

    table.add_row("", "")
    table.add_row("First event", s["time_range"]["earliest"][:19].replace("T", " "))
    table.add_row("Last event", s["time_range"]["latest"][:19].replace("T", " "))

    console.print(table)

    if s["most_changed_urns"]:
        urns = Table(title="Most Changed Entities")
        urns.add_column("Urn", style="cyan")
        urns.add_column("Events", justify="right")
        for urn, count in s["most_changed_urns"]:
            urns.add_row(urn, str(count))
        console.print(urns)

    return s["total_events"]


def run_validate_urn(text: str, *, output_json: bool = False) -> int:
    """Parse a urn and print its components. Returns an exit code."""
    try:
        urn = Urn.parse(text)
    except InvalidUrnError as e:
        Console(stderr=True).print(f"Invalid urn: {e}", style="bold red", highlight=False)
        return 1

    if output_json:
        print(json.dumps({
            "urn": str(urn),
            "namespace": urn.namespace,
            "entity_type": urn.entity_type,
            "key": list(urn.key),
        }, indent=2))
        return 0

    table = Table(title=str(urn))
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Namespace", urn.namespace)
    table.add_row("Entity type", urn.entity_type)
    for i, part in enumerate(urn.key):
        table.add_row(f"Key[{i}]", part)
    Console().print(table)
    return 0
