"""Table rendering for bundle listings."""

from rich.console import Console
from rich.table import Table

from carti.core.bundle import Bundle


def bundle_table(entries: dict[str, list[Bundle]], location_header: str) -> Table:
    """Build a table with one row per bundle record.

    Args:
        entries: Listing entries keyed by bundle name
        location_header: "path" for local bundles, "uri" for remote ones
    """
    table = Table(show_header=True, header_style="bold")
    table.add_column("name", style="cyan", no_wrap=True)
    table.add_column("version", no_wrap=True)
    table.add_column("type", no_wrap=True)
    table.add_column("id", style="dim", no_wrap=True)
    table.add_column(location_header, overflow="fold")

    for name in sorted(entries):
        for bundle in entries[name]:
            location = bundle.path if location_header == "path" else bundle.uri
            table.add_row(
                bundle.name,
                bundle.version,
                bundle.bundle_type.value,
                bundle.id,
                location or "[dim]-[/dim]",
            )
    return table


def print_table(table: Table) -> None:
    # Output table to stderr (consistent with user_output convention)
    console = Console(stderr=True, width=200)
    console.print(table)
