from typing import List

from rich import box
from rich.table import Table

from ..domain.models import RankedEntry


def build_catalog_table(rows: List[RankedEntry]) -> Table:
    """the ranked catalog as a table of rank, stars, install status and source."""
    table = Table(box=box.ROUNDED)
    table.add_column("#", justify="right")
    table.add_column("Stars", justify="right", style="yellow")
    table.add_column("Installed", justify="center")
    table.add_column("Source", style="cyan", overflow="fold")

    for row in rows:
        installed = "[green]y[/green]" if row.installed else "n"
        table.add_row(str(row.rank), str(row.stars), installed, row.source_url)
    return table
