#!/usr/bin/env python3
"""
Standalone SMART report.
Runs one smartctl collection cycle, locally or on a remote host over SSH,
prints a summary table and saves the results to a JSON file.

Configuration comes from SMART_COLLECTOR_* environment variables, e.g.
SMART_COLLECTOR_EXECUTOR=ssh SMART_COLLECTOR_HOST=nas.local.
Set SMART_REPORT_RAW=1 to save smartctl's own JSON instead of parsed records.
"""

import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.markup import escape
from rich import box

from smart_collector import SmartCollector, SmartCollectorError, config_from_env
from smart_collector.discovery import disk_map, disk_type, strip_dev_prefix
from smart_collector.models import SmartResults

logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
_LOGGER = logging.getLogger("smart_report")

rich_console = Console()


def results_to_data(results: SmartResults, host: str) -> Dict[str, Any]:
    """Convert collection results to a JSON-serializable report."""
    data: Dict[str, Any] = {
        "collection_time": datetime.now().isoformat(),
        "host": host,
    }
    if results.raw_output:
        data["disks"] = disk_map(results.json_devices)
    else:
        data["disks"] = [asdict(record) for record in results.devices]
    return data


def build_table(results: SmartResults) -> Table:
    """Build the summary table for parsed results."""
    table = Table(
        title="[bold white on blue] SMART Summary [/bold white on blue]",
        show_header=True,
        header_style="bold magenta",
        border_style="blue",
        box=box.ROUNDED
    )

    table.add_column("Device", style="cyan")
    table.add_column("Type", justify="center")
    table.add_column("Model")
    table.add_column("Serial")
    table.add_column("Health", justify="center")

    for record in sorted(results.devices, key=lambda r: r.info.name):
        passed = record.smart_status.passed if record.smart_status else False
        table.add_row(
            strip_dev_prefix(record.info.name),
            disk_type(record),
            record.model_name or "-",
            record.serial_number or "-",
            "[green]PASSED[/green]" if passed else "[red]FAILED[/red]"
        )
    return table


def save_to_file(data: Dict[str, Any], filename: Optional[str] = None) -> str:
    """Save the report to a JSON file."""
    if not filename:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"smart_data_{data['host']}_{timestamp}.json"

    with open(filename, "w") as f:
        json.dump(data, f, indent=2)

    _LOGGER.info("Data saved to %s", filename)
    return filename


async def run_report(environ=None) -> str:
    """Run the report and return the saved file name."""
    environ = os.environ if environ is None else environ
    raw_output = environ.get("SMART_REPORT_RAW", "") in ("1", "true", "yes")

    config = config_from_env(environ)
    host = config.host if config.is_remote else "localhost"

    async with SmartCollector(config) as collector:
        with rich_console.status("[bold blue]Collecting SMART data..."):
            results = await collector.collect(raw_output=raw_output)

    if not raw_output:
        rich_console.print(build_table(results))

    filename = save_to_file(results_to_data(results, host), environ.get("SMART_REPORT_FILE"))
    rich_console.print(Panel.fit(
        f"[bold green]{len(results)} devices collected[/bold green]\n\n"
        f"[yellow]Results saved to:[/yellow] {escape(filename)}",
        border_style="green",
        title="[white on green] SUCCESS [/white on green]"
    ))
    return filename


def main() -> int:
    try:
        asyncio.run(run_report())
    except SmartCollectorError as err:
        rich_console.print(Panel.fit(
            f"[bold red]Error collecting SMART data:[/bold red]\n\n{escape(str(err))}",
            border_style="red",
            title="[white on red] ERROR [/white on red]"
        ))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
