"""Command line entry point for mirro."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console

from . import __version__
from .config import Configuration, get_cache_dir, load_configuration
from .errors import MirroError
from .export import write_mirrorlist
from .types import ExportSort, Filter, ViewSort

LOG_FILENAME = "mirro.log"

console = Console(highlight=False)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="mirro",
        description="Pick Arch Linux mirrors from an interactive dashboard.",
        epilog=(
            "Keys: j/k move · ↵ select country · esc search · "
            "F2-F5 filters · 1/2 sort · F1 help · q quit"
        ),
    )
    parser.add_argument("--version", action="version", version=f"mirro {__version__}")
    parser.add_argument("-o", "--outfile", type=Path, help="File to write mirrors to")
    parser.add_argument(
        "-e", "--export", type=int, help="Number of mirrors to export [default: 50]"
    )
    parser.add_argument(
        "-f",
        "--filters",
        action="append",
        choices=[f.value for f in Filter],
        help="Filters to use on mirrorlists (repeatable)",
    )
    parser.add_argument(
        "-v", "--view", choices=[v.value for v in ViewSort], help="An order to view all countries"
    )
    parser.add_argument(
        "-s", "--sort", choices=[s.value for s in ExportSort], help="Default sort for exported mirrors"
    )
    parser.add_argument(
        "-c",
        "--country",
        dest="countries",
        action="append",
        help="Countries to search for mirrorlists (repeatable)",
    )
    parser.add_argument("-t", "--ttl", type=int, help="Number of hours to cache mirrorlist for")
    parser.add_argument("-u", "--url", help="URL to check for mirrors")
    parser.add_argument(
        "--config",
        type=Path,
        help="Specify alternate configuration file [default: $XDG_CONFIG_HOME/mirro/mirro.yaml]",
    )
    parser.add_argument("--debug", action="store_true", default=None, help="Verbose logging")
    return parser


def configuration_from_args(args: argparse.Namespace) -> Configuration:
    """Merge parsed arguments over the config file."""
    overrides = {
        "outfile": str(args.outfile) if args.outfile else None,
        "export": args.export,
        "filters": args.filters,
        "view": args.view,
        "sort": args.sort,
        "countries": args.countries,
        "cache-ttl": args.ttl,
        "url": args.url,
        "debug": args.debug,
    }
    return load_configuration(args.config, overrides)


def configure_logging(debug: bool = False, log_dir: Path | None = None) -> Path:
    """Send logs to a file; the terminal belongs to the dashboard."""
    log_dir = log_dir or get_cache_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILENAME
    handler = logging.FileHandler(log_path)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger("mirro")
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    return log_path


def main(argv: list[str] | None = None) -> None:
    """mirro main entry point."""
    from .runtime import Dashboard

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        configuration = configuration_from_args(args)
        configure_logging(configuration.debug)
        state = Dashboard(configuration, console=console).run()
    except KeyboardInterrupt:
        print()
        sys.exit(130)
    except (MirroError, OSError) as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if not state.selection:
        console.print("[dim]No countries selected, nothing exported.[/dim]")
        return

    export = state.export
    try:
        written = write_mirrorlist(export.outfile, state.selection, export.order, export.limit)
    except OSError as e:
        console.print(f"[red]Error:[/red] could not write {export.outfile}: {e}")
        sys.exit(1)
    console.print(
        f"[green]✓[/green] Wrote {written} mirror(s) from "
        f"{len(state.selection.countries())} country(ies) to {export.outfile}"
    )
