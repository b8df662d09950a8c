import logging
import sys
import os
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import Settings
from .exceptions import DiscoveryError, MTRError
from .mtr import MTR
from .output import ConsoleOutput, JsonExporter


console = Console()


def is_admin() -> bool:
    """Check if running as root; raw ICMP sockets need it"""
    if not hasattr(os, 'geteuid'):
        return False
    return os.geteuid() == 0


def setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.command()
@click.argument('target')
@click.option('--src', 'source', default='',
              help='Source address (default: wildcard for the target family)')
@click.option('-w', '--timeout', default=1.0, type=float,
              help='Timeout per probe in seconds (default: 1)')
@click.option('-i', '--interval', default=1.0, type=float,
              help='Pause between cycles in seconds (default: 1)')
@click.option('--hopsleep', default=0.05, type=float,
              help='Pause before each probe in seconds (default: 0.05)')
@click.option('-m', '--max-hops', default=30, type=click.IntRange(2, 255),
              help='Maximum hops (default: 30)')
@click.option('--max-unknown-hops', default=10, type=int,
              help='Consecutive silent hops tolerated (default: 10)')
@click.option('-b', '--ring-buffer-size', default=50, type=click.IntRange(min=1),
              help='Packets kept per hop for deviation and history (default: 50)')
@click.option('-n', '--count', default=3, type=click.IntRange(min=1),
              help='Concurrent discovery rounds per cycle (default: 3)')
@click.option('-c', '--cycles', default=1, type=click.IntRange(min=1),
              help='Number of cycles to run (default: 1)')
@click.option('--dns/--no-dns', default=True,
              help='Enable/disable PTR lookups (default: enabled)')
@click.option('--json', 'json_path', type=click.Path(),
              help='Export results to JSON file')
@click.option('-v', '--verbose', is_flag=True,
              help='Log every probe')
@click.version_option(version=__version__)
def main(target: str, source: str, timeout: float, interval: float,
         hopsleep: float, max_hops: int, max_unknown_hops: int,
         ring_buffer_size: int, count: int, cycles: int, dns: bool,
         json_path: Optional[str], verbose: bool):
    """
    HopLens - traceroute with per-hop latency statistics.

    Probe every hop toward TARGET (IP address or hostname) with several
    concurrent rounds and report loss, latency and jitter per hop.

    Examples:

        hoplens 8.8.8.8

        hoplens example.com -c 10 -n 5

        hoplens 1.1.1.1 --json output.json
    """
    setup_logging(verbose)

    if not is_admin():
        console.print(
            "[bold red]Error:[/] Root privileges required.\n"
            "[dim]Please run with sudo.[/]"
        )
        sys.exit(1)

    output = ConsoleOutput(console)
    settings = Settings(
        destination=target,
        source=source,
        timeout=timeout,
        interval=interval,
        hopsleep=hopsleep,
        max_hops=max_hops,
        max_unknown_hops=max_unknown_hops,
        ring_buffer_size=ring_buffer_size,
        count=count,
        ptr_lookup=dns,
    )

    try:
        mtr = MTR.from_config(settings)
    except MTRError as e:
        output.print_error(str(e))
        sys.exit(1)

    output.print_header(
        target=target,
        resolved_ip=mtr.address,
        max_hops=max_hops,
        rounds=count,
        ring_size=ring_buffer_size
    )

    try:
        mtr.run_cycles(cycles, on_cycle=lambda cycle: output.print_results(mtr, cycle))
    except DiscoveryError as e:
        output.print_error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/]")
        output.print_results(mtr)
        sys.exit(130)

    if json_path:
        exporter = JsonExporter()
        json_file = Path(json_path)
        exporter.export(mtr, json_file)
        console.print(f"\n[dim]Results exported to:[/] {json_file.absolute()}")


if __name__ == '__main__':
    main()
