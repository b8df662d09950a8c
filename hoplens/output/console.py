"""
Rich console output for HopLens
"""

from typing import Optional
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.text import Text
from rich import box

from .. import __version__
from ..hop import UNKNOWN_HOST
from ..mtr import MTR


# Packet strip glyphs: (char, style)
PACKET_STYLES = {
    'ok': ('.', 'green'),
    'lost': ('?', 'bold red'),
    'empty': (' ', ''),
}


class ConsoleOutput:
    """
    Rich console output for MTR statistics.

    Features:
    - One table per cycle, one row per responding address
    - Loss colouring
    - Packet strip showing the ring buffer, oldest first
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_header(self, target: str, resolved_ip: str, max_hops: int,
                     rounds: int, ring_size: int):
        """Print run header"""
        content = Text()
        content.append("HopLens", style="bold cyan")
        content.append(f" v{__version__}\n", style="dim")
        content.append("Target: ", style="dim")
        content.append(target, style="bold")
        if target != resolved_ip:
            content.append(f" ({resolved_ip})", style="dim")
        content.append("\n")
        content.append(f"Rounds: {rounds}", style="dim")
        content.append(f"  |  Max hops: {max_hops}", style="dim")
        content.append(f"  |  Window: {ring_size} packets", style="dim")

        panel = Panel(content, border_style="cyan", padding=(0, 1))
        self.console.print(panel)
        self.console.print()

    def print_results(self, mtr: MTR, cycle: Optional[int] = None):
        """Print statistics table for every hop seen so far"""
        table = Table(
            show_header=True,
            header_style="bold magenta",
            box=box.ROUNDED,
            border_style="dim",
            padding=(0, 1)
        )

        table.add_column("#", style="dim", width=3, justify="right")
        table.add_column("Host", min_width=16, overflow="fold")
        table.add_column("Loss%", justify="right")
        table.add_column("Snt", justify="right")
        table.add_column("Last", justify="right")
        table.add_column("Avg", justify="right")
        table.add_column("Best", justify="right")
        table.add_column("Wrst", justify="right")
        table.add_column("StDev", justify="right")
        table.add_column("Packets", overflow="fold")

        for hop in mtr.snapshot():
            names = mtr.names(hop["ttl"]) or [UNKNOWN_HOST]

            table.add_row(
                str(hop["ttl"]),
                names[0],
                self._format_loss(hop["loss_percent"]),
                str(hop["sent"]),
                f"{hop['last_ms']:.1f}",
                f"{hop['avg_ms']:.1f}",
                f"{hop['best_ms']:.1f}",
                f"{hop['worst_ms']:.1f}",
                f"{hop['stdev_ms']:.1f}",
                self._format_packets(hop["packet_list_ms"]),
            )

            # Extra rows for load-balanced paths
            for name in names[1:]:
                table.add_row("", name, "", "", "", "", "", "", "", "")

        header = Text()
        header.append("Route to ", style="dim")
        header.append(mtr.address, style="bold")
        if cycle is not None:
            header.append(f"  (cycle {cycle})", style="dim")

        panel = Panel(table, title=header, border_style="blue", padding=(0, 0))
        self.console.print(panel)

    def print_error(self, message: str):
        """Print error message; tracebacks are printed verbatim"""
        content = Text()
        content.append("Error: ", style="bold red")
        content.append(message)
        self.console.print(content)

    def _format_loss(self, loss: float) -> Text:
        if loss == 0:
            style = "green"
        elif loss < 50:
            style = "yellow"
        else:
            style = "red"
        return Text(f"{loss:.1f}%", style=style)

    def _format_packets(self, packets: list[Optional[dict]]) -> Text:
        """One glyph per ring slot"""
        strip = Text()
        for packet in packets:
            if packet is None:
                key = 'empty'
            elif packet["success"]:
                key = 'ok'
            else:
                key = 'lost'
            char, style = PACKET_STYLES[key]
            strip.append(char, style=style)
        return strip
