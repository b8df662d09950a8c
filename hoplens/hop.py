"""
Per-hop statistics

A HopStatistic collects every probe sent at one TTL: counters, best/worst/last
results, a fixed-size ring of recent packets and the addresses that answered.
"""

import math
from typing import Callable, Optional

from .exceptions import ResolveError
from .models import ProbeResult
from .resolver import lookup_addr as default_lookup


UNKNOWN_HOST = "???"


def resolve_name(address: str, ptr_lookup: bool, cached: Optional[str] = None,
                 resolver: Callable[[str], list[str]] = default_lookup) -> str:
    """Name to show for address; lookup failures fall back to the address"""
    if not ptr_lookup:
        return address
    if cached is not None:
        return cached

    try:
        names = resolver(address)
    except ResolveError:
        names = []
    return names[0] if names else address


class PacketRing:
    """
    Fixed-capacity circular buffer of probe results.

    Empty slots hold None so the output always keeps its full width.
    """

    def __init__(self, size: int):
        if size < 1:
            raise ValueError(f"ring size must be positive, got {size}")
        self._slots: list[Optional[ProbeResult]] = [None] * size
        self._next = 0

    def __len__(self) -> int:
        return len(self._slots)

    def push(self, result: ProbeResult):
        """Store result in the next slot, overwriting the oldest"""
        self._slots[self._next] = result
        self._next = (self._next + 1) % len(self._slots)

    def ordered(self) -> list[Optional[ProbeResult]]:
        """Slots from oldest to newest"""
        return self._slots[self._next:] + self._slots[:self._next]


class HopStatistic:
    """
    Running statistics for a single TTL.

    Mutated only through merge(), with the owning MTR's lock held.
    """

    def __init__(self, ttl: int, ring_buffer_size: int):
        self.ttl = ttl
        self.ring_buffer_size = ring_buffer_size
        self.sent = 0
        self.lost = 0
        self.sum_elapsed = 0.0
        self.last: Optional[ProbeResult] = None
        self.best: Optional[ProbeResult] = None
        self.worst: Optional[ProbeResult] = None
        self.packets = PacketRing(ring_buffer_size)
        self.targets: list[str] = []
        self.dns_cache: dict[str, str] = {}
        # Set by the discovery round that merged last
        self.destination: Optional[str] = None
        self.ident: Optional[int] = None

    def merge(self, result: ProbeResult):
        """Fold one probe result into the statistics"""
        self.sent += 1
        self._add_target(result.address)
        self.packets.push(result)
        self.last = result

        if not result.success:
            self.lost += 1
            return

        self.sum_elapsed += result.elapsed

        if self.best is None or result.elapsed < self.best.elapsed:
            self.best = result
        if self.worst is None or result.elapsed > self.worst.elapsed:
            self.worst = result

    def _add_target(self, address: str):
        if address in self.targets:
            return

        if self.targets:
            # a known address beats the no-answer placeholder
            if not address:
                return
            self.targets = [t for t in self.targets if t]

        self.targets.append(address)

    def loss(self) -> float:
        """Loss percentage, 0 when nothing was sent"""
        if self.sent == 0:
            return 0.0
        return self.lost / self.sent * 100.0

    def avg(self) -> float:
        """Mean RTT in ms over every successful probe so far"""
        received = self.sent - self.lost
        if received == 0:
            return 0.0
        return self.sum_elapsed * 1000 / received

    def stdev(self) -> float:
        """
        Population standard deviation in ms.

        Only successful packets still in the ring count, measured
        against the all-time mean from avg().
        """
        avg = self.avg()
        total = 0.0
        n = 0

        for packet in self.packets.ordered():
            if packet is None or not packet.success:
                continue
            n += 1
            total += (packet.elapsed_ms - avg) ** 2

        if n == 0:
            return 0.0
        return math.sqrt(total / n)

    def packet_list(self) -> list[Optional[dict]]:
        """Ring contents, oldest first, exactly ring_buffer_size entries"""
        packets = []
        for packet in self.packets.ordered():
            if packet is None:
                packets.append(None)
            elif packet.success:
                packets.append({"success": True, "respond_ms": packet.elapsed_ms})
            else:
                packets.append({"success": False, "respond_ms": 0.0})
        return packets

    def target_display(self) -> str:
        return ", ".join(t or UNKNOWN_HOST for t in self.targets)

    def lookup_addr(self, ptr_lookup: bool, index: int,
                    resolver: Callable[[str], list[str]] = default_lookup) -> str:
        """
        Display name for the index-th responding address.

        Lookup failures fall back to the raw address. Every answer is
        cached by address, including raw addresses when ptr_lookup is off.
        """
        address = self.address_at(index)
        if address is None:
            return UNKNOWN_HOST

        name = resolve_name(address, ptr_lookup, self.dns_cache.get(address), resolver)
        self.dns_cache[address] = name
        return name

    def address_at(self, index: int) -> Optional[str]:
        """index-th responding address, None for the no-answer placeholder"""
        if index >= len(self.targets) or not self.targets[index]:
            return None
        return self.targets[index]

    def to_dict(self) -> dict:
        """Snapshot in the exported JSON shape"""
        return {
            "sent": self.sent,
            "target": self.target_display(),
            "last_ms": self.last.elapsed_ms if self.last else 0.0,
            "best_ms": self.best.elapsed_ms if self.best else 0.0,
            "worst_ms": self.worst.elapsed_ms if self.worst else 0.0,
            "loss_percent": self.loss(),
            "avg_ms": self.avg(),
            "stdev_ms": self.stdev(),
            "packet_buffer_size": self.ring_buffer_size,
            "ttl": self.ttl,
            "packet_list_ms": self.packet_list(),
        }
