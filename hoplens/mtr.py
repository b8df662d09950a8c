"""
Multi-round path discovery

MTR runs several discovery rounds at once. Each round sweeps TTLs upward
toward the destination and merges every probe result into a shared
per-TTL HopStatistic.
"""

import ipaddress
import itertools
import logging
import random
import secrets
import socket
import threading
import time
import traceback
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from .config import Settings
from .exceptions import DiscoveryError, MTRError, ResolveError
from .hop import UNKNOWN_HOST, HopStatistic, resolve_name
from .models import ProbeResult
from .probe import BaseProbe, create_probe
from .resolver import lookup_addr as default_lookup


logger = logging.getLogger(__name__)

# Mixed with a per-MTR counter so every round gets its own generator
_PROCESS_SEED = secrets.randbits(64)


def resolve_destination(address: str) -> str:
    """Canonical form of a literal IP, else the first resolved address"""
    try:
        return str(ipaddress.ip_address(address))
    except ValueError:
        pass

    try:
        infos = socket.getaddrinfo(address, None, proto=socket.IPPROTO_TCP)
    except (socket.gaierror, UnicodeError) as e:
        raise ResolveError(f"invalid host or ip provided: {address}: {e}") from e

    if not infos:
        raise ResolveError(f"invalid host or ip provided: {address}: no addresses")

    return infos[0][4][0]


class MTR:
    """
    Concurrent traceroute with per-hop statistics.

    All access to the statistic map goes through one lock; probes are
    sent outside of it.
    """

    def __init__(
        self,
        address: str,
        src_address: str = "",
        timeout: float = 1.0,
        interval: float = 1.0,
        hopsleep: float = 0.05,
        max_hops: int = 30,
        max_unknown_hops: int = 10,
        ring_buffer_size: int = 50,
        count: int = 3,
        ptr_lookup: bool = True,
        transport: Optional[BaseProbe] = None,
        resolver: Optional[Callable[[str], list[str]]] = None,
    ):
        if count < 1:
            raise MTRError(f"count must be at least 1, got {count}")
        if ring_buffer_size < 1:
            raise MTRError(f"ring_buffer_size must be at least 1, got {ring_buffer_size}")
        if max_hops < 2:
            raise MTRError(f"max_hops must be at least 2, got {max_hops}")

        self.address = resolve_destination(address)
        version = ipaddress.ip_address(self.address).version

        if not src_address:
            src_address = "0.0.0.0" if version == 4 else "::"

        self.src_address = src_address
        self.timeout = timeout
        self.interval = interval
        self.hopsleep = hopsleep
        self.max_hops = max_hops
        self.max_unknown_hops = max_unknown_hops
        self.ring_buffer_size = ring_buffer_size
        self.count = count
        self.ptr_lookup = ptr_lookup
        self.statistic: dict[int, HopStatistic] = {}

        self._transport = transport or create_probe(version)
        self._resolver = resolver or default_lookup
        self._lock = threading.Lock()
        self._rounds = itertools.count()

    @classmethod
    def from_config(cls, settings: Settings,
                    transport: Optional[BaseProbe] = None,
                    resolver: Optional[Callable[[str], list[str]]] = None) -> 'MTR':
        """
        Build an MTR from settings.

        Raises:
            MTRError: a setting is out of range, the destination does not
                resolve, or construction failed unexpectedly (the message
                carries the traceback)
        """
        try:
            return cls(
                settings.destination,
                src_address=settings.source,
                timeout=settings.timeout,
                interval=settings.interval,
                hopsleep=settings.hopsleep,
                max_hops=settings.max_hops,
                max_unknown_hops=settings.max_unknown_hops,
                ring_buffer_size=settings.ring_buffer_size,
                count=settings.count,
                ptr_lookup=settings.ptr_lookup,
                transport=transport,
                resolver=resolver,
            )
        except MTRError:
            raise
        except Exception as e:
            logger.exception("failed to create MTR for %s", settings.destination)
            raise MTRError(
                f"failed to create MTR: {e}\n{traceback.format_exc()}"
            ) from e

    def _register_statistic(self, ttl: int, result: ProbeResult) -> HopStatistic:
        """Merge result into the record for ttl, creating it on first use"""
        hop = self.statistic.get(ttl)
        if hop is None:
            hop = HopStatistic(ttl, self.ring_buffer_size)
            self.statistic[ttl] = hop
        hop.merge(result)
        return hop

    def run(self):
        """
        Run `count` discovery rounds concurrently and wait for all of them.

        Raises:
            DiscoveryError: a round failed; the first failure is reported
                once every round has finished
        """
        first_error: Optional[DiscoveryError] = None

        with ThreadPoolExecutor(max_workers=self.count,
                                thread_name_prefix="discover") as executor:
            futures = [executor.submit(self.discover) for _ in range(self.count)]

            for future in futures:
                try:
                    future.result()
                except Exception as e:
                    logger.error("discover failed: %s", e)
                    if first_error is None:
                        trace = ''.join(traceback.format_exception(
                            type(e), e, e.__traceback__))
                        first_error = DiscoveryError(
                            f"discovery round failed: {e}", trace)

        if first_error is not None:
            raise first_error

    def run_cycles(self, cycles: int,
                   on_cycle: Optional[Callable[[int], None]] = None):
        """
        Repeat run() `cycles` times, pausing `interval` between them.

        Args:
            cycles: Number of runs
            on_cycle: Optional callback with the 1-based cycle number
        """
        for cycle in range(1, cycles + 1):
            self.run()
            if on_cycle:
                on_cycle(cycle)
            if cycle < cycles:
                time.sleep(self.interval)

    def discover(self):
        """Sweep TTLs from 1 upward until the destination answers"""
        with self._lock:
            round_no = next(self._rounds)
        rng = random.Random(_PROCESS_SEED ^ round_no)
        seq = rng.randrange(0xFFFF)
        ident = rng.randrange(0xFFFF)

        for ttl in range(1, self.max_hops):
            seq = (seq + 1) & 0xFFFF
            time.sleep(self.hopsleep)

            try:
                result = self._transport.probe(
                    self.src_address, self.address, ttl, ident, self.timeout, seq)
            except OSError as e:
                logger.debug("probe ttl=%d seq=%d failed: %s", ttl, seq, e)
                result = ProbeResult(success=False, seq=seq, ident=ident)

            with self._lock:
                hop = self._register_statistic(ttl, result)
                hop.destination = self.address
                hop.ident = ident

            logger.debug("ttl=%d seq=%d success=%s address=%s",
                         ttl, seq, result.success, result.address or "*")

            if result.address == self.address:
                logger.info("reached %s at ttl %d", self.address, ttl)
                break

    def lookup_addr(self, ttl: int, index: int) -> str:
        """
        Display name of the index-th address seen at ttl.

        The reverse lookup runs outside the lock so rounds keep merging
        while it waits on the network.
        """
        with self._lock:
            hop = self.statistic.get(ttl)
            address = hop.address_at(index) if hop else None
            if address is None:
                return UNKNOWN_HOST
            cached = hop.dns_cache.get(address)

        name = resolve_name(address, self.ptr_lookup, cached, self._resolver)

        with self._lock:
            hop.dns_cache[address] = name
        return name

    def names(self, ttl: int) -> list[str]:
        """Display names of every address seen at ttl, in first-seen order"""
        with self._lock:
            hop = self.statistic.get(ttl)
            count = len(hop.targets) if hop else 0
        return [self.lookup_addr(ttl, i) for i in range(count)]

    def snapshot(self) -> list[dict]:
        """Consistent copy of every hop, ordered by TTL"""
        with self._lock:
            return [self.statistic[ttl].to_dict() for ttl in sorted(self.statistic)]

    def to_dict(self) -> dict:
        hops = self.snapshot()
        return {
            "source": self.src_address,
            "destination": self.address,
            "statistic": {str(hop["ttl"]): hop for hop in hops},
        }
