# tests/fakes.py
import threading

from hoplens.models import ProbeResult
from hoplens.probe import BaseProbe


class FakeProbe(BaseProbe):
    """
    Deterministic transport: hop `ttl` answers from 10.0.0.<ttl> after
    `latency(ttl)` seconds, the destination answers at `dest_ttl`.
    Every call is recorded as (ttl, ident, seq).
    """

    def __init__(self, dest_ttl=None, latency=lambda ttl: 0.001 * ttl,
                 fail_ttls=(), error_ttls=()):
        self.dest_ttl = dest_ttl
        self.latency = latency
        self.fail_ttls = set(fail_ttls)
        self.error_ttls = set(error_ttls)
        self.calls = []
        self._lock = threading.Lock()

    def probe(self, src, dest, ttl, ident, timeout, seq):
        with self._lock:
            self.calls.append((ttl, ident, seq))
        if ttl in self.error_ttls:
            raise OSError("network is unreachable")
        if ttl in self.fail_ttls:
            return ProbeResult(success=False, elapsed=timeout, seq=seq, ident=ident)
        address = dest if ttl == self.dest_ttl else f"10.0.0.{ttl}"
        return ProbeResult(success=True, elapsed=self.latency(ttl),
                           address=address, seq=seq, ident=ident)


def ok(ms, address="10.0.0.1"):
    return ProbeResult(success=True, elapsed=ms / 1000, address=address)


def lost(address=""):
    return ProbeResult(success=False, elapsed=1.0, address=address)
