# tests/test_resolver.py
import dns.resolver
import pytest

from hoplens import resolver as resolver_module
from hoplens.exceptions import ResolveError
from hoplens.resolver import PTRResolver


class FakeRdata:
    def __init__(self, name):
        self.name = name

    def to_text(self):
        return self.name


def test_resolve_strips_trailing_dot(monkeypatch):
    ptr = PTRResolver(timeout=0.5)
    monkeypatch.setattr(ptr._resolver, "resolve_address",
                        lambda ip: [FakeRdata("dns.google."), FakeRdata("alt.example.")])
    assert ptr.resolve("8.8.8.8") == ["dns.google", "alt.example"]


def test_resolve_wraps_dns_errors(monkeypatch):
    ptr = PTRResolver(timeout=0.5)

    def nxdomain(ip):
        raise dns.resolver.NXDOMAIN()

    monkeypatch.setattr(ptr._resolver, "resolve_address", nxdomain)
    with pytest.raises(ResolveError):
        ptr.resolve("192.0.2.1")


def test_resolve_rejects_malformed_address():
    with pytest.raises(ResolveError):
        PTRResolver(timeout=0.5).resolve("not-an-ip")


def test_module_lookup_uses_shared_resolver(monkeypatch):
    class Stub:
        def resolve(self, ip):
            return [f"host-{ip}"]

    monkeypatch.setattr(resolver_module, "_default", Stub())
    assert resolver_module.lookup_addr("192.0.2.1") == ["host-192.0.2.1"]


def test_missing_resolver_configuration(monkeypatch):
    def no_config(*args, **kwargs):
        raise dns.resolver.NoResolverConfiguration("no nameservers")

    monkeypatch.setattr(dns.resolver, "Resolver", no_config)
    with pytest.raises(ResolveError):
        PTRResolver(timeout=0.5)


def test_hop_shows_address_without_resolver_configuration(monkeypatch):
    from hoplens.hop import HopStatistic
    from hoplens.models import ProbeResult

    def no_config(*args, **kwargs):
        raise dns.resolver.NoResolverConfiguration("no nameservers")

    monkeypatch.setattr(dns.resolver, "Resolver", no_config)
    monkeypatch.setattr(resolver_module, "_default", None)

    hop = HopStatistic(ttl=1, ring_buffer_size=2)
    hop.merge(ProbeResult(success=True, elapsed=0.01, address="192.0.2.1"))
    assert hop.lookup_addr(True, 0) == "192.0.2.1"
