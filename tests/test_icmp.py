# tests/test_icmp.py
import struct

from hoplens.probe import ICMPProbe, ICMPv6Probe, create_probe
from hoplens.probe.icmp import checksum


IPV4_HEADER = bytes([0x45]) + bytes(19)
IPV6_HEADER = bytes([0x60]) + bytes(39)


def icmp(icmp_type, ident=0, seq=0):
    return struct.pack('!BBHHH', icmp_type, 0, 0, ident, seq)


def test_factory_picks_family():
    assert isinstance(create_probe(4), ICMPProbe)
    assert isinstance(create_probe(6), ICMPv6Probe)


def test_checksum_verifies():
    packet = ICMPProbe()._build_packet(ident=0x1234, seq=7)
    assert checksum(packet) == 0


def test_v6_leaves_checksum_to_kernel():
    packet = ICMPv6Probe()._build_packet(ident=1, seq=2)
    assert packet[0] == 128
    assert packet[2:4] == b'\x00\x00'


def test_v4_echo_reply_matches_ident_and_seq():
    probe = ICMPProbe()
    reply = IPV4_HEADER + icmp(0, 0x1234, 7)
    assert probe._matches(reply, 0x1234, 7)
    assert not probe._matches(reply, 0x1234, 8)
    assert not probe._matches(reply, 0x4321, 7)


def test_v4_time_exceeded_matches_embedded_request():
    probe = ICMPProbe()
    outer = IPV4_HEADER + icmp(11) + IPV4_HEADER + icmp(8, 0x1234, 7)
    assert probe._matches(outer, 0x1234, 7)
    assert not probe._matches(outer, 0x1234, 6)


def test_v4_ignores_short_and_foreign_packets():
    probe = ICMPProbe()
    assert not probe._matches(b'\x45\x00', 1, 1)
    assert not probe._matches(IPV4_HEADER + icmp(11), 1, 1)
    assert not probe._matches(IPV4_HEADER + icmp(5, 1, 1), 1, 1)


def test_v6_time_exceeded_matches_embedded_request():
    probe = ICMPv6Probe()
    outer = icmp(3) + IPV6_HEADER + icmp(128, 9, 10)
    assert probe._matches(outer, 9, 10)
    assert probe._matches(icmp(129, 9, 10), 9, 10)
    assert not probe._matches(icmp(129, 9, 11), 9, 10)
