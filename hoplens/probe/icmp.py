"""
ICMP probe implementation over raw sockets (Linux/macOS)

- IPv4: ICMP Echo Request, replies carry the IP header
- IPv6: ICMPv6 Echo Request, the kernel fills in the checksum
"""

import socket
import struct
import time
from typing import Optional

from ..models import ProbeResult
from .base import BaseProbe


def create_probe(version: int) -> BaseProbe:
    """Factory function to create the probe matching an IP version"""
    if version == 6:
        return ICMPv6Probe()
    return ICMPProbe()


def checksum(data: bytes) -> int:
    """Calculate ICMP checksum (RFC 1071)"""
    if len(data) % 2:
        data += b'\x00'

    s = 0
    for i in range(0, len(data), 2):
        w = (data[i] << 8) + data[i + 1]
        s += w

    s = (s >> 16) + (s & 0xFFFF)
    s += s >> 16
    return ~s & 0xFFFF


class _RawICMPProbe(BaseProbe):
    """
    Shared send/receive loop for both address families.

    Subclasses set the ICMP type numbers and know how to open the
    socket and where the ICMP message starts in a received datagram.
    """

    ECHO_REQUEST = 8
    ECHO_REPLY = 0
    TIME_EXCEEDED = 11
    DEST_UNREACHABLE = 3

    def _open_socket(self, src: str, ttl: int) -> socket.socket:
        raise NotImplementedError

    def _icmp_message(self, data: bytes) -> Optional[bytes]:
        raise NotImplementedError

    def _inner_header(self, icmp_data: bytes) -> Optional[bytes]:
        raise NotImplementedError

    def _checksum(self, packet: bytes) -> int:
        return checksum(packet)

    def _build_packet(self, ident: int, seq: int) -> bytes:
        """Build ICMP Echo Request packet"""
        payload = struct.pack('!d', time.time())
        header = struct.pack('!BBHHH', self.ECHO_REQUEST, 0, 0, ident, seq)
        cs = self._checksum(header + payload)
        header = struct.pack('!BBHHH', self.ECHO_REQUEST, 0, cs, ident, seq)
        return header + payload

    def probe(self, src: str, dest: str, ttl: int, ident: int,
              timeout: float, seq: int) -> ProbeResult:
        """Send an Echo Request with given TTL"""
        ident &= 0xFFFF
        seq &= 0xFFFF
        failed = ProbeResult(success=False, elapsed=timeout, seq=seq, ident=ident)

        with self._open_socket(src, ttl) as sock:
            packet = self._build_packet(ident, seq)
            send_time = time.perf_counter()
            sock.sendto(packet, (dest, 0))

            deadline = send_time + timeout

            while True:
                remaining = deadline - time.perf_counter()
                if remaining <= 0:
                    return failed

                sock.settimeout(remaining)

                try:
                    data, addr = sock.recvfrom(1500)
                    recv_time = time.perf_counter()
                except socket.timeout:
                    return failed

                if self._matches(data, ident, seq):
                    return ProbeResult(
                        success=True,
                        elapsed=recv_time - send_time,
                        address=addr[0],
                        seq=seq,
                        ident=ident,
                    )

    def _matches(self, data: bytes, ident: int, seq: int) -> bool:
        """Check if a received datagram answers our probe"""
        icmp_data = self._icmp_message(data)
        if icmp_data is None or len(icmp_data) < 8:
            return False

        icmp_type = icmp_data[0]

        if icmp_type == self.ECHO_REPLY:
            header = icmp_data[:8]
        elif icmp_type in (self.TIME_EXCEEDED, self.DEST_UNREACHABLE):
            header = self._inner_header(icmp_data)
            if header is None or header[0] != self.ECHO_REQUEST:
                return False
        else:
            return False

        got_ident, got_seq = struct.unpack('!HH', header[4:8])
        return got_ident == ident and got_seq == seq


class ICMPProbe(_RawICMPProbe):
    """IPv4 ICMP probe; raw socket datagrams include the IP header"""

    def _open_socket(self, src: str, ttl: int) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_ICMP)
        try:
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_TTL, ttl)
            sock.bind((src, 0))
        except OSError:
            sock.close()
            raise
        return sock

    def _icmp_message(self, data: bytes) -> Optional[bytes]:
        if len(data) < 20:
            return None
        ip_header_len = (data[0] & 0x0F) * 4
        return data[ip_header_len:]

    def _inner_header(self, icmp_data: bytes) -> Optional[bytes]:
        # 8 bytes of ICMP header, then the original IP header and 8 bytes
        if len(icmp_data) < 36:
            return None
        inner_ip_header_len = (icmp_data[8] & 0x0F) * 4
        start = 8 + inner_ip_header_len
        inner = icmp_data[start:start + 8]
        return inner if len(inner) == 8 else None


class ICMPv6Probe(_RawICMPProbe):
    """IPv6 ICMP probe; datagrams start at the ICMPv6 header"""

    ECHO_REQUEST = 128
    ECHO_REPLY = 129
    TIME_EXCEEDED = 3
    DEST_UNREACHABLE = 1

    IPV6_HEADER_LEN = 40

    def _open_socket(self, src: str, ttl: int) -> socket.socket:
        sock = socket.socket(socket.AF_INET6, socket.SOCK_RAW, socket.IPPROTO_ICMPV6)
        try:
            sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_UNICAST_HOPS, ttl)
            sock.bind((src, 0))
        except OSError:
            sock.close()
            raise
        return sock

    def _checksum(self, packet: bytes) -> int:
        # computed by the kernel over the pseudo-header
        return 0

    def _icmp_message(self, data: bytes) -> Optional[bytes]:
        return data

    def _inner_header(self, icmp_data: bytes) -> Optional[bytes]:
        start = 8 + self.IPV6_HEADER_LEN
        inner = icmp_data[start:start + 8]
        return inner if len(inner) == 8 else None
