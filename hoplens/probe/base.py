"""
Abstract base class for probe implementations
"""

from abc import ABC, abstractmethod
from ..models import ProbeResult


class BaseProbe(ABC):
    """Abstract base class for network probes"""

    @abstractmethod
    def probe(self, src: str, dest: str, ttl: int, ident: int,
              timeout: float, seq: int) -> ProbeResult:
        """
        Send one probe with given TTL and return result.

        Args:
            src: Source address to bind
            dest: Destination IP address (already resolved)
            ttl: Time-to-live value
            ident: Probe identifier
            timeout: Seconds to wait for a reply
            seq: Sequence number

        Returns:
            ProbeResult; success is False when nothing answered in time

        Raises:
            OSError: the probe could not be sent
        """
        pass

    def close(self):
        """Clean up resources"""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
