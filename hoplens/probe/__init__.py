"""
Probe transports for HopLens
"""

from .base import BaseProbe
from .icmp import ICMPProbe, ICMPv6Probe, create_probe

__all__ = ['BaseProbe', 'ICMPProbe', 'ICMPv6Probe', 'create_probe']
