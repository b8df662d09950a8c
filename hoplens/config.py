"""
Run settings for HopLens
"""

from dataclasses import dataclass


@dataclass
class Settings:
    destination: str
    source: str = ""              # empty: wildcard of the destination's family
    timeout: float = 1.0          # per probe, seconds
    interval: float = 1.0         # pause between cycles, seconds
    hopsleep: float = 0.05        # pause before each probe, seconds
    max_hops: int = 30
    max_unknown_hops: int = 10    # reserved, not enforced yet
    ring_buffer_size: int = 50
    count: int = 3                # concurrent discovery rounds
    ptr_lookup: bool = True
