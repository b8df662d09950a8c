"""
Data models for HopLens
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProbeResult:
    """Result of a single probe"""
    success: bool = False
    elapsed: float = 0.0  # seconds
    address: str = ""  # responder, empty if nobody answered
    seq: int = 0
    ident: int = 0

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed * 1000
