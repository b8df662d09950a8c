"""
Exceptions used throughout HopLens
"""


class MTRError(Exception):
    """Base error for path discovery"""
    pass


class ResolveError(MTRError):
    """Raised when a name or address cannot be resolved"""
    pass


class DiscoveryError(MTRError):
    """Raised when a discovery round fails unexpectedly"""

    def __init__(self, message: str, trace: str = ""):
        super().__init__(message)
        self.trace = trace

    def __str__(self):
        if self.trace:
            return f"{self.args[0]}\n{self.trace}"
        return self.args[0]
