"""
HopLens - traceroute with per-hop latency statistics

Entry point for running as a module:
    python -m hoplens <target>
"""

from .cli import main

if __name__ == '__main__':
    main()
