"""
HopLens - traceroute with per-hop latency statistics

Runs several concurrent discovery rounds toward a destination and keeps,
for every TTL, loss, mean, deviation and a sliding window of recent
packets.
"""

__version__ = "1.0.0"
__author__ = "HopLens"
