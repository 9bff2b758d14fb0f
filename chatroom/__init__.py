"""Chat-room backend: participants, messages and presence eviction over MongoDB."""

__version__ = "1.0.0"
