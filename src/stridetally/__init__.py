"""stridetally: distance challenge progress accumulator."""

__version__ = "0.1.0"
