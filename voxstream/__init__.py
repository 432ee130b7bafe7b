"""voxstream — streaming voice chat client core."""

__version__ = "0.1.0"
