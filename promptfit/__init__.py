"""promptfit — token-budget prompt packing with adaptive truncation."""

__version__ = "0.1.0"
