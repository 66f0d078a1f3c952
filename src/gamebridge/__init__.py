"""Off-chain bridge for the PlayGame wagering contracts."""

__version__ = "0.1.0"
