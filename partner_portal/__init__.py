"""Partner Portal PDF Service - proposal document composition and export."""

__version__ = "1.0.0"
