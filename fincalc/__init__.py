"""Calculator engine for arithmetic and time-value-of-money problems."""

__version__ = "0.1.0"
