"""Sanaee: a local directory of tradespeople (carpenters, plumbers, electricians, mechanics)."""

__version__ = "1.0.0"
