"""Starfall - a vertical arcade shooter"""

__version__ = "0.1.0"
