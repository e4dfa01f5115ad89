"""Cycle Login: rotating five-code PIN login with license tracking."""

__version__ = "1.0.0"
