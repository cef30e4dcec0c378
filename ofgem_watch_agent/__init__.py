"""Ofgem publication watch agent."""

__version__ = "0.1.0"
