"""Seed Extension Operator: installs extension controllers on seed clusters."""

__version__ = "0.1.0"
