"""Longitudinal ADaM derivations for clinical trial findings data."""

__version__ = "0.1.0"
