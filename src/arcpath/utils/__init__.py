"""Utilities shared across :mod:`arcpath`: logging, tabular output and plots."""
