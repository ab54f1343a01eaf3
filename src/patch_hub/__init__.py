"""Batch binary patching of source artifacts with dependency ordering."""

__version__ = "0.1.0"
