"""Exceptions for the package service layer.

These are raised between the HTTP transport and the public client methods;
the public surface converts them into "unavailable" results.
"""


class PackageServiceError(Exception):
    """Raised when the package service cannot be reached or answers badly."""
