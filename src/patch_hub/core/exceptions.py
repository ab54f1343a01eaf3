"""Exceptions for configuration, integrity and execution operations."""


class PatchHubError(Exception):
    """Base exception for all core operations."""


class ConfigurationError(PatchHubError):
    """Raised when configuration data is structurally invalid."""


class WorkspaceLoadError(ConfigurationError):
    """Raised when the workspace file cannot be read or parsed."""


class UnknownConfigurationError(ConfigurationError):
    """Raised when a configuration name is not defined in the workspace."""


class IntegrityError(PatchHubError):
    """Base exception for digest operations."""


class SourceArtifactMissingError(IntegrityError):
    """Raised when digest generation is requested for a missing source artifact."""


class DigestComputationError(IntegrityError):
    """Raised when a source artifact cannot be read while hashing."""


class ExecutionError(PatchHubError):
    """Base exception for patch execution setup."""


class UnsupportedPlatformError(ExecutionError):
    """Raised when no patch utility build exists for the host platform."""
