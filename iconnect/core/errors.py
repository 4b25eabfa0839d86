"""Domain-specific errors for iconnect."""


class IConnectError(Exception):
    """Base error for iconnect."""


class ProfileValidationError(IConnectError):
    """Raised when a profile file does not conform to schema or semantics."""


class ProfileLoadError(IConnectError):
    """Raised when loading profile sources fails."""


class ConfigError(IConnectError):
    """Raised when the configuration file is unreadable or invalid."""


class ToolError(IConnectError):
    """Base error for external tool invocations."""


class ToolUnavailableError(ToolError):
    """Raised when an external tool cannot be found or spawned."""


class ToolFailedError(ToolError):
    """Raised when an external tool ran but did not complete usefully."""


class DirectoryUnavailableError(IConnectError):
    """Raised when the paired-device directory cannot be enumerated."""


class NoCandidateError(IConnectError):
    """Raised when no paired device satisfies the selection policy."""
