"""Project-specific exception types."""

from __future__ import annotations

from pathlib import Path


class WSLHostError(RuntimeError):
    """Base error for domain-level wslhost failures."""


class DiscoveryError(WSLHostError):
    """Raised when the virtual machine address cannot be determined."""


class LaunchError(DiscoveryError):
    """Raised when the address query command could not be started."""


class ExitStatusError(DiscoveryError):
    """Raised when the address query command exits non-zero."""

    def __init__(self, message: str, code: int):
        super().__init__(message)
        self.code = code


class EmptyOutputError(DiscoveryError):
    """Raised when the address query printed nothing usable."""


class MalformedAddressError(DiscoveryError):
    """Raised when the reported token is not an ``address/prefix`` pair."""


class HostsIOError(WSLHostError):
    """Raised when the hosts file cannot be read or written."""

    def __init__(self, message: str, path: str | Path, cause: BaseException | None = None):
        super().__init__(message)
        self.path = Path(path)
        self.cause = cause


class HostsReadError(HostsIOError):
    """Raised when the hosts file is missing or unreadable."""


class HostsWriteError(HostsIOError):
    """Raised when the hosts file cannot be written."""


class StateError(WSLHostError):
    """Raised on internal coordinator inconsistencies."""


class ConfigError(WSLHostError):
    """Raised when persisted settings or configuration values are invalid."""


class ElevationError(WSLHostError):
    """Raised when the privileged writer helper could not be launched."""
