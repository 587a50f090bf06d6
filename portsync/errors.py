"""
Exception hierarchy for port synchronization.

Custom exceptions:
- PortSyncError: Base exception for all port sync errors
- TransportError: Raised when an HTTP request could not be performed
- DecodeError: Raised when a port payload or preferences body is malformed
- BadResponseError: Raised when a server answers with a non-200 status
- LoginFailedError: Raised when qBittorrent rejects the credentials
- PortDiscoveryError: Raised when both the gluetun API and the port file fail
- ConfigError: Raised when settings are invalid
- BootstrapError: Raised when the initial login cannot be completed
"""

from typing import Optional


class PortSyncError(Exception):
    """Base exception for port sync errors."""
    pass


class TransportError(PortSyncError):
    """Raised when a request fails before a response is received."""
    pass


class DecodeError(PortSyncError):
    """Raised when a JSON payload cannot be decoded into the expected shape."""
    pass


class BadResponseError(PortSyncError):
    """Raised when a response has a status other than 200 OK."""

    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"bad response: {status_code} {reason}".rstrip())

    @property
    def is_unauthorized(self) -> bool:
        """qBittorrent answers 403 once the session cookie has expired."""
        return self.status_code in (401, 403)


class LoginFailedError(PortSyncError):
    """Raised when the login endpoint answers 200 without the success body."""

    def __init__(self, message: str = "login failed"):
        super().__init__(message)


class PortDiscoveryError(PortSyncError):
    """Raised when both port sources were attempted and both failed."""

    def __init__(self, api_error: Optional[Exception], file_error: Optional[Exception]):
        self.api_error = api_error
        self.file_error = file_error
        parts = []
        if api_error is not None:
            parts.append(f"gluetun api: {api_error}")
        if file_error is not None:
            parts.append(f"port file: {file_error}")
        super().__init__("; ".join(parts) or "no port source available")


class ConfigError(PortSyncError):
    """Raised when settings fail validation."""
    pass


class BootstrapError(PortSyncError):
    """Raised when logging in to qBittorrent fails fatally."""

    def __init__(self, cause: Exception, attempts: int = 1):
        self.cause = cause
        self.attempts = attempts
        super().__init__(f"Cannot connect to qbittorrent: {cause}")
