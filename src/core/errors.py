"""
Error taxonomy for the telemetry ingestion path.

Every error carries a single-line, human-readable message. The route
handler returns that message as the response body, so messages must
never contain stack traces or internal identifiers.
"""


class TelemetryServiceError(Exception):
    """Base class for all telemetry service errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RequestDecodeError(TelemetryServiceError):
    """Raised when the inbound request body cannot be decoded."""
    pass


class ConfigurationError(TelemetryServiceError):
    """Raised when required upload settings are missing."""
    pass


class SecretResolutionError(TelemetryServiceError):
    """Raised when a secret cannot be read from the secret store."""
    pass


class SecretNotFound(SecretResolutionError):
    """The referenced secret does not exist."""
    pass


class SecretStoreUnavailable(SecretResolutionError):
    """The secret store itself could not be reached or read."""
    pass


class ClientConstructionError(TelemetryServiceError):
    """Raised when an object store client cannot be built."""
    pass


class MissingCredentialsError(ClientConstructionError):
    """Access id or access key is missing at client construction time."""
    pass


class StagingIOError(TelemetryServiceError):
    """Raised when the local staging file cannot be created, written or read."""
    pass


class RemoteUploadError(TelemetryServiceError):
    """Raised when the object store rejects or fails the put operation."""
    pass
