class DukunganError(Exception):
    """Base for all domain errors; carries the HTTP status the API maps it to."""

    status_code = 500

    def __init__(self, message: str, detail: str = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class FormatError(DukunganError):
    """The static QRIS template is missing or malformed."""

    status_code = 500


class ConfigurationError(DukunganError):
    status_code = 500


class RemoteUnavailable(DukunganError):
    """Store or mutation API unreachable or answered non-2xx. Retryable."""

    status_code = 502


class VersionConflict(DukunganError):
    """The store file changed since it was read. Re-read and retry."""

    status_code = 409


class ValidationError(DukunganError):
    status_code = 400


class EntryNotFound(ValidationError):
    status_code = 404
