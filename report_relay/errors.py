"""Error types raised by the relay."""


class RelayError(Exception):
    """Base class for relay errors."""


class ConfigError(RelayError):
    """Tenant configuration is missing or invalid."""


class TransportError(RelayError):
    """Source or backend unreachable, or answered with a non-success status."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class DetailNotFoundError(TransportError):
    """Detail fetch returned no record for the requested id."""

    def __init__(self, entity_id):
        super().__init__(f'No details for message "{entity_id}"')
        self.entity_id = entity_id


class PublishError(TransportError):
    """Publish backend rejected an upload or a status."""
