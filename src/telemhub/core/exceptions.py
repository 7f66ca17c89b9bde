"""Exception hierarchy for telemhub."""


class TelemhubError(Exception):
    """Base exception for all telemhub errors."""


class ConfigError(TelemhubError):
    """Invalid or missing configuration."""


class QueryValidationError(TelemhubError, ValueError):
    """Malformed query parameters or an ambiguous parameter combination."""


class UnknownChannelError(TelemhubError, KeyError):
    """No channel registered under the requested id."""

    def __init__(self, channel_id: str):
        self.channel_id = channel_id
        super().__init__(channel_id)

    def __str__(self) -> str:
        return f"unknown channel {self.channel_id}"


class TransportError(TelemhubError):
    """A message could not be handed to the broker."""
