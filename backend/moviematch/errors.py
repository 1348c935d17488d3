class MovieMatchError(Exception):
    """Base class for errors raised by the game server."""


class PayloadError(MovieMatchError):
    """Client input was missing or malformed. The message is shown to the caller."""


class RegistryError(MovieMatchError):
    """An internal invariant was violated (duplicate player id, destroyed lobby, ...)."""
