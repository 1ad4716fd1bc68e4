"""Exception types raised by the results pipeline.

Every error aborts the current assembly pass. The HTTP layer collapses them
into one generic 500 response but logs the specific kind.
"""


class ArcheryError(Exception):
    """Base class for pipeline failures."""


class UpstreamFetchError(ArcheryError):
    """Upstream request failed, returned non-2xx, or returned unusable JSON."""

    def __init__(self, message: str, url: str | None = None, status: int | None = None):
        super().__init__(message)
        self.url = url
        self.status = status


class DecodeError(ArcheryError):
    """Scoring string contains a character that is not a digit, ``M`` or ``T``."""

    def __init__(self, arrows: str, position: int):
        char = arrows[position]
        super().__init__(f"Invalid arrow {char!r} at position {position} in {arrows!r}")
        self.arrows = arrows
        self.position = position


class IdentifierResolutionError(ArcheryError):
    """Event-local id cannot be reconciled with a stable archer id."""


class RegistryConsistencyError(ArcheryError):
    """Assembled view references data missing from the archer registry."""


__all__ = [
    "ArcheryError",
    "UpstreamFetchError",
    "DecodeError",
    "IdentifierResolutionError",
    "RegistryConsistencyError",
]
