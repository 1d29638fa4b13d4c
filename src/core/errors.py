"""Error hierarchy shared by every layer.

Components raise these with a short context prefix and chain the cause;
only the CLI decides how they are printed and which exit code they map to.
"""

from __future__ import annotations


class EntityLookupError(Exception):
    """Base exception for all lookup errors."""

    def __init__(self, message: str, code: str = "LOOKUP_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class ConfigurationError(EntityLookupError):
    """Missing or invalid settings; fatal before any lookup."""

    def __init__(self, message: str = "invalid configuration") -> None:
        super().__init__(message, code="CONFIG_INVALID")


class ControlPlaneError(EntityLookupError):
    """The local companion could not be reached or answered badly."""

    def __init__(self, message: str = "control plane error") -> None:
        super().__init__(message, code="CONTROL_PLANE_ERROR")


class PlatformAPIError(EntityLookupError):
    """The inventory platform rejected or failed a request."""

    def __init__(self, message: str = "platform error", status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message, code="PLATFORM_ERROR")


class InvalidArgumentError(EntityLookupError):
    """The lookup argument is not a usable `kind:value` token."""

    def __init__(self, message: str = "invalid argument") -> None:
        super().__init__(message, code="INVALID_ARGUMENT")


class LookupNotImplementedError(EntityLookupError):
    """The entity kind is recognized but has no lookup yet."""

    def __init__(self, message: str = "lookup not yet implemented") -> None:
        super().__init__(message, code="NOT_IMPLEMENTED")


class SearchFailedError(EntityLookupError):
    """A search or the decoding of its results failed."""

    def __init__(self, message: str = "unable to load entity") -> None:
        super().__init__(message, code="SEARCH_FAILED")
