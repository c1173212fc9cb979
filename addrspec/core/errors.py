"""Exceptions raised by addrspec.

Malformed addresses never raise: they produce a diagnosis. The exceptions
below signal broken data or broken code.
"""


class AddrSpecError(Exception):
    """Base class for addrspec errors."""


class CatalogError(AddrSpecError):
    """The diagnosis catalog is malformed or inconsistent."""


class EngineInvariantError(AddrSpecError):
    """The validation engine reached a state it does not define."""
