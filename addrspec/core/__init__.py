from addrspec.core.errors import AddrSpecError, CatalogError, EngineInvariantError
from addrspec.core.logging import get_logger, setup_logging

__all__ = [
    "AddrSpecError",
    "CatalogError",
    "EngineInvariantError",
    "get_logger",
    "setup_logging",
]
