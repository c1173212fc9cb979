"""RFC 5321 / RFC 5322 email address validation."""

from addrspec.models.email import Email
from addrspec.validation.catalog import get_catalog, load_catalog
from addrspec.validation.engine import EmailValidator, ParseOutcome, evaluate

__all__ = [
    "Email",
    "EmailValidator",
    "ParseOutcome",
    "evaluate",
    "get_catalog",
    "load_catalog",
]
