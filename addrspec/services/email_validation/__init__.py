"""Email validation service with provider abstraction."""

from .base import BaseEmailValidator
from .models import ValidationResult, ValidationStatus
from .syntax import SyntaxValidator

__all__ = [
    "BaseEmailValidator",
    "SyntaxValidator",
    "ValidationResult",
    "ValidationStatus",
    "get_email_validator",
    "reset_email_validator",
]

_validator_instance: BaseEmailValidator | None = None


def get_email_validator() -> BaseEmailValidator:
    """
    Get the configured email validator instance.

    Uses singleton pattern so the catalog is only loaded once.
    """
    global _validator_instance
    if _validator_instance is None:
        _validator_instance = SyntaxValidator()
    return _validator_instance


def reset_email_validator() -> None:
    """Reset the validator instance. Useful for testing."""
    global _validator_instance
    _validator_instance = None
