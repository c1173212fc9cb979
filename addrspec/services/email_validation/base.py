"""Interface shared by address validators."""

from abc import ABC, abstractmethod

from .models import ValidationResult


class BaseEmailValidator(ABC):
    """An address validator with an acceptance policy."""

    provider_name: str = "unknown"

    @abstractmethod
    async def validate(self, email: str) -> ValidationResult:
        """
        Grade a single address.

        Args:
            email: The address to check

        Returns:
            ValidationResult carrying the diagnosis and its category
        """

    @abstractmethod
    def should_allow(self, result: ValidationResult) -> bool:
        """Decide whether an address graded as ``result`` is acceptable."""

    async def validate_batch(self, emails: list[str]) -> list[ValidationResult]:
        """Grade several addresses, keeping input order."""
        return [await self.validate(email) for email in emails]
