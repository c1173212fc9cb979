"""Syntax validator backed by the RFC 5321 / 5322 engine."""

from addrspec.config import get_settings
from addrspec.core.logging import get_logger
from addrspec.validation.catalog import DiagnosisCatalog, ValidationCategory, get_catalog
from addrspec.validation.engine import EmailValidator, ParseOutcome

from .base import BaseEmailValidator
from .models import ValidationResult, ValidationStatus

logger = get_logger(__name__)


class SyntaxValidator(BaseEmailValidator):
    """
    Grades addresses by syntax alone; no DNS or mailbox lookups.

    Addresses in the valid category are VALID, errors are INVALID and
    everything in between (quoted strings, address literals, comments,
    obsolete forms, top-level-domain-only hosts) is RISKY.

    ``should_allow`` accepts a result when its category is no more severe
    than ``accept_category`` (``Settings.accept_category`` by default).
    """

    provider_name = "syntax"

    def __init__(
        self,
        catalog: DiagnosisCatalog | None = None,
        accept_category: str | None = None,
    ) -> None:
        self._catalog = catalog if catalog is not None else get_catalog()
        self._engine = EmailValidator(self._catalog)

        name = accept_category or get_settings().accept_category
        try:
            self.accept_category: ValidationCategory = self._catalog.category(name.upper())
        except KeyError:
            raise ValueError(f"Unknown category: {name}") from None
        if self.accept_category.id == self._catalog.err.id:
            raise ValueError("The error category cannot be accepted")

    async def validate(self, email: str) -> ValidationResult:
        """Grade a single address."""
        outcome = self._engine.evaluate(email)
        status = self._status_for(outcome)

        if status == ValidationStatus.INVALID:
            logger.bind(diagnosis=outcome.diagnosis.id).info("syntax_validation_rejected")

        return ValidationResult(
            email=email,
            status=status,
            provider=self.provider_name,
            diagnosis=outcome.diagnosis.id,
            severity=outcome.diagnosis.value,
            category=outcome.category.id,
            smtp_reply=outcome.diagnosis.smtp.value,
            local_part=outcome.local_part if outcome.is_valid else None,
            domain=outcome.domain if outcome.is_valid else None,
        )

    def should_allow(self, result: ValidationResult) -> bool:
        """Accept results whose category is at most ``accept_category``."""
        return self._catalog.category(result.category).value <= self.accept_category.value

    def _status_for(self, outcome: ParseOutcome) -> ValidationStatus:
        if not outcome.is_valid:
            return ValidationStatus.INVALID
        if outcome.category.id == self._catalog.valid.category.id:
            return ValidationStatus.VALID
        return ValidationStatus.RISKY
