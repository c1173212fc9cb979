"""Models for graded address checks."""

from enum import Enum

from pydantic import BaseModel


class ValidationStatus(str, Enum):
    """Coarse grade derived from the diagnosis category."""

    VALID = "valid"  # Valid category
    RISKY = "risky"  # DNSWARN, RFC5321, CFWS, DEPREC or RFC5322 category
    INVALID = "invalid"  # Error category


class ValidationResult(BaseModel):
    """Grade of one address together with the diagnosis behind it."""

    email: str
    status: ValidationStatus
    provider: str
    diagnosis: str
    severity: int
    category: str
    smtp_reply: str
    local_part: str | None = None
    domain: str | None = None

    @property
    def is_deliverable(self) -> bool:
        """Whether the diagnosis maps to a 2xx SMTP reply."""
        return self.smtp_reply.startswith("2")
