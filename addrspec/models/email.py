"""Email address value type."""

from typing import Any

from pydantic import BaseModel, ConfigDict, model_serializer, model_validator

from addrspec.validation.catalog import DiagnosisCatalog
from addrspec.validation.engine import EmailValidator, evaluate


def _split(text: str, catalog: DiagnosisCatalog | None = None) -> dict[str, str]:
    if catalog is None:
        outcome = evaluate(text)
    else:
        outcome = EmailValidator(catalog).evaluate(text)
    if not outcome.is_valid:
        raise ValueError(f"Invalid email address: {outcome.diagnosis.id}")
    return {"local_part": outcome.local_part, "domain": outcome.domain}


class Email(BaseModel):
    """
    A syntactically acceptable email address.

    Equality and hashing are structural over ``(local_part, domain)``; no
    case folding or other normalization is applied. Can be used as a field
    type: a plain string is parsed on validation (with the default catalog)
    and the field serializes back to ``local_part@domain``.
    """

    model_config = ConfigDict(frozen=True)

    local_part: str
    domain: str

    @classmethod
    def try_parse(cls, text: str, catalog: DiagnosisCatalog | None = None) -> "Email | None":
        """Return an Email unless the address is in the error category."""
        try:
            return cls.parse(text, catalog)
        except ValueError:
            return None

    @classmethod
    def parse(cls, text: str, catalog: DiagnosisCatalog | None = None) -> "Email":
        """
        Parse an address.

        Args:
            text: The address
            catalog: Catalog to grade with; defaults to the packaged one

        Raises:
            ValueError: If the address is in the error category
        """
        return cls(**_split(text, catalog))

    @model_validator(mode="before")
    @classmethod
    def from_text(cls, data: Any) -> Any:
        if isinstance(data, str):
            return _split(data)
        return data

    @model_serializer
    def to_text(self) -> str:
        return str(self)

    def __str__(self) -> str:
        return f"{self.local_part}@{self.domain}"
