"""RFC 5321 / RFC 5322 address validation: diagnosis catalog and engine."""

from .catalog import (
    DiagnosisCatalog,
    ValidationCategory,
    ValidationDiagnosis,
    ValidationReference,
    ValidationSMTPInfo,
    build_catalog,
    get_catalog,
    load_catalog,
)
from .engine import EmailValidator, EngineState, ParseOutcome, evaluate
from .literal import classify_address_literal

__all__ = [
    "DiagnosisCatalog",
    "EmailValidator",
    "EngineState",
    "ParseOutcome",
    "ValidationCategory",
    "ValidationDiagnosis",
    "ValidationReference",
    "ValidationSMTPInfo",
    "build_catalog",
    "classify_address_literal",
    "evaluate",
    "get_catalog",
    "load_catalog",
]
