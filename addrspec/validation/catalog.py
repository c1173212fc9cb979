"""Diagnosis catalog: categories, diagnoses, SMTP replies and references.

The catalog is plain data shipped as ``catalog.yml`` next to this module.
``load_catalog`` parses it into frozen pydantic models and checks that the
tables are consistent (unique ids and values, no dangling references), so a
broken catalog fails at load time rather than in the middle of a validation.

Usage:
    from addrspec.validation.catalog import get_catalog

    catalog = get_catalog()
    catalog.err_consecutivedots.category.id   # "ISEMAIL_ERR"
    catalog.worst_of([catalog.valid, catalog.cfws_comment])
"""

from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from addrspec.config import get_settings
from addrspec.core.errors import CatalogError
from addrspec.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent / "catalog.yml"

ID_PREFIX = "ISEMAIL_"
SMTP_ID_PREFIX = "ISEMAIL_META_SMTP_"


def _short_name(xml_id: str, prefix: str) -> str:
    return xml_id[len(prefix) :] if xml_id.startswith(prefix) else xml_id


class ValidationCategory(BaseModel):
    """A severity tier. Higher value means more severe."""

    model_config = ConfigDict(frozen=True)

    id: str
    value: int
    description: str

    @property
    def name(self) -> str:
        return _short_name(self.id, ID_PREFIX)


class ValidationSMTPInfo(BaseModel):
    """SMTP reply a server would give for an address with this diagnosis."""

    model_config = ConfigDict(frozen=True)

    id: str
    value: str
    text: str

    @property
    def name(self) -> str:
        return _short_name(self.id, SMTP_ID_PREFIX)


class ValidationReference(BaseModel):
    """Bibliographic reference (RFC section or erratum) backing a diagnosis."""

    model_config = ConfigDict(frozen=True)

    id: str
    cite: str
    url: str
    blockquote: str


class ValidationDiagnosis(BaseModel):
    """One specific validation outcome."""

    model_config = ConfigDict(frozen=True)

    id: str
    value: int
    category: ValidationCategory
    smtp: ValidationSMTPInfo
    references: tuple[ValidationReference, ...] = ()
    description: str

    @property
    def name(self) -> str:
        return _short_name(self.id, ID_PREFIX)


class _DiagnosisRow(BaseModel):
    """Diagnosis as written in the YAML file, with references by id."""

    id: str
    value: int
    category: str
    smtp: str
    references: list[str] = Field(default_factory=list)
    description: str


class DiagnosisCatalog:
    """
    Immutable lookup table over the four catalog tables.

    Entries are addressed by id (``ISEMAIL_ERR_DOT_END``), by short name
    (``ERR_DOT_END``) or, for diagnoses and categories, as lower-case
    attributes (``catalog.err_dot_end``, ``catalog.rfc5322``).
    """

    def __init__(
        self,
        categories: Iterable[ValidationCategory],
        smtp_infos: Iterable[ValidationSMTPInfo],
        references: Iterable[ValidationReference],
        diagnoses: Iterable[ValidationDiagnosis],
    ) -> None:
        self._categories = {c.id: c for c in categories}
        self._smtp_infos = {s.id: s for s in smtp_infos}
        self._references = {r.id: r for r in references}
        self._diagnoses = {d.id: d for d in diagnoses}
        self._by_attribute: dict[str, ValidationDiagnosis | ValidationCategory] = {}
        for category in self._categories.values():
            self._by_attribute[category.name.lower()] = category
        for diagnosis in self._diagnoses.values():
            self._by_attribute[diagnosis.name.lower()] = diagnosis

    def __getattr__(self, attribute: str) -> Any:
        if attribute.startswith("_"):
            raise AttributeError(attribute)
        try:
            return self._by_attribute[attribute]
        except KeyError:
            raise AttributeError(f"Catalog has no diagnosis or category {attribute!r}") from None

    def __len__(self) -> int:
        return len(self._diagnoses)

    @property
    def categories(self) -> list[ValidationCategory]:
        """Categories, least severe first."""
        return sorted(self._categories.values(), key=lambda c: c.value)

    @property
    def diagnoses(self) -> list[ValidationDiagnosis]:
        """Diagnoses, least severe first."""
        return sorted(self._diagnoses.values(), key=lambda d: d.value)

    @property
    def smtp_infos(self) -> list[ValidationSMTPInfo]:
        return list(self._smtp_infos.values())

    @property
    def references(self) -> list[ValidationReference]:
        return list(self._references.values())

    def category(self, name: str) -> ValidationCategory:
        return self._categories[_full_id(name, ID_PREFIX)]

    def diagnosis(self, name: str) -> ValidationDiagnosis:
        return self._diagnoses[_full_id(name, ID_PREFIX)]

    def smtp_info(self, name: str) -> ValidationSMTPInfo:
        return self._smtp_infos[_full_id(name, SMTP_ID_PREFIX)]

    def reference(self, ref_id: str) -> ValidationReference:
        return self._references[ref_id]

    def severity_of(self, diagnosis: ValidationDiagnosis) -> ValidationCategory:
        """Return the category a diagnosis belongs to."""
        return self._categories[diagnosis.category.id]

    def worst_of(self, diagnoses: Iterable[ValidationDiagnosis]) -> ValidationDiagnosis:
        """
        Return the most severe diagnosis.

        Raises:
            ValueError: If no diagnosis is given
        """
        items = list(diagnoses)
        if not items:
            raise ValueError("worst_of() needs at least one diagnosis")
        return max(items, key=lambda d: d.value)


def _full_id(name: str, prefix: str) -> str:
    return name if name.startswith(prefix) else prefix + name


def _unique(rows: list[dict[str, Any]], key: str, table: str) -> None:
    seen: set[Any] = set()
    for row in rows:
        if row[key] in seen:
            raise CatalogError(f"Duplicate {key} {row[key]!r} in {table}")
        seen.add(row[key])


def _check_bounds(
    categories: list[ValidationCategory], diagnoses: list[ValidationDiagnosis]
) -> None:
    """Each diagnosis value must sit inside its category's value band."""
    ordered = sorted(categories, key=lambda c: c.value)
    floors = {c.id: (ordered[i - 1].value if i else None) for i, c in enumerate(ordered)}
    for diagnosis in diagnoses:
        ceiling = diagnosis.category.value
        floor = floors[diagnosis.category.id]
        if diagnosis.value >= ceiling or (floor is not None and diagnosis.value < floor):
            raise CatalogError(
                f"Diagnosis {diagnosis.id} value {diagnosis.value} is outside the band "
                f"of category {diagnosis.category.id}"
            )


def build_catalog(data: dict[str, Any]) -> DiagnosisCatalog:
    """
    Build a catalog from its raw table form.

    Args:
        data: Mapping with ``categories``, ``smtp``, ``references`` and
            ``diagnoses`` lists

    Raises:
        CatalogError: If a table is missing, a row is malformed, an id or
            value is duplicated, or a diagnosis points at a missing entry
    """
    tables = {}
    for table in ("categories", "smtp", "references", "diagnoses"):
        rows = data.get(table)
        if not isinstance(rows, list):
            raise CatalogError(f"Catalog table {table!r} is missing or not a list")
        tables[table] = rows

    try:
        categories = [ValidationCategory.model_validate(row) for row in tables["categories"]]
        smtp_infos = [ValidationSMTPInfo.model_validate(row) for row in tables["smtp"]]
        references = [ValidationReference.model_validate(row) for row in tables["references"]]
        rows = [_DiagnosisRow.model_validate(row) for row in tables["diagnoses"]]
    except ValidationError as e:
        raise CatalogError(f"Malformed catalog entry: {e}") from e

    _unique([c.model_dump() for c in categories], "id", "categories")
    _unique([c.model_dump() for c in categories], "value", "categories")
    _unique([s.model_dump() for s in smtp_infos], "id", "smtp")
    _unique([s.model_dump() for s in smtp_infos], "value", "smtp")
    _unique([r.model_dump() for r in references], "id", "references")
    _unique([r.model_dump() for r in rows], "id", "diagnoses")
    _unique([r.model_dump() for r in rows], "value", "diagnoses")

    category_by_id = {c.id: c for c in categories}
    smtp_by_id = {s.id: s for s in smtp_infos}
    reference_by_id = {r.id: r for r in references}

    diagnoses = []
    for row in rows:
        if row.category not in category_by_id:
            raise CatalogError(f"Diagnosis {row.id} has unknown category {row.category}")
        if row.smtp not in smtp_by_id:
            raise CatalogError(f"Diagnosis {row.id} has unknown SMTP info {row.smtp}")
        missing = [ref for ref in row.references if ref not in reference_by_id]
        if missing:
            raise CatalogError(f"Diagnosis {row.id} has unknown references {missing}")
        diagnoses.append(
            ValidationDiagnosis(
                id=row.id,
                value=row.value,
                category=category_by_id[row.category],
                smtp=smtp_by_id[row.smtp],
                references=tuple(reference_by_id[ref] for ref in row.references),
                description=row.description,
            )
        )

    _check_bounds(categories, diagnoses)
    return DiagnosisCatalog(categories, smtp_infos, references, diagnoses)


def load_catalog(path: str | Path | None = None) -> DiagnosisCatalog:
    """
    Load and check a catalog file.

    Args:
        path: YAML file to load; defaults to ``Settings.catalog_path`` or
            the packaged catalog

    Raises:
        CatalogError: If the file cannot be read or is inconsistent
    """
    if path is None:
        path = get_settings().catalog_path or DEFAULT_CATALOG_PATH
    path = Path(path)

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise CatalogError(f"Cannot read catalog {path}: {e}") from e

    if not isinstance(data, dict):
        raise CatalogError(f"Catalog {path} must be a mapping of tables")

    catalog = build_catalog(data)
    logger.bind(
        path=str(path),
        categories=len(catalog.categories),
        diagnoses=len(catalog),
    ).debug("catalog_loaded")
    return catalog


@lru_cache
def get_catalog() -> DiagnosisCatalog:
    """Get the cached default catalog."""
    return load_catalog()
