"""
Pytest configuration and fixtures for addrspec tests.

Provides:
- The packaged diagnosis catalog
- An engine bound to that catalog
- A raw copy of the catalog tables for integrity tests
- Isolation of cached settings and the validator singleton
"""

import copy

import pytest
import yaml

from addrspec.config import get_settings
from addrspec.services.email_validation import reset_email_validator
from addrspec.validation.catalog import DEFAULT_CATALOG_PATH, get_catalog
from addrspec.validation.engine import EmailValidator


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Drop cached settings so env overrides in one test never leak."""
    for name in (
        "ADDRSPEC_DEBUG",
        "ADDRSPEC_LOG_LEVEL",
        "ADDRSPEC_CATALOG_PATH",
        "ADDRSPEC_CHECK_DNS",
        "ADDRSPEC_ACCEPT_CATEGORY",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    reset_email_validator()
    yield
    get_settings.cache_clear()
    reset_email_validator()


@pytest.fixture(scope="session")
def catalog():
    """The packaged catalog."""
    return get_catalog()


@pytest.fixture
def validator(catalog):
    """Engine bound to the packaged catalog."""
    return EmailValidator(catalog, check_dns=False)


@pytest.fixture(scope="session")
def _raw_tables():
    with open(DEFAULT_CATALOG_PATH, encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def raw_catalog(_raw_tables):
    """Mutable deep copy of the packaged catalog tables."""
    return copy.deepcopy(_raw_tables)


@pytest.fixture
def write_catalog(tmp_path):
    """Write catalog tables to a YAML file and return its path."""

    def _write(data, name="catalog.yml"):
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write
