"""Tests for the addrspec CLI."""

import json

import pytest
from loguru import logger
from typer.testing import CliRunner

from addrspec.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _drop_log_sinks():
    """The CLI points loguru at the runner's stderr; detach it afterwards."""
    yield
    logger.remove()


class TestCheckCommand:
    """Tests for `addrspec check`."""

    def test_valid_address(self):
        """Should report VALID and exit 0."""
        result = runner.invoke(app, ["check", "user@example.com"])

        assert result.exit_code == 0
        assert "ISEMAIL_VALID" in result.output
        assert "domain: example.com" in result.output

    def test_invalid_address_exits_1(self):
        """Should exit 1 when any address is invalid."""
        result = runner.invoke(app, ["check", "user@example.com", "john..doe@example.com"])

        assert result.exit_code == 1
        assert "ISEMAIL_ERR_CONSECUTIVEDOTS" in result.output

    def test_warning_address(self):
        """Should exit 0 for unusual but acceptable addresses."""
        result = runner.invoke(app, ["check", "user@[IPv6:2001:db8::1]"])

        assert result.exit_code == 0
        assert "ISEMAIL_RFC5321_ADDRESSLITERAL" in result.output
        assert "literal: IPv6:2001:db8::1" in result.output

    def test_json_output(self):
        """Should print one JSON object per address."""
        result = runner.invoke(app, ["check", "--json", "a@example.com", '"q"@example.com'])

        rows = [json.loads(line) for line in result.output.splitlines() if line.strip()]
        assert result.exit_code == 0
        assert [row["diagnosis"] for row in rows] == [
            "ISEMAIL_VALID",
            "ISEMAIL_RFC5321_QUOTEDSTRING",
        ]
        assert rows[1]["local_part"] == '"q"'
        assert rows[0]["valid"] is True

    def test_verbose_json_lists_diagnoses(self):
        """Should include the full diagnosis trail with --verbose."""
        result = runner.invoke(app, ["check", "--json", "--verbose", "(c)a@example.com"])

        row = json.loads(result.output.strip().splitlines()[-1])
        assert row["diagnoses"] == ["ISEMAIL_VALID", "ISEMAIL_CFWS_COMMENT"]

    def test_verbose_text(self):
        """Should list every diagnosis raised."""
        result = runner.invoke(app, ["check", "--verbose", "(c)a@example.com"])

        assert "- ISEMAIL_CFWS_COMMENT [17]" in result.output

    def test_requires_address(self):
        """Should refuse to run without arguments."""
        result = runner.invoke(app, ["check"])
        assert result.exit_code != 0


class TestCatalogCommands:
    """Tests for `addrspec catalog` and `addrspec verify-catalog`."""

    def test_lists_everything(self):
        """Should list categories and diagnoses."""
        result = runner.invoke(app, ["catalog"])

        assert result.exit_code == 0
        assert "Categories:" in result.output
        assert "ISEMAIL_DEPREC_CFWS_NEAR_AT" in result.output

    def test_filter_by_category(self):
        """Should only list diagnoses of the requested category."""
        result = runner.invoke(app, ["catalog", "--category", "err"])

        assert result.exit_code == 0
        assert "ISEMAIL_ERR_NODOMAIN" in result.output
        assert "ISEMAIL_RFC5321_TLD" not in result.output

    def test_unknown_category(self):
        """Should exit 1 for an unknown category."""
        result = runner.invoke(app, ["catalog", "--category", "nope"])
        assert result.exit_code == 1

    def test_verify_catalog(self, raw_catalog, write_catalog):
        """Should report the counts of a consistent catalog."""
        path = write_catalog(raw_catalog)
        result = runner.invoke(app, ["verify-catalog", str(path)])

        assert result.exit_code == 0
        assert "7 categories, 52 diagnoses" in result.output

    def test_verify_broken_catalog(self, raw_catalog, write_catalog):
        """Should exit 1 for an inconsistent catalog."""
        raw_catalog["diagnoses"][0]["category"] = "ISEMAIL_NOPE"
        path = write_catalog(raw_catalog)
        result = runner.invoke(app, ["verify-catalog", str(path)])

        assert result.exit_code == 1
