"""Tests for the syntax-only email validator."""

import pytest

from addrspec.config import get_settings
from addrspec.services.email_validation import (
    BaseEmailValidator,
    SyntaxValidator,
    ValidationStatus,
    get_email_validator,
    reset_email_validator,
)


class TestSyntaxValidator:
    """Tests for SyntaxValidator."""

    @pytest.fixture
    def syntax_validator(self, catalog):
        """Create a SyntaxValidator on the packaged catalog."""
        return SyntaxValidator(catalog)

    @pytest.mark.asyncio
    async def test_valid_address(self, syntax_validator):
        """Should mark a plain mailbox as VALID."""
        result = await syntax_validator.validate("user@example.com")

        assert result.status == ValidationStatus.VALID
        assert result.provider == "syntax"
        assert result.diagnosis == "ISEMAIL_VALID"
        assert result.local_part == "user"
        assert result.domain == "example.com"
        assert result.is_deliverable is True

    @pytest.mark.asyncio
    async def test_quoted_string_is_risky(self, syntax_validator):
        """Should mark unusual but acceptable addresses as RISKY."""
        result = await syntax_validator.validate('"quoted"@example.com')

        assert result.status == ValidationStatus.RISKY
        assert result.diagnosis == "ISEMAIL_RFC5321_QUOTEDSTRING"
        assert result.category == "ISEMAIL_RFC5321"

    @pytest.mark.asyncio
    async def test_tld_only_is_risky(self, syntax_validator):
        """Should mark a top-level-domain-only host as RISKY."""
        result = await syntax_validator.validate("admin@localhost")

        assert result.status == ValidationStatus.RISKY
        assert result.diagnosis == "ISEMAIL_RFC5321_TLD"

    @pytest.mark.asyncio
    async def test_rfc5322_literal_is_risky_but_undeliverable(self, syntax_validator):
        """An RFC 5322-only address is not an error but gets a 553 reply."""
        result = await syntax_validator.validate("user@[300.1.1.1]")

        assert result.status == ValidationStatus.RISKY
        assert result.smtp_reply == "553 5.1.3"
        assert result.is_deliverable is False

    @pytest.mark.asyncio
    async def test_error_is_invalid(self, syntax_validator):
        """Should mark error-category addresses as INVALID without parts."""
        result = await syntax_validator.validate("john..doe@example.com")

        assert result.status == ValidationStatus.INVALID
        assert result.diagnosis == "ISEMAIL_ERR_CONSECUTIVEDOTS"
        assert result.local_part is None
        assert result.domain is None
        assert result.is_deliverable is False

    @pytest.mark.asyncio
    async def test_diagnosis_details(self, syntax_validator):
        """Should expose the severity, category and SMTP reply."""
        result = await syntax_validator.validate("user@-example.com")

        assert result.diagnosis == "ISEMAIL_ERR_DOMAINHYPHENSTART"
        assert result.severity == 143
        assert result.category == "ISEMAIL_ERR"
        assert result.smtp_reply == "553 5.1.3"

    @pytest.mark.asyncio
    async def test_validate_batch_keeps_order(self, syntax_validator):
        """Should return results in input order."""
        results = await syntax_validator.validate_batch(
            ["a@example.com", "bad", '"q"@example.com']
        )

        assert [r.email for r in results] == ["a@example.com", "bad", '"q"@example.com']
        assert [r.status for r in results] == [
            ValidationStatus.VALID,
            ValidationStatus.INVALID,
            ValidationStatus.RISKY,
        ]


class TestAcceptancePolicy:
    """Tests for should_allow and the accepted category."""

    @pytest.mark.asyncio
    async def test_default_accepts_everything_but_errors(self, catalog):
        """By default every non-error category should be accepted."""
        syntax_validator = SyntaxValidator(catalog)
        literal = await syntax_validator.validate("user@[300.1.1.1]")
        invalid = await syntax_validator.validate("user@")

        assert syntax_validator.accept_category.id == "ISEMAIL_RFC5322"
        assert syntax_validator.should_allow(literal) is True
        assert syntax_validator.should_allow(invalid) is False

    @pytest.mark.asyncio
    async def test_stricter_category(self, catalog):
        """Accepting only RFC5321 should refuse comments and literals."""
        syntax_validator = SyntaxValidator(catalog, accept_category="rfc5321")
        quoted = await syntax_validator.validate('"q"@example.com')
        comment = await syntax_validator.validate("(c)user@example.com")
        literal = await syntax_validator.validate("user@[300.1.1.1]")

        assert syntax_validator.should_allow(quoted) is True
        assert syntax_validator.should_allow(comment) is False
        assert syntax_validator.should_allow(literal) is False

    @pytest.mark.asyncio
    async def test_category_from_settings(self, catalog, monkeypatch):
        """Should read the accepted category from ADDRSPEC_ACCEPT_CATEGORY."""
        monkeypatch.setenv("ADDRSPEC_ACCEPT_CATEGORY", "VALID_CATEGORY")
        get_settings.cache_clear()
        syntax_validator = SyntaxValidator(catalog)
        tld = await syntax_validator.validate("admin@localhost")

        assert syntax_validator.should_allow(tld) is False

    def test_unknown_category(self, catalog):
        """Should refuse an unknown category name."""
        with pytest.raises(ValueError, match="Unknown category"):
            SyntaxValidator(catalog, accept_category="NOPE")

    def test_error_category_cannot_be_accepted(self, catalog):
        """Accepting errors would make the policy meaningless."""
        with pytest.raises(ValueError):
            SyntaxValidator(catalog, accept_category="ERR")


class TestGetEmailValidator:
    """Tests for the validator factory."""

    def test_returns_syntax_validator(self):
        """Should build a SyntaxValidator by default."""
        assert isinstance(get_email_validator(), SyntaxValidator)

    def test_singleton(self):
        """Should return the same instance until reset."""
        first = get_email_validator()
        assert get_email_validator() is first

        reset_email_validator()
        assert get_email_validator() is not first

    def test_is_a_base_validator(self):
        """Should honour the provider interface."""
        assert isinstance(get_email_validator(), BaseEmailValidator)
