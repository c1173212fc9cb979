"""RFC 5321 / RFC 5322 email address validation engine.

There is a clear distinction between a Mailbox as defined by RFC 5321 and an
addr-spec as defined by RFC 5322. Depending on the context either can be
regarded as a valid email address. The RFC 5321 Mailbox is more restrictive
(comments, white space and obsolete forms are not allowed), so instead of a
yes/no answer the engine grades the address with the most severe diagnosis
found while scanning it.

The scan walks the raw bytes of the address. CRLF pairs and control
characters are meaningful to the grammar and must not be merged or decoded
away, so text input is encoded to UTF-8 first and every non-ASCII byte is
handled by the byte rules (it is never valid).

Relevant RFCs:
    - https://tools.ietf.org/html/rfc5321
    - https://tools.ietf.org/html/rfc5322
    - https://tools.ietf.org/html/rfc4291#section-2.2
    - https://tools.ietf.org/html/rfc1123#section-2.1
    - https://tools.ietf.org/html/rfc3696 (guidance only)

Usage:
    from addrspec.validation.engine import evaluate

    outcome = evaluate("user@example.com")
    outcome.diagnosis.id   # "ISEMAIL_VALID"
    outcome.is_valid       # True
"""

from collections.abc import Callable
from enum import Enum

from pydantic import BaseModel, ConfigDict

from addrspec.config import get_settings
from addrspec.core.errors import EngineInvariantError
from addrspec.core.logging import get_logger
from addrspec.validation.catalog import (
    DiagnosisCatalog,
    ValidationCategory,
    ValidationDiagnosis,
    get_catalog,
)
from addrspec.validation.literal import classify_address_literal

logger = get_logger(__name__)

# Byte values the grammar cares about
HTAB = 0x09
LF = 0x0A
CR = 0x0D
SPACE = 0x20
DQUOTE = 0x22
OPEN_PARENTHESIS = 0x28
CLOSE_PARENTHESIS = 0x29
HYPHEN = 0x2D
DOT = 0x2E
AT = 0x40
OPEN_SQUARE_BRACKET = 0x5B
BACKSLASH = 0x5C
CLOSE_SQUARE_BRACKET = 0x5D
DEL = 0x7F

# US-ASCII visible characters not valid for atext (RFC 5322 section 3.2.3)
SPECIALS = frozenset(b'()<>[]:;@\\,."')
WHITESPACE = (CR, SPACE, HTAB)

# Octet limits
LOCAL_PART_MAX = 64  # RFC 5321 section 4.5.3.1.1
LABEL_MAX = 63  # RFC 1035 section 2.3.4
DOMAIN_MAX = 255  # RFC 5321 section 4.5.3.1.2
MAILBOX_MAX = 254  # RFC 3696 erratum 1690


class EngineState(str, Enum):
    """Syntactic position of the scanner."""

    LOCAL_PART = "local_part"
    DOMAIN = "domain"
    DOMAIN_LITERAL = "domain_literal"
    QUOTED_STRING = "quoted_string"
    QUOTED_PAIR = "quoted_pair"
    COMMENT = "comment"
    FOLDING_WHITE_SPACE = "folding_white_space"


class ParseOutcome(BaseModel):
    """Result of evaluating one address."""

    model_config = ConfigDict(frozen=True)

    diagnosis: ValidationDiagnosis
    local_part: str
    domain: str
    literal: str | None = None
    is_valid: bool
    diagnoses: tuple[ValidationDiagnosis, ...] = ()

    @property
    def category(self) -> ValidationCategory:
        return self.diagnosis.category


def is_atext(token: int) -> bool:
    """Printable US-ASCII minus the specials."""
    return 33 <= token <= 126 and token not in SPECIALS


def is_ldh(token: int) -> bool:
    """Letter, digit or hyphen: the RFC 5321 sub-domain alphabet."""
    return (
        token == HYPHEN
        or 0x30 <= token <= 0x39
        or 0x41 <= token <= 0x5A
        or 0x61 <= token <= 0x7A
    )


class _Scan:
    """
    State of one evaluation.

    Created by EmailValidator.evaluate for a single input and thrown away
    afterwards; nothing here outlives the call.
    """

    def __init__(self, data: bytes, catalog: DiagnosisCatalog) -> None:
        self.data = data
        self.catalog = catalog
        self.statuses: list[ValidationDiagnosis] = [catalog.valid]
        self.worst: ValidationDiagnosis = catalog.valid

        self.context = EngineState.LOCAL_PART  # where we are
        self.context_prior = EngineState.LOCAL_PART  # where we just came from
        self.context_stack: list[EngineState] = [self.context]  # where we have been

        self.pos = 0
        self.token = 0
        self.token_prior = 0

        self.local_part = bytearray()
        self.domain = bytearray()
        self.literal: bytearray | None = None
        self.labels: list[bytearray] = [bytearray()]

        self.element_count = 0
        self.element_len = 0
        self.crlf_count: int | None = None
        self.hyphen_flag = False  # a hyphen cannot end a subdomain
        self.end_or_die = False  # CFWS can only appear at the end of an element

        self._handlers: dict[EngineState, Callable[[int], None]] = {
            EngineState.LOCAL_PART: self._local_part,
            EngineState.DOMAIN: self._domain,
            EngineState.DOMAIN_LITERAL: self._domain_literal,
            EngineState.QUOTED_STRING: self._quoted_string,
            EngineState.QUOTED_PAIR: self._quoted_pair,
            EngineState.COMMENT: self._comment,
            EngineState.FOLDING_WHITE_SPACE: self._folding_white_space,
        }

    # --- bookkeeping ---

    def add(self, diagnosis: ValidationDiagnosis) -> None:
        self.statuses.append(diagnosis)
        if diagnosis.value > self.worst.value:
            self.worst = diagnosis

    def push(self, state: EngineState) -> None:
        self.context_stack.append(self.context)
        self.context = state

    def pop(self) -> None:
        self.context_prior = self.context
        self.context = self.context_stack.pop()

    def consume_lf(self) -> bool:
        """Step onto the LF that must follow a CR."""
        self.pos += 1
        if self.pos < len(self.data) and self.data[self.pos] == LF:
            return True
        self.add(self.catalog.err_cr_no_lf)
        return False

    def worse_than(self, category: ValidationCategory) -> bool:
        return self.worst.value > category.value

    # --- main loop ---

    def run(self) -> None:
        fatal = self.catalog.rfc5322
        while self.pos < len(self.data):
            self.token = self.data[self.pos]
            handler = self._handlers.get(self.context)
            if handler is None:
                raise EngineInvariantError(f"Unknown context: {self.context}")
            handler(self.token)
            self.pos += 1

            # No point going on once an error has been found
            if self.worse_than(fatal):
                break

        if self.worst.value < fatal.value:
            self._check_end()
        self._check_tld()

    # --- local part ---

    def _local_part(self, token: int) -> None:
        # local-part = dot-atom / quoted-string / obs-local-part
        # obs-local-part = word *("." word)
        cat = self.catalog

        if token == OPEN_PARENTHESIS:
            if self.element_len == 0:
                # Comments are OK at the beginning of an element
                self.add(cat.cfws_comment if self.element_count == 0 else cat.deprec_comment)
            else:
                self.add(cat.cfws_comment)
                self.end_or_die = True
            self.push(EngineState.COMMENT)

        elif token == DOT:
            if self.element_len == 0:
                self.add(cat.err_dot_start if self.element_count == 0 else cat.err_consecutivedots)
            elif self.end_or_die:
                # Only the entire local-part may be quoted for RFC 5321
                self.add(cat.deprec_localpart)
            self.end_or_die = False
            self.element_len = 0
            self.element_count += 1
            self.local_part.append(token)

        elif token == DQUOTE:
            if self.element_len == 0:
                self.add(
                    cat.rfc5321_quotedstring if self.element_count == 0 else cat.deprec_localpart
                )
                self.local_part.append(token)
                self.element_len += 1
                self.end_or_die = True  # quoted string must be the entire element
                self.push(EngineState.QUOTED_STRING)
            else:
                self.add(cat.err_expecting_atext)

        elif token in WHITESPACE:
            if token == CR and not self.consume_lf():
                return
            if self.element_len == 0:
                self.add(cat.cfws_fws if self.element_count == 0 else cat.deprec_fws)
            else:
                self.end_or_die = True
            self.push(EngineState.FOLDING_WHITE_SPACE)
            self.token_prior = token

        elif token == AT:
            if len(self.context_stack) != 1:
                raise EngineInvariantError(f"Unexpected context stack at @: {self.context_stack}")

            if not self.local_part:
                self.add(cat.err_nolocalpart)
            elif self.element_len == 0:
                self.add(cat.err_dot_end)
            elif len(self.local_part) > LOCAL_PART_MAX:
                self.add(cat.rfc5322_local_toolong)
            elif self.context_prior in (EngineState.COMMENT, EngineState.FOLDING_WHITE_SPACE):
                # CFWS SHOULD NOT be used around the "@" (RFC 5322 section 3.4.1)
                self.add(cat.deprec_cfws_near_at)

            self.context = EngineState.DOMAIN
            self.context_stack = [self.context]
            self.element_count = 0
            self.element_len = 0
            self.end_or_die = False

        elif self.end_or_die:
            # atext where it is no longer allowed
            if self.context_prior in (EngineState.COMMENT, EngineState.FOLDING_WHITE_SPACE):
                self.add(cat.err_atext_after_cfws)
            elif self.context_prior == EngineState.QUOTED_STRING:
                self.add(cat.err_atext_after_qs)
            else:
                raise EngineInvariantError(
                    f"atext found where none is allowed after {self.context_prior}"
                )

        else:
            self.context_prior = self.context
            if not is_atext(token):
                self.add(cat.err_expecting_atext)
            self.local_part.append(token)
            self.element_len += 1

    # --- domain ---

    def _domain(self, token: int) -> None:
        # domain = dot-atom / domain-literal / obs-domain
        #
        # RFC 5322 allows any atext, RFC 5321 only letter-digit-hyphen
        # (sub-domain = Let-dig [Ldh-str]). Addressing information must comply
        # with RFC 5321, anything semantically invisible only with RFC 5322.
        cat = self.catalog

        if token == OPEN_PARENTHESIS:
            if self.element_len == 0:
                self.add(cat.deprec_cfws_near_at if self.element_count == 0 else cat.deprec_comment)
            else:
                self.add(cat.cfws_comment)
                self.end_or_die = True
            self.push(EngineState.COMMENT)

        elif token == DOT:
            if self.element_len == 0:
                self.add(cat.err_dot_start if self.element_count == 0 else cat.err_consecutivedots)
            elif self.hyphen_flag:
                self.add(cat.err_domainhyphenend)
            elif self.element_len > LABEL_MAX:
                self.add(cat.rfc5322_label_toolong)
            self.end_or_die = False
            self.element_len = 0
            self.element_count += 1
            self.domain.append(token)
            self.labels.append(bytearray())

        elif token == OPEN_SQUARE_BRACKET:
            if not self.domain:
                self.end_or_die = True  # domain literal must be the only component
                self.element_len += 1
                self.push(EngineState.DOMAIN_LITERAL)
                self.domain.append(token)
                self.labels[-1].append(token)
                self.literal = bytearray()
            else:
                self.add(cat.err_expecting_atext)

        elif token in WHITESPACE:
            if token == CR and not self.consume_lf():
                return
            if self.element_len == 0:
                self.add(cat.deprec_cfws_near_at if self.element_count == 0 else cat.deprec_fws)
            else:
                self.add(cat.cfws_fws)
                self.end_or_die = True
            self.push(EngineState.FOLDING_WHITE_SPACE)
            self.token_prior = token

        else:
            if self.end_or_die:
                if self.context_prior in (EngineState.COMMENT, EngineState.FOLDING_WHITE_SPACE):
                    self.add(cat.err_atext_after_cfws)
                elif self.context_prior == EngineState.DOMAIN_LITERAL:
                    self.add(cat.err_atext_after_domlit)
                else:
                    raise EngineInvariantError(
                        f"atext found where none is allowed after {self.context_prior}"
                    )

            self.hyphen_flag = False
            if not is_atext(token):
                self.add(cat.err_expecting_atext)
            elif token == HYPHEN:
                if self.element_len == 0:
                    self.add(cat.err_domainhyphenstart)
                self.hyphen_flag = True
            elif not is_ldh(token):
                # Not an RFC 5321 sub-domain, still fine for RFC 5322
                self.add(cat.rfc5322_domain)

            self.domain.append(token)
            self.labels[-1].append(token)
            self.element_len += 1

    # --- domain literal ---

    def _domain_literal(self, token: int) -> None:
        # domain-literal = [CFWS] "[" *([FWS] dtext) [FWS] "]" [CFWS]
        # dtext = %d33-90 / %d94-126 / obs-dtext
        # obs-dtext = obs-NO-WS-CTL / quoted-pair
        cat = self.catalog

        if token == CLOSE_SQUARE_BRACKET:
            if self.worst.value < cat.deprec.value:
                # Could be a valid RFC 5321 address literal
                literal = bytes(self.literal or b"").decode("latin-1")
                for diagnosis in classify_address_literal(literal, cat):
                    self.add(diagnosis)
            else:
                self.add(cat.rfc5322_domainliteral)

            self.domain.append(token)
            self.labels[-1].append(token)
            self.element_len += 1
            self.pop()

        elif token == BACKSLASH:
            self.add(cat.rfc5322_domlit_obsdtext)
            self.push(EngineState.QUOTED_PAIR)

        elif token in WHITESPACE:
            if token == CR and not self.consume_lf():
                return
            self.add(cat.cfws_fws)
            self.push(EngineState.FOLDING_WHITE_SPACE)
            self.token_prior = token

        else:
            # CR, LF, SP and HTAB have been handled above
            if token > DEL or token == 0 or token == OPEN_SQUARE_BRACKET:
                self.add(cat.err_expecting_dtext)
                return
            if token < 33 or token == DEL:
                self.add(cat.rfc5322_domlit_obsdtext)

            if self.literal is None:
                self.literal = bytearray()
            self.literal.append(token)
            self.domain.append(token)
            self.labels[-1].append(token)
            self.element_len += 1

    # --- quoted string ---

    def _quoted_string(self, token: int) -> None:
        # quoted-string = [CFWS] DQUOTE *([FWS] qcontent) [FWS] DQUOTE [CFWS]
        # qcontent = qtext / quoted-pair
        cat = self.catalog

        if token == BACKSLASH:
            self.push(EngineState.QUOTED_PAIR)

        elif token in (CR, HTAB):
            # Spaces are plain qtext here; only HTAB or CRLF start FWS. The CRLF
            # is semantically invisible and the run counts as a single space.
            if token == CR and not self.consume_lf():
                return
            self.local_part.append(SPACE)
            self.element_len += 1
            self.add(cat.cfws_fws)
            self.push(EngineState.FOLDING_WHITE_SPACE)
            self.token_prior = token

        elif token == DQUOTE:
            self.local_part.append(token)
            self.element_len += 1
            self.pop()

        else:
            # qtext = %d33 / %d35-91 / %d93-126 / obs-qtext
            if token > DEL or token == 0 or token == LF:
                self.add(cat.err_expecting_qtext)
            elif token < 32 or token == DEL:
                self.add(cat.deprec_qtext)
            self.local_part.append(token)
            self.element_len += 1

    # --- quoted pair ---

    def _quoted_pair(self, token: int) -> None:
        # quoted-pair = ("\" (VCHAR / WSP)) / obs-qp
        # obs-qp = "\" (%d0 / obs-NO-WS-CTL / LF / CR)
        cat = self.catalog

        if token > DEL:
            self.add(cat.err_expecting_qpair)
        elif (token < 31 and token != HTAB) or token == DEL:
            self.add(cat.deprec_qp)

        self.pop()

        # Octet limits count the backslash too
        if self.context == EngineState.COMMENT:
            pass
        elif self.context == EngineState.QUOTED_STRING:
            self.local_part += bytes((BACKSLASH, token))
            self.element_len += 2
        elif self.context == EngineState.DOMAIN_LITERAL:
            self.domain += bytes((BACKSLASH, token))
            self.labels[-1] += bytes((BACKSLASH, token))
            self.element_len += 2
        else:
            raise EngineInvariantError(f"Quoted pair closed into invalid context: {self.context}")

    # --- comment ---

    def _comment(self, token: int) -> None:
        # comment = "(" *([FWS] ccontent) [FWS] ")"
        # ccontent = ctext / quoted-pair / comment
        #
        # CFWS is not folded into a space in the local-part or domain: doing
        # so would make every address with a comment fail RFC 5321.
        cat = self.catalog

        if token == OPEN_PARENTHESIS:
            self.push(EngineState.COMMENT)

        elif token == CLOSE_PARENTHESIS:
            self.pop()

        elif token == BACKSLASH:
            self.push(EngineState.QUOTED_PAIR)

        elif token in WHITESPACE:
            if token == CR and not self.consume_lf():
                return
            self.add(cat.cfws_fws)
            self.push(EngineState.FOLDING_WHITE_SPACE)
            self.token_prior = token

        else:
            # ctext = %d33-39 / %d42-91 / %d93-126 / obs-ctext
            if token > DEL or token == 0 or token == LF:
                self.add(cat.err_expecting_ctext)
            elif token < 32 or token == DEL:
                self.add(cat.deprec_ctext)

    # --- folding white space ---

    def _folding_white_space(self, token: int) -> None:
        # FWS = ([*WSP CRLF] 1*WSP) / obs-FWS
        # obs-FWS = 1*([CRLF] WSP)  (RFC 5322 erratum 1908)
        cat = self.catalog

        if self.token_prior == CR:
            if token == CR:
                self.add(cat.err_fws_crlf_x2)
                return
            if self.crlf_count is None:
                self.crlf_count = 1
            else:
                if self.crlf_count > 0:
                    # Multiple folds = obsolete FWS
                    self.add(cat.deprec_fws)
                self.crlf_count += 1

        if token in WHITESPACE:
            if token == CR:
                self.consume_lf()
        elif self.token_prior == CR:
            self.add(cat.err_fws_crlf_end)
        else:
            self.crlf_count = None
            self.pop()
            # Look at this token again in the parent context
            self.pos -= 1

        self.token_prior = token

    # --- end of input ---

    def _check_end(self) -> None:
        cat = self.catalog

        if self.context == EngineState.QUOTED_STRING:
            self.add(cat.err_unclosedquotedstr)
        elif self.context == EngineState.QUOTED_PAIR:
            self.add(cat.err_backslashend)
        elif self.context == EngineState.COMMENT:
            self.add(cat.err_unclosedcomment)
        elif self.context == EngineState.DOMAIN_LITERAL:
            self.add(cat.err_uncloseddomlit)
        elif self.token == CR:
            self.add(cat.err_fws_crlf_end)
        elif not self.domain:
            self.add(cat.err_nodomain)
        elif self.element_len == 0:
            self.add(cat.err_dot_end)
        elif self.hyphen_flag:
            self.add(cat.err_domainhyphenend)
        elif len(self.domain) > DOMAIN_MAX:
            self.add(cat.rfc5322_domain_toolong)
        elif len(self.local_part) + 1 + len(self.domain) > MAILBOX_MAX:
            self.add(cat.rfc5322_toolong)
        elif self.element_len > LABEL_MAX:
            self.add(cat.rfc5322_label_toolong)

    def _check_tld(self) -> None:
        # TLD addresses are allowed by RFC 5321 (section 2.3.5) but are more
        # likely to be typos than genuine addresses. A top label starting with
        # a digit can never be a host name (RFC 1123 erratum 1353). DNS is
        # never checked, so this runs whenever nothing worse has been seen.
        cat = self.catalog
        if self.worst.value >= cat.dnswarn.value:
            return

        if self.element_count == 0:
            self.add(cat.rfc5321_tld)

        last_label = self.labels[-1]
        if last_label and 0x30 <= last_label[0] <= 0x39:
            self.add(cat.rfc5321_tldnumeric)

    def outcome(self) -> ParseOutcome:
        err = self.catalog.err
        return ParseOutcome(
            diagnosis=self.worst,
            local_part=self.local_part.decode("utf-8", errors="replace"),
            domain=self.domain.decode("utf-8", errors="replace"),
            literal=None if self.literal is None else self.literal.decode("utf-8", errors="replace"),
            is_valid=self.worst.category.value < err.value,
            diagnoses=tuple(self.statuses),
        )


class EmailValidator:
    """
    Grades email addresses against RFC 5321 and RFC 5322.

    The validator only holds the (read-only) catalog; every call to
    ``evaluate`` is independent, so one instance can be shared freely.
    """

    def __init__(self, catalog: DiagnosisCatalog | None = None, check_dns: bool | None = None) -> None:
        self.catalog = catalog if catalog is not None else get_catalog()
        if check_dns is None:
            check_dns = get_settings().check_dns
        if check_dns:
            logger.warning("dns_check_not_supported")

    def evaluate(self, address: str | bytes) -> ParseOutcome:
        """
        Check that an email address conforms to RFCs 5321, 5322 and others.

        Args:
            address: The address; text is encoded as UTF-8 before scanning

        Returns:
            ParseOutcome with the worst diagnosis and the decomposed address
        """
        data = address.encode("utf-8") if isinstance(address, str) else bytes(address)

        scan = _Scan(data, self.catalog)
        scan.run()
        outcome = scan.outcome()

        logger.bind(
            diagnosis=outcome.diagnosis.id,
            valid=outcome.is_valid,
            length=len(data),
        ).debug("email_evaluated")
        return outcome


_default_validator: EmailValidator | None = None


def evaluate(address: str | bytes) -> ParseOutcome:
    """Evaluate an address with the default catalog."""
    global _default_validator
    if _default_validator is None:
        _default_validator = EmailValidator()
    return _default_validator.evaluate(address)
