"""Address-literal classification for domain literals.

RFC 5321 section 4.1.3:

    IPv4-address-literal  = Snum 3("."  Snum)
    IPv6-address-literal  = "IPv6:" IPv6-addr
    IPv6-addr      = IPv6-full / IPv6-comp / IPv6v4-full / IPv6v4-comp

An IPv4 tail on an IPv6 literal is swapped for two zero groups so that the
whole thing can be checked by counting hextet groups.
"""

import re

from addrspec.validation.catalog import DiagnosisCatalog, ValidationDiagnosis

IPV4_TAIL = re.compile(
    r"\b(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}"
    r"(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)$"
)
HEX_GROUP = re.compile(r"^[0-9A-Fa-f]{0,4}$")

IPV6_TAG = "IPv6:"
DOUBLE_COLON = "::"
IPV6_MAX_GROUPS = 8


def classify_address_literal(
    literal: str, catalog: DiagnosisCatalog
) -> list[ValidationDiagnosis]:
    """
    Classify the content of a domain literal (without the brackets).

    Returns every diagnosis raised by the checks; the caller keeps the worst.
    A bare dotted quad or a well-formed IPv6 literal yields
    RFC5321_ADDRESSLITERAL, anything without the ``IPv6:`` tag yields
    RFC5322_DOMAINLITERAL.
    """
    address = literal
    ipv4 = IPV4_TAIL.search(address)
    if ipv4:
        if ipv4.start() == 0:
            return [catalog.rfc5321_addressliteral]
        address = address[: ipv4.start()] + "0:0"

    if not address.startswith(IPV6_TAG):
        return [catalog.rfc5322_domainliteral]

    return _classify_ipv6(address[len(IPV6_TAG) :], catalog)


def _classify_ipv6(ipv6: str, catalog: DiagnosisCatalog) -> list[ValidationDiagnosis]:
    found: list[ValidationDiagnosis] = []
    groups = ipv6.split(":")
    max_groups = IPV6_MAX_GROUPS

    elision = ipv6.find(DOUBLE_COLON)
    if elision == -1:
        # Without "::" every group must be spelled out
        if len(groups) != max_groups:
            found.append(catalog.rfc5322_ipv6_grpcount)
    elif elision != ipv6.rfind(DOUBLE_COLON):
        found.append(catalog.rfc5322_ipv6_2x2xcolon)
    else:
        if elision == 0 or elision == len(ipv6) - 2:
            # "::" at either end leaves one more empty group after the split
            max_groups += 1

        if len(groups) > max_groups:
            found.append(catalog.rfc5322_ipv6_maxgrps)
        elif len(groups) == max_groups:
            # "::" standing in for a single zero group
            found.append(catalog.rfc5321_ipv6deprecated)

    if ipv6[:1] == ":" and ipv6[1:2] != ":":
        found.append(catalog.rfc5322_ipv6_colonstrt)
    elif ipv6[-1:] == ":" and ipv6[-2:-1] != ":":
        found.append(catalog.rfc5322_ipv6_colonend)
    elif any(not HEX_GROUP.match(group) for group in groups):
        found.append(catalog.rfc5322_ipv6_badchar)
    else:
        found.append(catalog.rfc5321_addressliteral)

    return found
