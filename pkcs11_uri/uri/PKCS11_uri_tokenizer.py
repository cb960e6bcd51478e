import re
import string
from enum import Enum
from logging import Logger
from typing import NamedTuple

from .PKCS11_uri_errors import ParseErrorKinds, PKCS11UriParseError

PKCS11_SCHEME = "pkcs11"
# Longest URI accepted by default, checked before any splitting
MAX_URI_LENGTH = 4096


class Components(Enum):
    PATH = "path"
    QUERY = "query"


_separators = {
    Components.PATH: ";",
    Components.QUERY: "&",
}

_unreserved = frozenset(string.ascii_letters + string.digits + "-._~")
_reserved_available = frozenset(":[]@!$'()*+,=")

# characters that may stay unencoded in attribute values (RFC 7512 pk11-pchar and pk11-qchar)
component_literals = {
    Components.PATH: _unreserved | _reserved_available | frozenset("&"),
    Components.QUERY: _unreserved | _reserved_available | frozenset("/?|"),
}

_hex_digits = frozenset(string.hexdigits)

# standard names are plain, vendor names are "x-" followed by at least one character
_attribute_name = re.compile(r"(?!x-)[A-Za-z0-9-]+|x-[A-Za-z0-9_-]+")


# One key=value segment as found in the URI, value is percent-decoded.
class RawAttribute(NamedTuple):
    name: str
    value: bytes
    segment: str
    position: int


def is_vendor_attribute(name: str) -> bool:
    return name.startswith("x-") and len(name) > 2


def check_attribute_name(name: str, position: int | None = None) -> None:
    if not isinstance(name, str) or _attribute_name.fullmatch(name) is None:
        raise PKCS11UriParseError(
            ParseErrorKinds.INVALID_ATTRIBUTE_NAME,
            "Invalid attribute name",
            str(name),
            position,
        )


def percent_decode(
    value: str, position: int = 0, literals: frozenset | None = None
) -> bytes:
    """Decode %XX escapes of value to bytes.

    When literals is given every unencoded character must belong to it.
    position is the offset of value in the URI and is only used for errors.
    """
    ret = bytearray()
    idx = 0
    while idx < len(value):
        ch = value[idx]
        if ch == "%":
            digits = value[idx + 1 : idx + 3]
            if len(digits) != 2 or not all(d in _hex_digits for d in digits):
                raise PKCS11UriParseError(
                    ParseErrorKinds.INVALID_PERCENT_ENCODING,
                    "'%' must be followed by two hexadecimal digits",
                    value[idx : idx + 3],
                    position + idx,
                )
            ret.append(int(digits, 16))
            idx += 3
        else:
            if literals is not None and ch not in literals:
                raise PKCS11UriParseError(
                    ParseErrorKinds.MALFORMED_ATTRIBUTE,
                    "Character must be percent-encoded",
                    ch,
                    position + idx,
                )
            ret.extend(ch.encode("utf-8"))
            idx += 1
    return bytes(ret)


# Encode every byte outside literals as %XX with uppercase hex digits
def percent_encode(value: bytes, literals: frozenset = frozenset()) -> str:
    return "".join(
        chr(b) if chr(b) in literals else "%{0:02X}".format(b) for b in value
    )


def _split_segment(
    segment: str, position: int, component: Components
) -> RawAttribute:
    name, separator, value = segment.partition("=")
    if separator == "":
        raise PKCS11UriParseError(
            ParseErrorKinds.MALFORMED_ATTRIBUTE,
            "Attribute has no '=' separator",
            segment,
            position,
        )
    check_attribute_name(name, position)
    decoded = percent_decode(
        value, position + len(name) + 1, component_literals[component]
    )
    return RawAttribute(name, decoded, segment, position)


def _split_component(
    text: str, position: int, component: Components
) -> list[RawAttribute]:
    pairs: list[RawAttribute] = []
    if text == "":
        return pairs
    for segment in text.split(_separators[component]):
        pairs.append(_split_segment(segment, position, component))
        position += len(segment) + 1
    return pairs


def tokenize(
    uri_str: str,
    max_length: int | None = MAX_URI_LENGTH,
    logger: Logger | None = None,
) -> tuple[str, list[RawAttribute], list[RawAttribute]]:
    """Split a PKCS #11 URI into scheme, path attributes and query attributes.

    Attributes are returned in input order without any deduplication.
    Raises PKCS11UriParseError for structurally malformed input.
    """
    if max_length is not None and len(uri_str) > max_length:
        raise PKCS11UriParseError(
            ParseErrorKinds.INPUT_TOO_LONG,
            "URI is longer than {0} characters".format(max_length),
            uri_str[:32],
            max_length,
        )
    scheme, colon, rest = uri_str.partition(":")
    if colon == "" or scheme == "":
        raise PKCS11UriParseError(
            ParseErrorKinds.MISSING_SCHEME, "URI has no scheme", uri_str[:32], 0
        )
    if scheme.lower() != PKCS11_SCHEME:
        raise PKCS11UriParseError(
            ParseErrorKinds.UNKNOWN_SCHEME,
            "URI should have pkcs11 scheme",
            scheme,
            0,
        )
    path_position = len(scheme) + 1
    path, question_mark, query = rest.partition("?")
    path_pairs = _split_component(path, path_position, Components.PATH)
    query_pairs: list[RawAttribute] = []
    if question_mark != "":
        query_pairs = _split_component(
            query, path_position + len(path) + 1, Components.QUERY
        )
    if logger is not None:
        logger.debug(
            "Tokenized PKCS11 URI: %d path and %d query attributes",
            len(path_pairs),
            len(query_pairs),
        )
    return scheme, path_pairs, query_pairs
