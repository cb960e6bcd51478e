from logging import Logger
from typing import Any, Dict, Iterable, Iterator, Mapping

from .PKCS11_uri_attributes import (
    AttributeDefinition,
    canonical_order,
    convert_value,
    encode_value,
    get_definition,
)
from .PKCS11_uri_errors import ParseErrorKinds, PKCS11UriParseError
from .PKCS11_uri_tokenizer import (
    MAX_URI_LENGTH,
    PKCS11_SCHEME,
    Components,
    RawAttribute,
    check_attribute_name,
    is_vendor_attribute,
    tokenize,
)

_separators = {
    Components.PATH: ";",
    Components.QUERY: "&",
}


# Attributes of one URI component.
# Standard attributes are held at most once, vendor ("x-") attributes
# in insertion order with repetition.
class PKCS11UriAttributes(object):
    def __init__(self, component: Components):
        self._component = component
        self._attributes: Dict[str, Any] = {}
        self._vendor_attributes: list[tuple[str, str]] = []

    # Validates and adds one attribute, used only while a URI is built
    def _add(
        self,
        name: str,
        value: Any,
        fragment: str | None = None,
        position: int | None = None,
    ) -> None:
        check_attribute_name(name, position)
        definition = get_definition(name)
        if is_vendor_attribute(name):
            value = convert_value(definition, value, fragment, position)
            self._vendor_attributes.append((name, value))
            return
        if definition is None:
            raise PKCS11UriParseError(
                ParseErrorKinds.UNKNOWN_ATTRIBUTE,
                "Unknown attribute",
                name,
                position,
            )
        if definition.component is not self._component:
            raise PKCS11UriParseError(
                ParseErrorKinds.MISPLACED_ATTRIBUTE,
                "'{0}' is a {1} attribute".format(
                    name, definition.component.value
                ),
                name,
                position,
            )
        if name in self._attributes:
            raise PKCS11UriParseError(
                ParseErrorKinds.DUPLICATE_ATTRIBUTE,
                "Attribute appears more than once",
                name,
                position,
            )
        self._attributes[name] = convert_value(
            definition, value, fragment, position
        )

    @property
    def component(self) -> Components:
        return self._component

    def get(self, name: str, default: Any = None) -> Any:
        if is_vendor_attribute(name):
            for vendor_name, value in self._vendor_attributes:
                if vendor_name == name:
                    return value
            return default
        return self._attributes.get(name, default)

    def get_all(self, name: str) -> list:
        if is_vendor_attribute(name):
            return [v for n, v in self._vendor_attributes if n == name]
        if name in self._attributes:
            return [self._attributes[name]]
        return []

    def vendor_attributes(self) -> list[tuple[str, str]]:
        return list(self._vendor_attributes)

    # (name, value) pairs in canonical order, vendor attributes last
    def items(self) -> list[tuple[str, Any]]:
        standard = sorted(
            self._attributes.items(), key=lambda item: canonical_order[item[0]]
        )
        return standard + self._vendor_attributes

    def names(self) -> list[str]:
        return [name for name, _ in self.items()]

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        return iter(self.items())

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return name in self._attributes or any(
            n == name for n, _ in self._vendor_attributes
        )

    def __len__(self) -> int:
        return len(self._attributes) + len(self._vendor_attributes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PKCS11UriAttributes):
            return NotImplemented
        return (
            self._component is other._component
            and self._attributes == other._attributes
            and self._vendor_attributes == other._vendor_attributes
        )

    def __hash__(self) -> int:
        return hash(
            (
                self._component,
                frozenset(self._attributes.items()),
                tuple(self._vendor_attributes),
            )
        )

    def __repr__(self) -> str:
        return "PKCS11UriAttributes({0}, {1!r})".format(
            self._component.value, self.items()
        )

    def serialize(self) -> str:
        parts = []
        for name, value in self.items():
            definition: AttributeDefinition = get_definition(name)
            parts.append(
                "{0}={1}".format(
                    name, encode_value(definition, value, self._component)
                )
            )
        return _separators[self._component].join(parts)


def _pairs(attributes: Mapping[str, Any] | Iterable | None) -> list:
    if attributes is None:
        return []
    if isinstance(attributes, Mapping):
        return list(attributes.items())
    # text is not a sequence of pairs, unparsed URI parts included
    if isinstance(attributes, (str, bytes, bytearray)):
        raise PKCS11UriParseError(
            ParseErrorKinds.MALFORMED_ATTRIBUTE,
            "Attributes must be a mapping or (name, value) pairs",
            repr(attributes),
        )
    ret = []
    for pair in attributes:
        if not isinstance(pair, (tuple, list)) or len(pair) != 2:
            raise PKCS11UriParseError(
                ParseErrorKinds.MALFORMED_ATTRIBUTE,
                "Attribute must be a (name, value) pair",
                repr(pair),
            )
        ret.append(pair)
    return ret


def _build_attributes(
    component: Components, attributes: Mapping[str, Any] | Iterable | None
) -> PKCS11UriAttributes:
    ret = PKCS11UriAttributes(component)
    for name, value in _pairs(attributes):
        ret._add(name, value)
    return ret


def _path_attribute(name: str) -> property:
    return property(lambda self: self._path_attributes.get(name))


def _query_attribute(name: str) -> property:
    return property(lambda self: self._query_attributes.get(name))


# Parsed RFC 7512 PKCS #11 URI, immutable once built
class PKCS11Uri(object):
    def __init__(
        self,
        path_attributes: PKCS11UriAttributes | None = None,
        query_attributes: PKCS11UriAttributes | None = None,
    ):
        if path_attributes is None:
            path_attributes = PKCS11UriAttributes(Components.PATH)
        if query_attributes is None:
            query_attributes = PKCS11UriAttributes(Components.QUERY)
        if path_attributes.component is not Components.PATH:
            raise ValueError("path_attributes must hold path attributes")
        if query_attributes.component is not Components.QUERY:
            raise ValueError("query_attributes must hold query attributes")
        self._path_attributes = path_attributes
        self._query_attributes = query_attributes

    @classmethod
    def parse(
        cls,
        uri_str: str,
        max_length: int | None = MAX_URI_LENGTH,
        logger: Logger | None = None,
    ) -> "PKCS11Uri":
        return parse(uri_str, max_length, logger)

    # Build a URI from attributes given as a mapping or as (name, value) pairs.
    # Values may be typed (bytes, ObjectClass, Version, int) or text.
    @classmethod
    def from_attributes(
        cls,
        path: Mapping[str, Any] | Iterable | None = None,
        query: Mapping[str, Any] | Iterable | None = None,
    ) -> "PKCS11Uri":
        return cls(
            _build_attributes(Components.PATH, path),
            _build_attributes(Components.QUERY, query),
        )

    # Copy of the URI with attributes replaced, a None value removes the attribute.
    # A vendor attribute given here replaces all earlier values of that name.
    def replace(
        self,
        path: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
    ) -> "PKCS11Uri":
        return PKCS11Uri(
            _replace_attributes(self._path_attributes, path),
            _replace_attributes(self._query_attributes, query),
        )

    @property
    def scheme(self) -> str:
        return PKCS11_SCHEME

    @property
    def path_attributes(self) -> PKCS11UriAttributes:
        return self._path_attributes

    @property
    def query_attributes(self) -> PKCS11UriAttributes:
        return self._query_attributes

    # token and slot
    token_label = _path_attribute("token")
    manufacturer = _path_attribute("manufacturer")
    model = _path_attribute("model")
    serial = _path_attribute("serial")
    slot_id = _path_attribute("slot-id")
    slot_description = _path_attribute("slot-description")
    slot_manufacturer = _path_attribute("slot-manufacturer")
    # module
    library_manufacturer = _path_attribute("library-manufacturer")
    library_description = _path_attribute("library-description")
    library_version = _path_attribute("library-version")
    # object
    object_label = _path_attribute("object")
    object_id = _path_attribute("id")
    object_type = _path_attribute("type")
    # query
    pin_source = _query_attribute("pin-source")
    pin_value = _query_attribute("pin-value")
    module_name = _query_attribute("module-name")
    module_path = _query_attribute("module-path")

    def vendor_attributes(self) -> list[tuple[str, str]]:
        return (
            self._path_attributes.vendor_attributes()
            + self._query_attributes.vendor_attributes()
        )

    def to_string(self) -> str:
        return to_string(self)

    def __str__(self) -> str:
        return to_string(self)

    def __repr__(self) -> str:
        # pin-value is not shown
        query = self._query_attributes.names()
        return "PKCS11Uri(path={0!r}, query={1!r})".format(
            self._path_attributes.items(), query
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PKCS11Uri):
            return NotImplemented
        return (
            self._path_attributes == other._path_attributes
            and self._query_attributes == other._query_attributes
        )

    def __hash__(self) -> int:
        return hash((self._path_attributes, self._query_attributes))


def _replace_attributes(
    attributes: PKCS11UriAttributes, changes: Mapping[str, Any] | None
) -> PKCS11UriAttributes:
    if not changes:
        return attributes
    pairs = [(n, v) for n, v in attributes.items() if n not in changes]
    pairs.extend((n, v) for n, v in changes.items() if v is not None)
    return _build_attributes(attributes.component, pairs)


def validate(
    scheme: str,
    path_pairs: Iterable[RawAttribute],
    query_pairs: Iterable[RawAttribute],
    logger: Logger | None = None,
) -> PKCS11Uri:
    """Map tokenized attributes onto the attribute table.

    Checks placement, cardinality and values of every attribute and returns
    the PKCS11Uri; raises PKCS11UriParseError on the first violation.
    """
    if scheme.lower() != PKCS11_SCHEME:
        raise PKCS11UriParseError(
            ParseErrorKinds.UNKNOWN_SCHEME,
            "URI should have pkcs11 scheme",
            scheme,
            0,
        )
    path_attributes = PKCS11UriAttributes(Components.PATH)
    for pair in path_pairs:
        path_attributes._add(pair.name, pair.value, pair.segment, pair.position)
    query_attributes = PKCS11UriAttributes(Components.QUERY)
    for pair in query_pairs:
        query_attributes._add(pair.name, pair.value, pair.segment, pair.position)
    if logger is not None:
        logger.debug(
            "Validated PKCS11 URI path attributes %s, query attributes %s",
            path_attributes.names(),
            query_attributes.names(),
        )
    return PKCS11Uri(path_attributes, query_attributes)


def parse(
    uri_str: str,
    max_length: int | None = MAX_URI_LENGTH,
    logger: Logger | None = None,
) -> PKCS11Uri:
    scheme, path_pairs, query_pairs = tokenize(uri_str, max_length, logger)
    return validate(scheme, path_pairs, query_pairs, logger)


# Canonical form: attributes in table order, vendor attributes last,
# "?" only when there are query attributes
def to_string(uri: PKCS11Uri) -> str:
    ret = "{0}:{1}".format(PKCS11_SCHEME, uri.path_attributes.serialize())
    if len(uri.query_attributes) > 0:
        ret = "{0}?{1}".format(ret, uri.query_attributes.serialize())
    return ret
