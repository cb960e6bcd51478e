import re
from enum import Enum
from typing import Any, Callable, NamedTuple

from .PKCS11_uri_errors import ParseErrorKinds, PKCS11UriParseError
from .PKCS11_uri_tokenizer import Components, component_literals, percent_encode


class ObjectClass(Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    CERTIFICATE = "cert"
    SECRET_KEY = "secret-key"
    DATA = "data"


# "library-version" is "M" or "M.N", both numbers are one byte in size.
# "M" is major version "M" and minor version "0".
class Version(NamedTuple):
    major: int
    minor: int = 0

    def __str__(self) -> str:
        return "{0}.{1}".format(self.major, self.minor)


class ValueTypes(Enum):
    TEXT = 1
    BYTES = 2
    OBJECT_CLASS = 3
    VERSION = 4
    NUMBER = 5


class AttributeDefinition(NamedTuple):
    name: str
    component: Components | None
    value_type: ValueTypes


# Table of recognized attributes in canonical serialization order
_attribute_table = [
    AttributeDefinition("library-manufacturer", Components.PATH, ValueTypes.TEXT),
    AttributeDefinition("library-description", Components.PATH, ValueTypes.TEXT),
    AttributeDefinition("library-version", Components.PATH, ValueTypes.VERSION),
    AttributeDefinition("slot-manufacturer", Components.PATH, ValueTypes.TEXT),
    AttributeDefinition("slot-description", Components.PATH, ValueTypes.TEXT),
    AttributeDefinition("slot-id", Components.PATH, ValueTypes.NUMBER),
    AttributeDefinition("manufacturer", Components.PATH, ValueTypes.TEXT),
    AttributeDefinition("model", Components.PATH, ValueTypes.TEXT),
    AttributeDefinition("serial", Components.PATH, ValueTypes.TEXT),
    AttributeDefinition("token", Components.PATH, ValueTypes.TEXT),
    AttributeDefinition("object", Components.PATH, ValueTypes.TEXT),
    AttributeDefinition("type", Components.PATH, ValueTypes.OBJECT_CLASS),
    AttributeDefinition("id", Components.PATH, ValueTypes.BYTES),
    AttributeDefinition("pin-source", Components.QUERY, ValueTypes.TEXT),
    AttributeDefinition("pin-value", Components.QUERY, ValueTypes.TEXT),
    AttributeDefinition("module-name", Components.QUERY, ValueTypes.TEXT),
    AttributeDefinition("module-path", Components.QUERY, ValueTypes.TEXT),
]

attribute_definitions = {
    definition.name: definition for definition in _attribute_table
}
canonical_order = {
    definition.name: idx for idx, definition in enumerate(_attribute_table)
}

# vendor attributes may live in either component
vendor_definition = AttributeDefinition("x-", None, ValueTypes.TEXT)

_version = re.compile(r"([0-9]+)(?:\.([0-9]+))?")
_number = re.compile(r"[0-9]+")


def _as_str(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    if isinstance(value, str):
        # lone surrogates have no UTF-8 form
        value.encode("utf-8")
        return value
    raise TypeError("Expected text, got {0}".format(type(value).__name__))


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    raise TypeError("Expected bytes, got {0}".format(type(value).__name__))


def _to_object_class(value: Any) -> ObjectClass:
    if isinstance(value, ObjectClass):
        return value
    return ObjectClass(_as_str(value))


def _to_version(value: Any) -> Version:
    if isinstance(value, tuple):
        ret = Version(*value)
    elif isinstance(value, int) and not isinstance(value, bool):
        ret = Version(value)
    else:
        m = _version.fullmatch(_as_str(value))
        if m is None:
            raise ValueError("Version must be M or M.N")
        ret = Version(int(m.group(1)), int(m.group(2) or 0))
    for part in ret:
        if not isinstance(part, int) or not 0 <= part <= 255:
            raise ValueError("Version numbers are one byte in size")
    return ret


def _to_number(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        if value < 0:
            raise ValueError("Number must not be negative")
        return value
    text = _as_str(value)
    if _number.fullmatch(text) is None:
        raise ValueError("Number must be decimal digits")
    return int(text)


_converters: dict[ValueTypes, Callable[[Any], Any]] = {
    ValueTypes.TEXT: _as_str,
    ValueTypes.BYTES: _to_bytes,
    ValueTypes.OBJECT_CLASS: _to_object_class,
    ValueTypes.VERSION: _to_version,
    ValueTypes.NUMBER: _to_number,
}

_encoders: dict[ValueTypes, Callable[[Any], bytes]] = {
    ValueTypes.TEXT: lambda value: value.encode("utf-8"),
    ValueTypes.BYTES: lambda value: value,
    ValueTypes.OBJECT_CLASS: lambda value: value.value.encode("ascii"),
    ValueTypes.VERSION: lambda value: str(value).encode("ascii"),
    ValueTypes.NUMBER: lambda value: str(value).encode("ascii"),
}


# Table entry for a name, vendor names share one text definition
def get_definition(name: str) -> AttributeDefinition | None:
    if name.startswith("x-"):
        return vendor_definition._replace(name=name)
    return attribute_definitions.get(name)


# Convert a decoded URI value (bytes) or a caller supplied value to the
# attribute's value type
def convert_value(
    definition: AttributeDefinition,
    value: Any,
    fragment: str | None = None,
    position: int | None = None,
) -> Any:
    try:
        return _converters[definition.value_type](value)
    except (ValueError, TypeError) as e:
        if definition.value_type is ValueTypes.OBJECT_CLASS:
            kind = ParseErrorKinds.INVALID_TYPE_VALUE
        else:
            kind = ParseErrorKinds.INVALID_ATTRIBUTE_VALUE
        raise PKCS11UriParseError(
            kind,
            "Invalid value for '{0}' attribute".format(definition.name),
            fragment if fragment is not None else repr(value),
            position,
        ) from e


# Serialized (percent-encoded) form of a converted value.
# "id" is binary data and always fully percent-encoded.
def encode_value(
    definition: AttributeDefinition, value: Any, component: Components
) -> str:
    raw = _encoders[definition.value_type](value)
    if definition.value_type is ValueTypes.BYTES:
        return percent_encode(raw)
    return percent_encode(raw, component_literals[component])
