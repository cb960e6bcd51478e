from enum import Enum


class ParseErrorKinds(Enum):
    MISSING_SCHEME = "MissingScheme"
    UNKNOWN_SCHEME = "UnknownScheme"
    MALFORMED_ATTRIBUTE = "MalformedAttribute"
    INVALID_ATTRIBUTE_NAME = "InvalidAttributeName"
    INVALID_PERCENT_ENCODING = "InvalidPercentEncoding"
    UNKNOWN_ATTRIBUTE = "UnknownAttribute"
    MISPLACED_ATTRIBUTE = "MisplacedAttribute"
    DUPLICATE_ATTRIBUTE = "DuplicateAttribute"
    INVALID_TYPE_VALUE = "InvalidTypeValue"
    INVALID_ATTRIBUTE_VALUE = "InvalidAttributeValue"
    INPUT_TOO_LONG = "InputTooLong"


# Raised for every URI that can not be parsed or assembled.
# kind is one of ParseErrorKinds, fragment is the offending part of the input
# and position its offset in the input string (None when not known, for
# example when a URI is assembled from attributes).
class PKCS11UriParseError(ValueError):
    def __init__(
        self,
        kind: ParseErrorKinds,
        message: str,
        fragment: str | None = None,
        position: int | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.fragment = fragment
        self.position = position

    def __str__(self) -> str:
        ret = "{0}: {1}".format(self.kind.value, self.message)
        if self.fragment is not None:
            ret = "{0} ({1!r}".format(ret, self.fragment)
            if self.position is not None:
                ret = "{0} at {1}".format(ret, self.position)
            ret = ret + ")"
        return ret


# Raised by URI driven sessions when module, token, PIN or object can not be found
class PKCS11UriSessionError(Exception):
    pass
