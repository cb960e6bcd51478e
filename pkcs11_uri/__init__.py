from pkcs11_uri.card_token.PKCS11_uri_object import PKCS11UriObject
from pkcs11_uri.card_token.PKCS11_uri_token import PKCS11UriToken
from pkcs11_uri.sessions.PKCS11_uri_session import PKCS11URISession
from pkcs11_uri.uri.PKCS11_uri import (
    PKCS11Uri,
    PKCS11UriAttributes,
    parse,
    to_string,
    validate,
)
from pkcs11_uri.uri.PKCS11_uri_attributes import ObjectClass, Version
from pkcs11_uri.uri.PKCS11_uri_errors import (
    ParseErrorKinds,
    PKCS11UriParseError,
    PKCS11UriSessionError,
)
from pkcs11_uri.uri.PKCS11_uri_tokenizer import (
    MAX_URI_LENGTH,
    Components,
    RawAttribute,
    tokenize,
)
from pkcs11_uri.utils.listers import list_object_uris, list_token_uris
from pkcs11_uri.utils.pin_4_token import Pin4Token, PinTypes
