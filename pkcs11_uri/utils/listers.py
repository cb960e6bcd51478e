from logging import Logger

import PyKCS11

from pkcs11_uri.sessions.PKCS11_uri_session import PKCS11URISession
from pkcs11_uri.uri.PKCS11_uri import PKCS11Uri
from pkcs11_uri.utils.token_properties import TokenProperties


# Support function to list URIs of initialized tokens in a module
def list_token_uris(
    pksc11_lib: str,
    include_library: bool = False,
    include_slot: bool = False,
    with_module_path: bool = True,
):
    library = PyKCS11.PyKCS11Lib()
    library.load(pksc11_lib)
    library_info = library.getInfo()
    slots = library.getSlotList(tokenPresent=True)
    query = {"module-path": pksc11_lib} if with_module_path else None
    for sl in slots:
        properties = TokenProperties.read_slot(library, sl, library_info)
        if properties.is_initialized():
            yield properties.to_uri(include_library, include_slot, query)


# Support function to list URIs of the objects a URI selects
def list_object_uris(
    uri: PKCS11Uri | str,
    pksc11_lib: str | None = None,
    logger: Logger | None = None,
):
    with PKCS11URISession(uri, pksc11_lib=pksc11_lib, logger=logger) as token:
        if token is not None:
            for pk11object in token.find_objects():
                yield pk11object.to_uri()
