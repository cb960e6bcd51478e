from logging import Logger
from typing import Callable

import PyKCS11

from pkcs11_uri.card_token.PKCS11_uri_token import PKCS11UriToken
from pkcs11_uri.uri.PKCS11_uri import PKCS11Uri
from pkcs11_uri.utils.module_locator import resolve_module
from pkcs11_uri.utils.pin_4_token import Pin4Token, PinTypes
from pkcs11_uri.utils.token_properties import TokenProperties

from .PKCS11_session import PKCS11Session


# contextmanager opening the token a PKCS #11 URI points to
class PKCS11URISession(PKCS11Session):
    def __init__(
        self,
        uri: PKCS11Uri | str,
        norm_user: bool = True,
        pksc11_lib: str | None = None,
        pin_callbacks: dict[PinTypes, Callable[[str], str]] | None = None,
        module_directories: list[str] | None = None,
        rw_session: bool = False,
        logger: Logger | None = None,
    ):
        super().__init__(logger)
        if isinstance(uri, str):
            uri = PKCS11Uri.parse(uri, logger=self._logger)
        self._uri = uri
        self._norm_user = norm_user
        self._pksc11_lib = pksc11_lib
        self._pin_callbacks = pin_callbacks
        self._module_directories = module_directories
        self._rw_session = rw_session

    def _find_token(self, library) -> TokenProperties | None:
        library_info = library.getInfo()
        for sl in library.getSlotList(tokenPresent=True):
            properties = TokenProperties.read_slot(library, sl, library_info)
            if properties.matches(self._uri):
                return properties
        return None

    # Login with the PIN for the token, marks the session for logout only
    # after the login succeeded
    def _login(self, properties: TokenProperties):
        pin = Pin4Token.from_uri(
            self._uri,
            properties.get_label(),
            self._pin_callbacks,
            self._logger,
        )
        if properties.is_login_required() or pin.has_uri_pin():
            if self._norm_user:
                self._session.login(pin.get_pin(PinTypes.NORM_USER))
            else:
                self._session.login(
                    pin.get_pin(PinTypes.SO_USER), PyKCS11.CKU_SO
                )
            self._login_required = True

    # Open session with the token selected by the URI path attributes
    # Logs in with the PIN from the URI or from the PIN callbacks when needed
    def open(self) -> PKCS11UriToken | None:
        module = resolve_module(
            self._uri,
            self._pksc11_lib,
            self._module_directories,
            self._logger,
        )
        library = PyKCS11.PyKCS11Lib()
        library.load(module)
        self._logger.info("PKCS11 module {0} loaded".format(module))
        properties = self._find_token(library)
        if properties is None:
            self._logger.info("No token matches PKCS11 URI")
            return None
        flags = PyKCS11.CKF_SERIAL_SESSION
        if self._rw_session:
            flags = flags | PyKCS11.CKF_RW_SESSION
        self._session = library.openSession(properties.get_slot(), flags)
        if self._session is not None:
            try:
                self._login(properties)
            except BaseException:
                # session is closed without logout, no login took place
                self._session.closeSession()
                self._session = None
                self._login_required = False
                raise
            self._logger.info(
                "PKCS11 session opened for token {0}".format(
                    properties.get_label()
                )
            )
            return PKCS11UriToken(self._session, self._uri, properties)
        return None
