import os
from enum import Enum
from getpass import getpass
from logging import Logger
from typing import Callable
from urllib.parse import unquote, urlsplit

from pkcs11_uri.uri.PKCS11_uri import PKCS11Uri
from pkcs11_uri.uri.PKCS11_uri_errors import PKCS11UriSessionError


class PinTypes(Enum):
    SO_USER = 1
    NORM_USER = 2


def _get_norm_user_pin(name: str) -> str:
    return getpass("Please enter PIN for {0}:".format(name))


def _get_so_user_pin(name: str) -> str:
    return getpass(
        "Please enter security officer PIN(SO PIN) for {0}:".format(name)
    )


_default_calls = {
    PinTypes.NORM_USER: _get_norm_user_pin,
    PinTypes.SO_USER: _get_so_user_pin,
}


def _read_pin_file(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as pin_file:
            line = pin_file.readline()
    except OSError as e:
        raise PKCS11UriSessionError(
            "PIN file {0} can not be read".format(path)
        ) from e
    return line.rstrip("\r\n")


# "pin-source" is implementation specific, supported are
# env:NAME, file:/path (or file:///path, file://localhost/path) and a plain file path
def read_pin_source(pin_source: str) -> str:
    parts = urlsplit(pin_source)
    if parts.scheme == "env":
        value = os.environ.get(parts.path)
        if value is None:
            raise PKCS11UriSessionError(
                "Environment variable {0} is not set".format(parts.path)
            )
        return value
    if parts.scheme == "file":
        # only local files, file://host/path names another machine
        if parts.netloc not in ("", "localhost"):
            raise PKCS11UriSessionError(
                "PIN file on host {0} is not supported".format(parts.netloc)
            )
        return _read_pin_file(unquote(parts.path))
    if parts.scheme == "":
        return _read_pin_file(pin_source)
    raise PKCS11UriSessionError(
        "PIN source {0} is not supported".format(parts.scheme)
    )


class Pin4Token(object):
    def __init__(
        self,
        name: str,
        callbacks: dict[PinTypes, Callable[[str], str]] | None = None,
        pin_value: str | None = None,
        pin_source: str | None = None,
        logger: Logger | None = None,
    ) -> None:
        self._name = name
        self._callbacks = callbacks
        self._pin_value = pin_value
        self._pin_source = pin_source
        self._logger = logger

    @classmethod
    def from_uri(
        cls,
        uri: PKCS11Uri,
        name: str,
        callbacks: dict[PinTypes, Callable[[str], str]] | None = None,
        logger: Logger | None = None,
    ) -> "Pin4Token":
        return cls(name, callbacks, uri.pin_value, uri.pin_source, logger)

    # URI carries a PIN, no need to ask for it
    def has_uri_pin(self) -> bool:
        return self._pin_value is not None or self._pin_source is not None

    def get_pin(self, pin_type: PinTypes) -> str:
        if self._pin_value is not None:
            return self._pin_value
        if self._pin_source is not None:
            if self._logger is not None:
                self._logger.info("Reading PIN from pin-source")
            return read_pin_source(self._pin_source)
        call = None
        if self._callbacks is not None and pin_type in self._callbacks:
            call = self._callbacks[pin_type]
        else:
            call = _default_calls[pin_type]

        if call is None:
            raise PKCS11UriSessionError("Pin callback not set!")
        return call(self._name)
