from typing import Any, Dict

import PyKCS11

from pkcs11_uri.uri.PKCS11_uri import PKCS11Uri
from pkcs11_uri.uri.PKCS11_uri_attributes import Version

_library_attributes = [
    "library-manufacturer",
    "library-description",
    "library-version",
]
_slot_attributes = ["slot-manufacturer", "slot-description", "slot-id"]


# PyKCS11 returns blank padded strings
def _clean(value: str) -> str:
    return value.strip().strip("\x00").strip()


# Library, slot and token information of one slot, as the path attributes
# a PKCS #11 URI uses to select it
class TokenProperties(object):
    def __init__(self, slot, library_info, slot_info, token_info):
        self._slot = slot
        self._library_info = library_info
        self._slot_info = slot_info
        self._token_info = token_info

    @classmethod
    def read_slot(cls, library, slot, library_info=None) -> "TokenProperties":
        if library_info is None:
            library_info = library.getInfo()
        return cls(
            slot,
            library_info,
            library.getSlotInfo(slot),
            library.getTokenInfo(slot),
        )

    def get_slot(self):
        return self._slot

    def get_label(self) -> str:
        return _clean(self._token_info.label)

    def is_initialized(self) -> bool:
        return self._token_info.flags & PyKCS11.CKF_TOKEN_INITIALIZED != 0

    def is_login_required(self) -> bool:
        return self._token_info.flags & PyKCS11.CKF_LOGIN_REQUIRED != 0

    def get_path_attributes(self) -> Dict[str, Any]:
        major, minor = self._library_info.libraryVersion
        return {
            "library-manufacturer": _clean(self._library_info.manufacturerID),
            "library-description": _clean(
                self._library_info.libraryDescription
            ),
            "library-version": Version(major, minor),
            "slot-manufacturer": _clean(self._slot_info.manufacturerID),
            "slot-description": _clean(self._slot_info.slotDescription),
            "slot-id": int(self._slot),
            "manufacturer": _clean(self._token_info.manufacturerID),
            "model": _clean(self._token_info.model),
            "serial": _clean(self._token_info.serialNumber),
            "token": _clean(self._token_info.label),
        }

    # Token is selected when every library, slot and token attribute
    # present in the URI is equal to the one read from the module
    def matches(self, uri: PKCS11Uri) -> bool:
        for name, value in self.get_path_attributes().items():
            wanted = uri.path_attributes.get(name)
            if wanted is not None and wanted != value:
                return False
        return True

    # URI identifying this token, empty values are left out
    def to_uri(
        self,
        include_library: bool = False,
        include_slot: bool = False,
        query: Dict[str, Any] | None = None,
    ) -> PKCS11Uri:
        path = {}
        for name, value in self.get_path_attributes().items():
            if name in _library_attributes and not include_library:
                continue
            if name in _slot_attributes and not include_slot:
                continue
            if value == "":
                continue
            path[name] = value
        return PKCS11Uri.from_attributes(path, query)
