import PyKCS11

from pkcs11_uri.uri.PKCS11_uri import PKCS11Uri
from pkcs11_uri.utils.token_properties import TokenProperties

from .PKCS11_uri_object import PKCS11UriObject, object_classes


# Token representation, selected and opened through a PKCS #11 URI
class PKCS11UriToken(object):
    def __init__(self, session, uri: PKCS11Uri, properties: TokenProperties):
        # session for interacton with the card
        self._session = session
        self._uri = uri
        self._properties = properties

    def get_label(self) -> str:
        return self._properties.get_label()

    # URI of the token itself, without object or query attributes
    def token_uri(self) -> PKCS11Uri:
        return self._properties.to_uri()

    # Search template from the "object", "id" and "type" attributes
    def _get_template(self) -> list:
        template = []
        if self._uri.object_type is not None:
            template.append(
                (PyKCS11.CKA_CLASS, object_classes[self._uri.object_type])
            )
        if self._uri.object_label is not None:
            template.append((PyKCS11.CKA_LABEL, self._uri.object_label))
        if self._uri.object_id is not None:
            template.append((PyKCS11.CKA_ID, self._uri.object_id))
        return template

    # All objects matching the URI
    def find_objects(self) -> list[PKCS11UriObject]:
        if self._session is None:
            return []
        token_uri = self.token_uri()
        return [
            PKCS11UriObject(self._session, pk11object, token_uri)
            for pk11object in self._session.findObjects(self._get_template())
        ]

    # First object matching the URI
    def find_object(self) -> PKCS11UriObject | None:
        objects = self.find_objects()
        if len(objects) > 0:
            return objects[0]
        return None
