import PyKCS11
from cryptography import x509
from cryptography.hazmat.primitives import serialization

from pkcs11_uri.uri.PKCS11_uri import PKCS11Uri
from pkcs11_uri.uri.PKCS11_uri_attributes import ObjectClass

object_classes = {
    ObjectClass.PUBLIC: PyKCS11.CKO_PUBLIC_KEY,
    ObjectClass.PRIVATE: PyKCS11.CKO_PRIVATE_KEY,
    ObjectClass.CERTIFICATE: PyKCS11.CKO_CERTIFICATE,
    ObjectClass.SECRET_KEY: PyKCS11.CKO_SECRET_KEY,
    ObjectClass.DATA: PyKCS11.CKO_DATA,
}
_uri_object_classes = {v: k for k, v in object_classes.items()}


# Object on the token found through a PKCS #11 URI
class PKCS11UriObject(object):
    def __init__(self, session, object_ref, token_uri: PKCS11Uri | None = None):
        # session for interacton with the card
        self._session = session
        # object handle
        self._object = object_ref
        # URI of the token holding the object
        self._token_uri = token_uri

    def get_handle(self):
        return self._object

    # Get id and label of the object
    def get_id_and_label(self) -> tuple:
        if self._session is not None and self._object is not None:
            attributes = self._session.getAttributeValue(
                self._object, [PyKCS11.CKA_ID, PyKCS11.CKA_LABEL]
            )
            label = attributes[1]
            if label is not None:
                label = label.strip().strip("\x00")
            return bytes(attributes[0]), label
        return None, None

    # Object class as used by the "type" URI attribute, None for
    # classes the URI can not express
    def get_object_class(self) -> ObjectClass | None:
        if self._session is not None and self._object is not None:
            attributes = self._session.getAttributeValue(
                self._object, [PyKCS11.CKA_CLASS]
            )
            return _uri_object_classes.get(attributes[0])
        return None

    # Certificate in PEM for certificate objects
    def certificate(self) -> bytes | None:
        if self.get_object_class() is not ObjectClass.CERTIFICATE:
            return None
        attributes = self._session.getAttributeValue(
            self._object, [PyKCS11.CKA_VALUE]
        )
        cert_o = x509.load_der_x509_certificate(bytes(attributes[0]))
        return cert_o.public_bytes(encoding=serialization.Encoding.PEM)

    # URI pointing at this object: token attributes plus object, id and type
    def to_uri(self) -> PKCS11Uri:
        uri = self._token_uri if self._token_uri is not None else PKCS11Uri()
        keyid, label = self.get_id_and_label()
        return uri.replace(
            path={
                "object": label or None,
                "id": keyid,
                "type": self.get_object_class(),
            }
        )
