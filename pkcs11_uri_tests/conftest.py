import datetime

import PyKCS11
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID


def _certificate_der() -> bytes:
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "Test cert")])
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(datetime.datetime(2024, 1, 1))
        .not_valid_after(datetime.datetime(2034, 1, 1))
        .sign(key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.DER)


class FakeInfo:
    def __init__(self):
        self.manufacturerID = "SoftHSM".ljust(32)
        self.libraryDescription = "Implementation of PKCS11".ljust(32)
        self.libraryVersion = (2, 6)


class FakeSlotInfo:
    def __init__(self, description):
        self.slotDescription = description.ljust(64)
        self.manufacturerID = "SoftHSM project".ljust(32)
        self.flags = PyKCS11.CKF_TOKEN_PRESENT


class FakeTokenInfo:
    def __init__(self, label, serial, flags):
        self.label = label.ljust(32)
        self.manufacturerID = "SoftHSM project".ljust(32)
        self.model = "SoftHSM v2".ljust(16)
        self.serialNumber = serial.ljust(16)
        self.flags = flags


def _same(stored, wanted) -> bool:
    if isinstance(wanted, (bytes, bytearray)):
        return stored is not None and bytes(stored) == bytes(wanted)
    return stored == wanted


class FakeSession:
    def __init__(self, objects, login_error=None):
        self.objects = objects
        self.login_error = login_error
        self.logins = []
        self.logged_out = False
        self.closed = False

    def login(self, pin, user_type=PyKCS11.CKU_USER):
        if self.login_error is not None:
            raise self.login_error
        self.logins.append((pin, user_type))

    def logout(self):
        self.logged_out = True

    def closeSession(self):
        self.closed = True

    def findObjects(self, template=()):
        return [
            handle
            for handle, attrs in enumerate(self.objects)
            if all(_same(attrs.get(k), v) for k, v in template)
        ]

    def getAttributeValue(self, handle, attr_types):
        attrs = self.objects[handle]
        ret = []
        for attr_type in attr_types:
            value = attrs.get(attr_type)
            if isinstance(value, bytes):
                value = list(value)
            ret.append(value)
        return ret


class FakeToken:
    def __init__(self, slot, label, serial, flags, objects):
        self.slot = slot
        self.slot_info = FakeSlotInfo("Slot {0}".format(slot))
        self.token_info = FakeTokenInfo(label, serial, flags)
        self.objects = objects


class FakeLibrary:
    def __init__(self, tokens):
        self.tokens = {t.slot: t for t in tokens}
        self.loaded = None
        self.sessions = []
        self.login_error = None

    def load(self, path):
        self.loaded = path

    def getInfo(self):
        return FakeInfo()

    def getSlotList(self, tokenPresent=False):
        return list(self.tokens.keys())

    def getSlotInfo(self, slot):
        return self.tokens[slot].slot_info

    def getTokenInfo(self, slot):
        return self.tokens[slot].token_info

    def openSession(self, slot, flags=PyKCS11.CKF_SERIAL_SESSION):
        session = FakeSession(self.tokens[slot].objects, self.login_error)
        self.sessions.append((slot, flags, session))
        return session


@pytest.fixture
def fake_library(monkeypatch):
    tokens = [
        FakeToken(
            0,
            "A token",
            "6f2d1b3c9a8e7d40",
            PyKCS11.CKF_TOKEN_INITIALIZED | PyKCS11.CKF_LOGIN_REQUIRED,
            [
                {
                    PyKCS11.CKA_CLASS: PyKCS11.CKO_PRIVATE_KEY,
                    PyKCS11.CKA_LABEL: "Test key",
                    PyKCS11.CKA_ID: b"\x01",
                },
                {
                    PyKCS11.CKA_CLASS: PyKCS11.CKO_PUBLIC_KEY,
                    PyKCS11.CKA_LABEL: "Test key",
                    PyKCS11.CKA_ID: b"\x01",
                },
                {
                    PyKCS11.CKA_CLASS: PyKCS11.CKO_CERTIFICATE,
                    PyKCS11.CKA_LABEL: "Test cert",
                    PyKCS11.CKA_ID: b"\x01",
                    PyKCS11.CKA_VALUE: _certificate_der(),
                },
            ],
        ),
        FakeToken(
            3,
            "Other token",
            "00000000000000aa",
            PyKCS11.CKF_TOKEN_INITIALIZED,
            [
                {
                    PyKCS11.CKA_CLASS: PyKCS11.CKO_DATA,
                    PyKCS11.CKA_LABEL: "blob",
                    PyKCS11.CKA_ID: b"\x02",
                },
            ],
        ),
        FakeToken(5, "", "", 0, []),
    ]
    library = FakeLibrary(tokens)
    monkeypatch.setattr(PyKCS11, "PyKCS11Lib", lambda: library)
    return library
