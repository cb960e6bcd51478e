from logging import Logger, getLogger


# contextmanager to facilitate connecting to card token
# Subclasses implement open() returning the object the with block works on
class PKCS11Session(object):
    def __init__(self, logger: Logger | None = None):
        # session for interacton with the card
        self._session = None
        # does user need to be logged in to use session
        self._login_required = False
        self._logger = logger if logger is not None else getLogger(__name__)

    def open(self):
        raise NotImplementedError("Just a stub!")

    def is_open(self) -> bool:
        return self._session is not None

    # context manager API
    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.close()

    async def __aenter__(self):
        return self.open()

    async def __aexit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    # Closing work on an open session, logs out when a login was done
    def close(self):
        if self._session is not None:
            if self._login_required:
                self._session.logout()
            self._session.closeSession()
            self._session = None
            self._login_required = False
            self._logger.info("PKCS11 session closed")
