from flask_bcrypt import Bcrypt

# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _truncate(plaintext):
    return plaintext.encode("utf-8")[:BCRYPT_MAX_BYTES]


class CredentialService:
    """Salted bcrypt hashing for user passwords.

    The cost factor comes from ``BCRYPT_LOG_ROUNDS``. Each call runs on the
    calling request's thread; bcrypt drops the GIL while it works, so a slow
    hash does not hold up other requests. Passwords are cut to 72 bytes
    before hashing and checking.
    """

    def __init__(self, app=None):
        self._bcrypt = Bcrypt()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self._bcrypt.init_app(app)

    def hash(self, plaintext: str) -> str:
        return self._bcrypt.generate_password_hash(_truncate(plaintext)).decode("utf-8")

    def verify(self, plaintext: str, digest: str) -> bool:
        return self._bcrypt.check_password_hash(digest, _truncate(plaintext))
