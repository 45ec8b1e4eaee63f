import unittest

from flask import Flask

from backend.credentials import CredentialService


class CredentialServiceTests(unittest.TestCase):
    def setUp(self):
        app = Flask(__name__)
        app.config["BCRYPT_LOG_ROUNDS"] = 10
        self.credentials = CredentialService(app)

    def test_verify_accepts_original_password(self):
        digest = self.credentials.hash("hunter2")
        self.assertNotEqual(digest, "hunter2")
        self.assertTrue(self.credentials.verify("hunter2", digest))

    def test_verify_rejects_other_password(self):
        digest = self.credentials.hash("hunter2")
        self.assertFalse(self.credentials.verify("hunter3", digest))
        self.assertFalse(self.credentials.verify("", digest))

    def test_hash_is_salted_with_cost_factor_ten(self):
        first = self.credentials.hash("same")
        second = self.credentials.hash("same")
        self.assertNotEqual(first, second)
        self.assertTrue(first.startswith("$2b$10$"))

    def test_long_password_uses_first_72_bytes(self):
        password = "p" * 80
        digest = self.credentials.hash(password)
        self.assertTrue(self.credentials.verify(password, digest))
        self.assertTrue(self.credentials.verify("p" * 72, digest))
        self.assertFalse(self.credentials.verify("x" * 80, digest))

    def test_multibyte_password_is_cut_by_bytes(self):
        password = "\u00e9" * 40
        digest = self.credentials.hash(password)
        self.assertTrue(self.credentials.verify(password, digest))
        self.assertTrue(self.credentials.verify("\u00e9" * 36, digest))
        self.assertFalse(self.credentials.verify("e" * 40, digest))


if __name__ == "__main__":
    unittest.main()
