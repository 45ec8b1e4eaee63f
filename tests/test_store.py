import unittest
from unittest import mock

import mongomock
from flask import Flask
from pymongo.errors import ServerSelectionTimeoutError

from backend.app import create_app
from backend.models import ValidationFailure
from backend.store import Store


def _app():
    app = Flask(__name__)
    app.config.update(MONGO_URI="mongodb://127.0.0.1:1/", MONGO_DB_NAME="plant_catalog",
                      MONGO_TIMEOUT_MS=300)
    return app


class StoreLifecycleTests(unittest.TestCase):
    def test_unreachable_server_aborts_startup(self):
        with mock.patch("backend.store.MongoClient") as client_cls:
            client_cls.return_value.server_info.side_effect = ServerSelectionTimeoutError("down")
            with self.assertRaises(ServerSelectionTimeoutError):
                create_app({"TESTING": True, "MONGO_URI": "mongodb://127.0.0.1:1/",
                            "MONGO_TIMEOUT_MS": 300})
        client_cls.assert_called_once_with("mongodb://127.0.0.1:1/",
                                           serverSelectionTimeoutMS=300, tz_aware=True)

    def test_connects_and_registers(self):
        app = _app()
        client = mongomock.MongoClient()
        with mock.patch("backend.store.MongoClient", return_value=client) as client_cls, \
                mock.patch.object(client, "server_info", return_value={}, create=True) as ping:
            store = Store(app)
        client_cls.assert_called_once_with("mongodb://127.0.0.1:1/",
                                           serverSelectionTimeoutMS=300, tz_aware=True)
        ping.assert_called_once_with()
        self.assertIs(app.extensions["store"], store)
        self.assertEqual(store.db.name, "plant_catalog")
        index_keys = [spec["key"] for spec in store.users.index_information().values()]
        self.assertIn([("email", 1)], index_keys)
        self.assertIn([("username", 1)], index_keys)

    def test_close_releases_client(self):
        client = mongomock.MongoClient()
        store = Store(_app(), client)
        with mock.patch.object(client, "close") as close:
            store.close()
        close.assert_called_once_with()
        self.assertIsNone(store.client)
        self.assertIsNone(store.db)

        store.close()

    def test_collection_by_name(self):
        store = Store(_app(), mongomock.MongoClient())
        store.collection("Roses").insert_one({"commonName": "Rose"})
        self.assertEqual(store.db["Roses"].count_documents({}), 1)

    def test_duplicate_user_is_validation_failure(self):
        store = Store(_app(), mongomock.MongoClient())
        store.insert_user({"email": "a@x.com", "username": "alice", "password": "x"})
        with self.assertRaises(ValidationFailure):
            store.insert_user({"email": "a@x.com", "username": "bob", "password": "x"})


if __name__ == "__main__":
    unittest.main()
