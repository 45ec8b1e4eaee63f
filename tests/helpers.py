import tempfile
from contextlib import contextmanager
from unittest import mock

import mongomock
from pymongo.errors import ServerSelectionTimeoutError

from backend.app import create_app
from backend.store import Store


def make_app(**config):
    frontend = tempfile.mkdtemp()
    with open(f"{frontend}/index.html", "w") as fh:
        fh.write("<html>plant catalog</html>")
    settings = {"TESTING": True, "FORCE_HTTPS": False, "FRONTEND_FOLDER": frontend}
    settings.update(config)
    return create_app(settings, mongo_client=mongomock.MongoClient())


def sign_up(client, username="alice", email="a@x.com", password="pw1"):
    return client.post("/signup", json={"email": email, "username": username,
                                        "password": password})


@contextmanager
def store_down(collection, method):
    """Make ``Store.<collection>.<method>`` raise as if MongoDB went away."""
    with mock.patch.object(Store, collection, new_callable=mock.PropertyMock) as prop:
        getattr(prop.return_value, method).side_effect = ServerSelectionTimeoutError("down")
        yield
