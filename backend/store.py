from pymongo import ASCENDING, MongoClient
from pymongo.errors import DuplicateKeyError

from .models import ValidationFailure

USERS = "users"
LAYOUTS = "layouts"
COMMENTS = "comments"


class Store:
    """Holds the one MongoDB connection the app uses for its lifetime."""

    def __init__(self, app=None, client=None):
        self.client = None
        self.db = None
        if app is not None:
            self.init_app(app, client)

    def init_app(self, app, client=None):
        if client is None:
            client = MongoClient(app.config["MONGO_URI"],
                                 serverSelectionTimeoutMS=app.config["MONGO_TIMEOUT_MS"],
                                 tz_aware=True)
            # Raises ServerSelectionTimeoutError when the server is unreachable
            client.server_info()
            app.logger.info("Connected to MongoDB")
        self.client = client
        self.db = client[app.config["MONGO_DB_NAME"]]
        self.users.create_index([("email", ASCENDING)], unique=True)
        self.users.create_index([("username", ASCENDING)], unique=True)
        app.extensions["store"] = self

    @property
    def users(self):
        return self.db[USERS]

    @property
    def layouts(self):
        return self.db[LAYOUTS]

    @property
    def comments(self):
        return self.db[COMMENTS]

    def collection(self, name):
        return self.db[name]

    def insert_user(self, doc):
        try:
            return self.users.insert_one(doc)
        except DuplicateKeyError as e:
            raise ValidationFailure("Email or username already registered") from e

    def close(self):
        if self.client is not None:
            self.client.close()
            self.client = None
            self.db = None
