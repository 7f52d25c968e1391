import os

from config import Config


class IsolatedConfig(Config):
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_FLASK_DB_URL", "sqlite://")
    SQLALCHEMY_ENGINE_OPTIONS = {}
    TESTING = True
    OMDB_API_KEY = "test-key"
    LOG_LEVEL = "WARNING"


class FakeRedis:
    """In-memory stand-in for the few Redis commands the session store uses."""

    def __init__(self):
        self.data = {}
        self.ttls = {}

    def setex(self, key, ttl, value):
        self.data[key] = str(value)
        self.ttls[key] = ttl
        return True

    def get(self, key):
        return self.data.get(key)

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}
