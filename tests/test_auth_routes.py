import unittest
from unittest import mock

import redis

from app import create_app
from identity import SessionStore, create_robust_redis_client
from models import db
from models.user import User
from tests.helpers import FakeRedis, IsolatedConfig, auth_header


class TestAuthRoutes(unittest.TestCase):
    def setUp(self):
        # Create a test Flask application
        self.app = create_app(IsolatedConfig)
        self.redis = FakeRedis()
        self.app.session_store = SessionStore(self.redis, 3600)

        # Create a test client
        self.client = self.app.test_client()

    def tearDown(self):
        # Clean up the database
        with self.app.app_context():
            db.session.remove()
            db.drop_all()  # Drop all tables

    def _register(self, username="alice", password="password123"):
        return self.client.post(
            "/auth/register",
            json={"username": username, "password": password},
        )

    def test_register(self):
        response = self._register()
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json["message"], "User registered")
        self.assertEqual(response.json["user"]["username"], "alice")
        self.assertTrue(response.json["token"])

        # Verify the user was added with a hashed password
        with self.app.app_context():
            user = User.query.filter_by(username="alice").first()
            self.assertIsNotNone(user)
            self.assertNotEqual(user.password_hash, "password123")
            self.assertTrue(user.verify_password("password123"))

    def test_register_stores_session_with_ttl(self):
        token = self._register().json["token"]
        key = f"{SessionStore.KEY_PREFIX}{token}"
        self.assertIn(key, self.redis.data)
        self.assertEqual(self.redis.ttls[key], 3600)

    def test_register_duplicate_username(self):
        self._register()
        response = self._register(password="other")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json["error"], "Username already exists")

    def test_register_requires_fields(self):
        for body in ({}, {"username": "alice"}, {"username": " ", "password": "x"}):
            response = self.client.post("/auth/register", json=body)
            self.assertEqual(response.status_code, 400)
            self.assertEqual(
                response.json["error"], "Username and password required"
            )

    def test_login(self):
        self._register()
        response = self.client.post(
            "/auth/login",
            json={"username": "alice", "password": "password123"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json["message"], "Logged in")

        me = self.client.get(
            "/auth/me", headers=auth_header(response.json["token"])
        )
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json["user"]["username"], "alice")

    def test_login_with_wrong_password(self):
        self._register()
        for body in (
            {"username": "alice", "password": "wrong"},
            {"username": "nobody", "password": "password123"},
        ):
            response = self.client.post("/auth/login", json=body)
            self.assertEqual(response.status_code, 401)
            self.assertEqual(response.json["error"], "Invalid credentials")

    def test_me_requires_login(self):
        response = self.client.get("/auth/me")
        self.assertEqual(response.status_code, 401)

    def test_logout_revokes_token(self):
        token = self._register().json["token"]

        response = self.client.post("/auth/logout", headers=auth_header(token))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json["message"], "Logged out")

        response = self.client.get("/library/watchlist", headers=auth_header(token))
        self.assertEqual(response.status_code, 401)

        # Logging out twice, or without a token, still succeeds
        self.assertEqual(
            self.client.post("/auth/logout", headers=auth_header(token)).status_code,
            200,
        )
        self.assertEqual(self.client.post("/auth/logout").status_code, 200)

    def test_session_store_outage_is_a_server_error(self):
        broken = mock.Mock()
        broken.get.side_effect = redis.exceptions.ConnectionError("refused")
        self.app.session_store = SessionStore(broken, 3600)

        response = self.client.get(
            "/library/watchlist", headers=auth_header("some-token")
        )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json["error"], "Server error")

    def test_health_check(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertIn("running", response.json["status"])


class TestSessionStore(unittest.TestCase):
    def setUp(self):
        self.redis = FakeRedis()
        self.store = SessionStore(self.redis, 60)

    def test_issue_and_resolve(self):
        token = self.store.issue(42)
        self.assertEqual(self.store.resolve(token), 42)
        self.assertIsNone(self.store.resolve("unknown"))

    def test_tokens_are_unique(self):
        self.assertNotEqual(self.store.issue(1), self.store.issue(1))

    def test_revoke(self):
        token = self.store.issue(42)
        self.store.revoke(token)
        self.assertIsNone(self.store.resolve(token))

    @mock.patch("identity.redis.Redis")
    def test_redis_client_uses_supported_options(self, redis_cls):
        create_robust_redis_client(
            {
                "REDIS_HOST": "localhost",
                "REDIS_PORT": 6379,
                "REDIS_DB": 0,
                "REDIS_DECODE_RESPONSES": True,
            }
        )

        kwargs = redis_cls.call_args.kwargs
        self.assertNotIn("retry_on_timeout", kwargs)
        self.assertTrue(kwargs["socket_keepalive"])
        self.assertEqual(kwargs["health_check_interval"], 30)

    def test_malformed_entry_is_ignored(self):
        self.redis.data[f"{SessionStore.KEY_PREFIX}bad"] = "not-a-number"
        self.assertIsNone(self.store.resolve("bad"))


if __name__ == "__main__":
    unittest.main()
