"""Request identity resolution.

Clients authenticate with ``Authorization: Bearer <token>``. Tokens are
opaque keys into a server-side session store kept in Redis; Flask-Login's
request loader turns a live token into ``current_user``. Library routes
only ever see the resolved user id, injected by ``owner_required``.
"""

import logging
import secrets
from functools import wraps

import redis
from flask import current_app
from flask_login import LoginManager, UserMixin, current_user

from errors import StorageUnavailable, Unauthorized


logger = logging.getLogger(__name__)

login_manager = LoginManager()


class Identity(UserMixin):
    """An authenticated caller; carries nothing but the user id."""

    def __init__(self, user_id):
        self.id = user_id

    def __repr__(self):
        return f"<Identity id={self.id}>"


class SessionStore:
    KEY_PREFIX = "movie-session-"

    def __init__(self, redis_client, ttl_seconds):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds

    def issue(self, user_id):
        token = secrets.token_urlsafe(32)
        try:
            self.redis.setex(self._key(token), self.ttl_seconds, user_id)
        except redis.exceptions.RedisError as exc:
            logger.error("Could not store session for user %s: %s", user_id, exc)
            raise StorageUnavailable(str(exc)) from exc
        return token

    def resolve(self, token):
        """Return the user id behind ``token``, or ``None`` if it is unknown or expired."""
        try:
            user_id = self.redis.get(self._key(token))
        except redis.exceptions.RedisError as exc:
            logger.error("Could not look up session: %s", exc)
            raise StorageUnavailable(str(exc)) from exc
        if user_id is None:
            return None
        try:
            return int(user_id)
        except (TypeError, ValueError):
            logger.warning("Discarding malformed session entry")
            return None

    def revoke(self, token):
        try:
            self.redis.delete(self._key(token))
        except redis.exceptions.RedisError as exc:
            logger.error("Could not revoke session: %s", exc)
            raise StorageUnavailable(str(exc)) from exc

    def _key(self, token):
        return f"{self.KEY_PREFIX}{token}"


def create_robust_redis_client(config):
    return redis.Redis(
        host=config["REDIS_HOST"],
        port=config["REDIS_PORT"],
        db=config["REDIS_DB"],
        decode_responses=config["REDIS_DECODE_RESPONSES"],
        # The following help avoid stale connections in Redis:
        socket_keepalive=True,
        health_check_interval=30,
        socket_connect_timeout=2,
    )


def bearer_token(request):
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


@login_manager.request_loader
def load_identity_from_request(request):
    token = bearer_token(request)
    if token is None:
        return None
    user_id = current_app.session_store.resolve(token)
    if user_id is None:
        return None
    return Identity(user_id)


def owner_required(view):
    """Reject unauthenticated calls and pass the caller's id as ``owner``."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated:
            raise Unauthorized()
        return view(*args, owner=current_user.id, **kwargs)

    return wrapper
