import logging

from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from errors import Conflict, InvalidArgument, StorageUnavailable, Unauthorized
from identity import bearer_token, owner_required
from models import db
from models.user import User


logger = logging.getLogger(__name__)

auth_api_bp = Blueprint("auth", __name__)


def _credentials():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    username = data.get("username") or ""
    password = data.get("password") or ""
    if not isinstance(username, str) or not isinstance(password, str):
        raise InvalidArgument("Username and password required")
    username, password = username.strip(), password.strip()
    if not username or not password:
        raise InvalidArgument("Username and password required")
    return username, password


# =================================
#          Auth Endpoints
# =================================


@auth_api_bp.route("/auth/register", methods=["POST"])
def register():
    username, password = _credentials()

    if User.query.filter_by(username=username).first():
        raise Conflict("Username already exists")

    user = User(username=username)
    user.password = password
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with another registration of the same name
        db.session.rollback()
        raise Conflict("Username already exists")
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Register error: %s", exc)
        raise StorageUnavailable(str(exc)) from exc

    logger.info("Registered user %s", user.id)
    token = current_app.session_store.issue(user.id)
    return jsonify(
        {"message": "User registered", "token": token, "user": user.to_dict()}
    ), 201


@auth_api_bp.route("/auth/login", methods=["POST"])
def login():
    username, password = _credentials()

    user = User.query.filter_by(username=username).first()
    if not user or not user.verify_password(password):
        raise Unauthorized("Invalid credentials")

    logger.info("User %s logged in", user.id)
    token = current_app.session_store.issue(user.id)
    return jsonify(
        {"message": "Logged in", "token": token, "user": user.to_dict()}
    ), 200


@auth_api_bp.route("/auth/logout", methods=["POST"])
def logout():
    token = bearer_token(request)
    if token:
        current_app.session_store.revoke(token)
    return jsonify({"message": "Logged out"}), 200


@auth_api_bp.route("/auth/me", methods=["GET"])
@owner_required
def me(owner):
    user = db.session.get(User, owner)
    if not user:
        raise Unauthorized("Not logged in")
    return jsonify({"user": user.to_dict()}), 200
