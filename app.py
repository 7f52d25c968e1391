import logging

from flask import Flask
from flask_cors import CORS

from config import Config
from errors import register_error_handlers
from identity import SessionStore, create_robust_redis_client, login_manager
from models import db
from omdb_client import OMDbClient
from routes import other_api_bp
from routes.auth import auth_api_bp
from routes.library import library_api_bp
from routes.movies import movies_api_bp


logger = logging.getLogger(__name__)


def configure_logging(app):
    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(app.config["LOG_LEVEL"])


def create_app(config_object=Config):
    app = Flask(__name__)
    CORS(app)
    app.config.from_object(config_object)
    configure_logging(app)

    # Initialize SQLAlchemy with the configured engine options
    db.init_app(app)
    logger.debug(
        "Engine options: %s", app.config.get("SQLALCHEMY_ENGINE_OPTIONS")
    )

    # Bearer tokens resolve to users through Redis-held sessions
    login_manager.init_app(app)
    app.redis = create_robust_redis_client(app.config)
    app.session_store = SessionStore(
        app.redis, app.config["SESSION_TTL_SECONDS"]
    )

    app.omdb = OMDbClient(
        app.config["OMDB_API_KEY"],
        base_url=app.config["OMDB_BASE_URL"],
        timeout=app.config["OMDB_TIMEOUT"],
    )
    if not app.config["OMDB_API_KEY"]:
        logger.warning("OMDb API key missing; movie search will fail")

    register_error_handlers(app)

    # Register your Blueprints
    app.register_blueprint(other_api_bp)
    app.register_blueprint(auth_api_bp)
    app.register_blueprint(library_api_bp)
    app.register_blueprint(movies_api_bp)

    # Ensure DB tables exist
    with app.app_context():
        db.create_all()

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=3000, debug=True)
