import logging
from datetime import date

from flask import Flask, jsonify
from flask.json.provider import DefaultJSONProvider
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from config import Config
from errors import APIError
from extensions import cors, db, jwt, mail, migrate
from services.verification import EmailVerifier
from storage import (
    DuplicateEntry,
    IntegrityViolation,
    MemStorage,
    StorageUnavailable,
    get_storage,
)

logger = logging.getLogger(__name__)


class IsoJSONProvider(DefaultJSONProvider):
    """Render dates as ISO 8601 instead of Flask's HTTP-date format."""

    @staticmethod
    def default(o):
        if isinstance(o, date):
            return o.isoformat()
        return DefaultJSONProvider.default(o)


def configure_logging(app):
    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def build_storage(app):
    backend = app.config["STORAGE_BACKEND"]
    if backend == "memory":
        return MemStorage()
    if backend == "sql":
        from storage.sql import SqlStorage

        return SqlStorage(
            retry_attempts=app.config["STORAGE_RETRY_ATTEMPTS"],
            retry_backoff=app.config["STORAGE_RETRY_BACKOFF"],
        )
    raise ValueError(f"Unknown STORAGE_BACKEND '{backend}'")


def json_error(message, status, **extra):
    return jsonify({"message": message, **extra}), status


# JWT callbacks

@jwt.user_lookup_loader
def load_user(_jwt_header, jwt_data):
    return get_storage().get_user(int(jwt_data["sub"]))


@jwt.unauthorized_loader
def missing_token(reason):
    return json_error("Not authenticated", 401)


@jwt.invalid_token_loader
def invalid_token(reason):
    return json_error("Invalid token", 401)


@jwt.expired_token_loader
def expired_token(_jwt_header, _jwt_payload):
    return json_error("Session expired, please log in again", 401)


@jwt.user_lookup_error_loader
def unknown_user(_jwt_header, _jwt_data):
    return json_error("User no longer exists", 401)


def register_error_handlers(app):
    @app.errorhandler(APIError)
    def handle_api_error(exc):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc):
        errors = exc.errors(include_url=False, include_context=False, include_input=False)
        return json_error("Invalid request data", 400, errors=errors)

    @app.errorhandler(IntegrityViolation)
    @app.errorhandler(DuplicateEntry)
    def handle_storage_conflict(exc):
        return json_error(str(exc), 400)

    @app.errorhandler(StorageUnavailable)
    def handle_storage_unavailable(exc):
        logger.error("Storage unavailable: %s", exc)
        return json_error("Service temporarily unavailable", 503)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc):
        return json_error(exc.description, exc.code)

    @app.errorhandler(Exception)
    def handle_unexpected(exc):
        logger.exception("Unhandled error")
        return json_error("Internal server error", 500)


def register_commands(app):
    @app.cli.command("init-db")
    def init_db_command():
        db.create_all()
        print("Database tables created")

    @app.cli.command("seed")
    def seed_command():
        from seed import seed_defaults

        seed_defaults(get_storage(), app.config)
        print("Seed data loaded")


def create_app(config_class=Config, storage=None):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.json = IsoJSONProvider(app)
    configure_logging(app)

    db.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)
    cors.init_app(app, origins=app.config["CORS_ORIGINS"], supports_credentials=True)
    mail.init_app(app)

    # register models with SQLAlchemy metadata for migrations and create_all
    import models  # noqa: F401

    app.extensions["storage"] = storage if storage is not None else build_storage(app)
    app.extensions["email_verifier"] = EmailVerifier(
        otp_ttl=app.config["EMAIL_OTP_TTL"],
        verified_ttl=app.config["EMAIL_VERIFIED_TTL"],
    )

    from routes import main as main_blueprint
    app.register_blueprint(main_blueprint)

    register_error_handlers(app)
    register_commands(app)

    if app.config["SEED_ON_START"]:
        from seed import seed_defaults

        with app.app_context():
            seed_defaults(app.extensions["storage"], app.config)

    logger.info("Green Path API ready (%s storage)", type(app.extensions["storage"]).__name__)
    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
