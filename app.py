"""Application factory."""

import json
import logging
import os
import time
import uuid
from datetime import timedelta

from flask import Flask, jsonify, g, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config import DEFAULT_JWT_SECRET, Config, check_signing_secret
from models import db
from routes.auth import auth_bp
from routes.email_auth import email_auth_bp
from routes.oauth import oauth_bp
from services.delivery import LogCodeDelivery
from services.errors import AuthError, InternalServiceError
from services.identity import IdentityResolver
from services.oauth import build_provider_registry
from services.passwords import PasswordHasher
from services.tokens import ALGORITHM, TokenService, TokenSettings
from services.verification_codes import VerificationCodeService
from stores.sql_store import SQLUserStore, SQLVerificationStore

migrate = Migrate()
jwt = JWTManager()


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    _configure_logging(app)
    check_signing_secret(app.config, app.logger)
    if not app.config.get("JWT_SECRET_KEY"):
        app.config["JWT_SECRET_KEY"] = DEFAULT_JWT_SECRET

    # Flask-JWT-Extended guards protected routes with the same settings the
    # token service signs with.
    token_settings = TokenSettings.from_config(app.config)
    app.config["JWT_ALGORITHM"] = ALGORITHM
    app.config["JWT_DECODE_ALGORITHMS"] = [ALGORITHM]
    app.config["JWT_ENCODE_ISSUER"] = token_settings.issuer
    app.config["JWT_DECODE_ISSUER"] = token_settings.issuer
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = token_settings.ttl

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    app.extensions["identity_resolver"] = _build_identity_resolver(app, token_settings)

    # CORS
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Rate limiting
    storage_uri = app.config.get("RATELIMIT_STORAGE_URI", "memory://")
    headers_enabled = app.config.get("RATELIMIT_HEADERS_ENABLED", True)
    key_prefix = app.config.get("RATELIMIT_KEY_PREFIX") or str(uuid.uuid4())

    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[lambda: app.config.get("RATE_LIMIT", "60 per minute")],
        storage_uri=storage_uri,
        headers_enabled=headers_enabled,
        key_prefix=key_prefix,
    )
    limiter.init_app(app)
    app.config["RATELIMIT_KEY_PREFIX"] = key_prefix

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(email_auth_bp, url_prefix="/auth/email")
    app.register_blueprint(oauth_bp, url_prefix="/auth/oauth")

    # Health
    @app.route("/health", methods=["GET"])
    def health_check():
        return jsonify({"status": "ok"})

    # Errors
    _register_error_handlers(app)

    return app


def _configure_logging(app: Flask) -> None:
    level = app.config.get("LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def _build_identity_resolver(app: Flask, token_settings: TokenSettings) -> IdentityResolver:
    """Wire the authentication core to its collaborators."""
    config = app.config
    ttl_minutes = int(config.get("VERIFICATION_CODE_TTL_MINUTES", 10))

    return IdentityResolver(
        users=SQLUserStore(),
        codes=VerificationCodeService(
            SQLVerificationStore(), ttl=timedelta(minutes=ttl_minutes)
        ),
        providers=build_provider_registry(config),
        tokens=TokenService(token_settings),
        hasher=PasswordHasher(config.get("PASSWORD_HASH_METHOD", "scrypt")),
        delivery=LogCodeDelivery(
            reveal_codes=bool(config.get("REVEAL_VERIFICATION_CODES")),
            ttl_minutes=ttl_minutes,
        ),
    )


def _error_response(title: str, detail: str, status_code: int):
    request_id = g.get("request_id") or str(uuid.uuid4())
    response = jsonify({"error": title, "detail": detail, "request_id": request_id})
    response.status_code = status_code
    response.headers.setdefault("X-Request-ID", request_id)
    return response


@jwt.unauthorized_loader
def _missing_token(reason: str):
    return _error_response("Unauthorized", reason, 401)


@jwt.invalid_token_loader
def _invalid_token(reason: str):
    return _error_response("Unauthorized", "Token is invalid or expired.", 401)


@jwt.expired_token_loader
def _expired_token(jwt_header: dict, jwt_payload: dict):
    return _error_response("Unauthorized", "Token has expired.", 401)


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():  # pragma: no cover
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        g.request_started = time.monotonic()

    @app.after_request
    def _add_request_id_header(response):  # pragma: no cover
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        request_id = g.get("request_id") or str(uuid.uuid4())
        response = error.get_response()
        payload = {
            "error": getattr(error, "name", "Error"),
            "detail": error.description,
            "request_id": request_id,
        }
        response.data = json.dumps(payload)
        response.content_type = "application/json"
        response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(AuthError)
    def _handle_auth_error(error: AuthError):
        if isinstance(error, InternalServiceError):
            app.logger.error("%s: %s", type(error).__name__, error)
        return _error_response(error.title, error.public_message, error.status_code)

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):  # pragma: no cover
        app.logger.exception("Unhandled application error", exc_info=error)
        return _error_response(
            "Internal Server Error", "An unexpected error occurred.", 500
        )


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
