"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402
from services.identity import IdentityResolver  # noqa: E402
from services.oauth import OAuthProviderRegistry  # noqa: E402
from services.passwords import PasswordHasher  # noqa: E402
from services.tokens import TokenService, TokenSettings  # noqa: E402
from services.verification_codes import VerificationCodeService  # noqa: E402
from stores.sql_store import SQLUserStore, SQLVerificationStore  # noqa: E402
from tests.factories import TEST_HASH_METHOD, FrozenClock, RecordingDelivery  # noqa: E402

TEST_SECRET = "test-signing-secret-with-enough-entropy-0123456789"


class TestConfig(Config):
    TESTING = True
    APP_ENV = "testing"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = TEST_SECRET
    PASSWORD_HASH_METHOD = TEST_HASH_METHOD
    RATE_LIMIT = "1000 per minute"
    REVEAL_VERIFICATION_CODES = True


@pytest.fixture()
def app() -> Flask:
    """Create a Flask application instance for tests."""

    application = create_app(TestConfig)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def app_ctx(app: Flask):
    """Run the test body inside an application context."""

    with app.app_context():
        yield app


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def delivery() -> RecordingDelivery:
    return RecordingDelivery()


@pytest.fixture()
def make_resolver(app_ctx, clock, delivery):
    """Build an IdentityResolver over the SQL stores with swappable collaborators."""

    def _make(
        providers: OAuthProviderRegistry | None = None,
        tokens: TokenService | None = None,
        users: SQLUserStore | None = None,
        code_delivery=None,
    ) -> IdentityResolver:
        return IdentityResolver(
            users=users or SQLUserStore(),
            codes=VerificationCodeService(
                SQLVerificationStore(), ttl=timedelta(minutes=10), clock=clock
            ),
            providers=providers or OAuthProviderRegistry(),
            tokens=tokens or TokenService(TokenSettings(secret=TEST_SECRET)),
            hasher=PasswordHasher(TEST_HASH_METHOD),
            delivery=code_delivery or delivery,
        )

    return _make
