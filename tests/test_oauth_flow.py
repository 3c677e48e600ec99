"""HTTP tests for identity-provider login."""

from __future__ import annotations

import pytest
from flask.testing import FlaskClient

from models.user import User
from services.oauth import OAuthIdentity, OAuthProviderRegistry
from tests.factories import StubVerifier, create_user


@pytest.fixture()
def providers(app) -> OAuthProviderRegistry:
    """Replace the network-backed verifiers with in-memory stubs."""

    registry = OAuthProviderRegistry()
    registry.register(
        "google",
        StubVerifier(
            {"g-token": OAuthIdentity("g@gmail.com", "google-sub", True, "G User")}
        ),
    )
    registry.register(
        "apple",
        StubVerifier({"a-token": OAuthIdentity("a@icloud.com", "apple-sub", False)}),
    )
    app.extensions["identity_resolver"].providers = registry
    return registry


def test_first_contact_without_role_is_pending(client: FlaskClient, app_ctx, providers):
    response = client.post(
        "/auth/oauth/login", json={"provider": "google", "id_token": "g-token"}
    )

    assert response.status_code == 202
    assert response.get_json() == {
        "is_new_user": True,
        "email": "g@gmail.com",
        "provider": "google",
    }
    assert User.query.count() == 0


def test_first_contact_with_role_creates_account(client: FlaskClient, app_ctx, providers):
    response = client.post(
        "/auth/oauth/login",
        json={"provider": "apple", "id_token": "a-token", "role": "mentee"},
    )

    assert response.status_code == 200
    data = response.get_json()
    assert data["token"]
    assert data["user"]["provider"] == "apple"
    assert data["user"]["is_verified"] is False
    assert User.query.filter_by(provider_id="apple-sub").one().role == "mentee"


def test_returning_user_logs_in(client: FlaskClient, app_ctx, providers):
    user = create_user(
        "g@gmail.com", password=None, role="mentor", provider="google", provider_id="google-sub"
    )

    response = client.post(
        "/auth/oauth/login", json={"provider": "google", "id_token": "g-token"}
    )

    assert response.status_code == 200
    assert response.get_json()["user"]["id"] == user.id


def test_rejected_provider_token(client: FlaskClient, app_ctx, providers):
    response = client.post(
        "/auth/oauth/login",
        json={"provider": "google", "id_token": "forged", "role": "mentor"},
    )

    assert response.status_code == 401
    assert response.get_json()["error"] == "OAuth verification failed"


def test_email_taken_by_password_account_conflicts(client: FlaskClient, app_ctx, providers):
    create_user("g@gmail.com")

    response = client.post(
        "/auth/oauth/login",
        json={"provider": "google", "id_token": "g-token", "role": "mentor"},
    )

    assert response.status_code == 409


@pytest.mark.parametrize(
    "payload",
    [
        {"provider": "facebook", "id_token": "t"},
        {"provider": "google"},
        {"provider": "google", "id_token": "g-token", "role": "admin"},
    ],
)
def test_oauth_validation(client: FlaskClient, providers, payload):
    response = client.post("/auth/oauth/login", json=payload)

    assert response.status_code == 400


def test_verifier_receives_the_remaining_request_budget(client: FlaskClient, app_ctx, providers):
    client.post("/auth/oauth/login", json={"provider": "google", "id_token": "g-token"})

    (timeout,) = providers.get("google").timeouts
    assert 0 < timeout <= 15


def test_spent_request_budget_fails_without_calling_the_provider(client: FlaskClient, app):
    app.config["REQUEST_TIMEOUT"] = 0

    response = client.post(
        "/auth/oauth/login", json={"provider": "google", "id_token": "real-looking-token"}
    )

    assert response.status_code == 401
    assert response.get_json()["error"] == "OAuth verification failed"
