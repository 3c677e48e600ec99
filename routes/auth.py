"""Authentication blueprint providing password register/login and the current-user endpoint."""

from __future__ import annotations

import time
from http import HTTPStatus

from flask import Blueprint, current_app, g, jsonify, request
from flask_jwt_extended import get_jwt, jwt_required

from models.user import SELF_SERVICE_ROLES
from services.identity import AuthResult, IdentityResolver, NewIdentityPending
from utils.request_validation import (
    parse_json_request,
    require_choice,
    require_email,
    require_password,
)

auth_bp = Blueprint("auth", __name__)


def get_resolver() -> IdentityResolver:
    """Return the identity resolver wired by the application factory."""
    return current_app.extensions["identity_resolver"]


def remaining_budget() -> float:
    """Seconds left before this request exceeds ``REQUEST_TIMEOUT``."""
    started = g.get("request_started", time.monotonic())
    return current_app.config.get("REQUEST_TIMEOUT", 15) - (time.monotonic() - started)


def auth_response(result: AuthResult | NewIdentityPending, status: int = HTTPStatus.OK) -> tuple:
    """Render a login outcome: a token, or a request to choose a role."""

    if isinstance(result, NewIdentityPending):
        return jsonify(result.to_dict()), HTTPStatus.ACCEPTED
    return jsonify({"token": result.token, "user": result.user.to_dict()}), status


@auth_bp.route("/register", methods=["POST"])
def register() -> tuple:
    """Register a new user with an email, password, and role."""
    payload = parse_json_request(request)
    email = require_email(payload)
    password = require_password(payload)
    role = require_choice(payload, "role", SELF_SERVICE_ROLES)

    result = get_resolver().register_password(email, password, role)
    return auth_response(result, HTTPStatus.CREATED)


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple:
    """Authenticate a user and return a session token."""
    payload = parse_json_request(request)
    email = require_email(payload)
    password = require_password(payload, check_length=False)

    result = get_resolver().login_password(email, password)
    return auth_response(result)


@auth_bp.route("/logout", methods=["POST"])
def logout() -> tuple:
    # Tokens are stateless; the client discards its copy.
    return jsonify({"message": "Logged out successfully"}), HTTPStatus.OK


@auth_bp.route("/profile", methods=["GET"])
@jwt_required()
def profile() -> tuple:
    """Return the authenticated user, re-read from the database."""
    resolver = get_resolver()
    identity = resolver.tokens.identity_from_claims(get_jwt())
    user = resolver.current_user(identity.user_id)
    return jsonify(user.to_dict()), HTTPStatus.OK
