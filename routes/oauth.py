"""OAuth identity-provider login blueprint."""

from __future__ import annotations

from flask import Blueprint, request

from models.user import SELF_SERVICE_ROLES
from utils.request_validation import (
    optional_choice,
    parse_json_request,
    require_choice,
    require_string,
)

from .auth import auth_response, get_resolver, remaining_budget

oauth_bp = Blueprint("oauth", __name__)


@oauth_bp.route("/login", methods=["POST"])
def oauth_login() -> tuple:
    """Exchange a provider ID token for a session token."""
    resolver = get_resolver()
    payload = parse_json_request(request)
    provider = require_choice(payload, "provider", resolver.providers.providers)
    id_token = require_string(payload, "id_token")
    role = optional_choice(payload, "role", SELF_SERVICE_ROLES)

    result = resolver.oauth_login(provider, id_token, role, timeout=remaining_budget())
    return auth_response(result)
