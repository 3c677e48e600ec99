"""Email one-time-code login blueprint."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from models.user import SELF_SERVICE_ROLES
from utils.request_validation import (
    optional_choice,
    parse_json_request,
    require_code,
    require_email,
)

from .auth import auth_response, get_resolver

email_auth_bp = Blueprint("email_auth", __name__)


@email_auth_bp.route("/send-code", methods=["POST"])
def send_code() -> tuple:
    """Issue a verification code and send it to the given address."""
    payload = parse_json_request(request)
    email = require_email(payload)

    expires_at = get_resolver().request_email_code(email)
    return (
        jsonify(
            {
                "message": "Verification code sent to your email",
                "expires_at": expires_at.isoformat(),
            }
        ),
        HTTPStatus.OK,
    )


@email_auth_bp.route("/verify", methods=["POST"])
def verify_code() -> tuple:
    """Log in with a verification code.

    Unknown addresses without a role get a 202 asking for role selection; the
    code stays valid for the follow-up request carrying the role.
    """
    payload = parse_json_request(request)
    email = require_email(payload)
    code = require_code(payload)
    role = optional_choice(payload, "role", SELF_SERVICE_ROLES)

    result = get_resolver().complete_email_login(email, code, role)
    return auth_response(result)
