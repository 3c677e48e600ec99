"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

import re
from typing import Iterable

from flask import Request
from werkzeug.exceptions import BadRequest


def parse_json_request(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON body or raise a 400 error."""

    if not req.is_json:
        raise BadRequest("Request content type must be application/json.")

    data = req.get_json(silent=False)
    if data is None:
        raise BadRequest("Request JSON body is required.")

    if not isinstance(data, dict):
        raise BadRequest("Request JSON payload must be an object.")

    if not data and not allow_empty:
        raise BadRequest("Request JSON body must not be empty.")

    if required_keys:
        missing = [key for key in required_keys if not data.get(key)]
        if missing:
            raise BadRequest(
                "Missing required fields: {}.".format(
                    ", ".join(sorted(missing))
                )
            )

    return data


EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
CODE_PATTERN = re.compile(r"^[0-9]{6}$")
MIN_PASSWORD_LENGTH = 8


def require_email(payload: dict, key: str = "email") -> str:
    """Return a well-formed email address from the payload.

    Surrounding whitespace is dropped; case is preserved as submitted.
    """

    value = payload.get(key)
    email = value.strip() if isinstance(value, str) else ""
    if not email:
        raise BadRequest("Email is required.")
    if not EMAIL_PATTERN.match(email):
        raise BadRequest("Invalid email format.")
    return email


def require_password(payload: dict, key: str = "password", *, check_length: bool = True) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise BadRequest("Password is required.")
    if check_length and len(value) < MIN_PASSWORD_LENGTH:
        raise BadRequest(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
        )
    return value


def require_code(payload: dict, key: str = "code") -> str:
    value = payload.get(key)
    code = value.strip() if isinstance(value, str) else ""
    if not CODE_PATTERN.match(code):
        raise BadRequest("Code must be exactly 6 digits.")
    return code


def optional_choice(payload: dict, key: str, choices: Iterable[str]) -> str | None:
    """Return the value when present, None when absent or blank."""

    value = payload.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    allowed = tuple(choices)
    if not isinstance(value, str) or value.strip().lower() not in allowed:
        raise BadRequest(
            "{} must be one of: {}.".format(key.capitalize(), ", ".join(allowed))
        )
    return value.strip().lower()


def require_choice(payload: dict, key: str, choices: Iterable[str]) -> str:
    value = optional_choice(payload, key, choices)
    if value is None:
        raise BadRequest(f"{key.capitalize()} is required.")
    return value


def require_string(payload: dict, key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise BadRequest(f"{key} is required.")
    return value.strip()
