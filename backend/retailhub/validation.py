# Overview: Request parsing helpers shared by the route modules.

from __future__ import annotations

from flask import request

from .errors import ValidationError


def json_body() -> dict:
    """Request JSON as a dict; a missing or non-object body is a 400."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def int_arg(name: str, default: int | None = None) -> int | None:
    """
    Strict integer query parameter.

    Rejects decimals and scientific notation the same way model fields do.
    """
    raw = request.args.get(name)
    if raw is None or raw.strip() == "" or raw == "all":
        return default
    stripped = raw.strip()
    if "e" in stripped.lower() or "." in stripped:
        raise ValidationError(f"{name} must be an integer")
    try:
        return int(stripped)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def str_arg(name: str, default: str | None = None) -> str | None:
    raw = request.args.get(name)
    if raw is None:
        return default
    raw = raw.strip()
    return raw or default


def require_int(data: dict, key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ValidationError(f"{key} is required and must be an integer")


def require_bool(data: dict, key: str) -> bool:
    """JSON true/false only; "false", 0 and null are rejected."""
    value = data.get(key)
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be a boolean")
    return value
