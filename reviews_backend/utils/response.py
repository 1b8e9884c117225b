"""
Response building utilities for Reviews API

Every response body has the shape {"code": int, "message": str}; the HTTP
status matches ``code`` except where a caller overrides it.
"""

from __future__ import annotations

import json
from typing import Any

from .dynamodb import convert_decimal


def _json_default(value: Any) -> Any:
    converted = convert_decimal(value)
    if converted is value:
        raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
    return converted


def api_response(status_code: int, body: Any) -> dict:
    """
    Helper to format API Gateway response with CORS headers.

    Args:
        status_code: HTTP status code
        body: Response body (will be JSON serialized; Decimals are converted)

    Returns:
        dict: API Gateway response with headers
    """
    return {
        "statusCode": status_code,
        "body": json.dumps(body, default=_json_default),
        "headers": {
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Headers": "Content-Type,Authorization",
            "Access-Control-Allow-Methods": "POST, OPTIONS",
        },
    }


def result_response(result: dict) -> dict:
    """Wrap a successful {"code", "message"} result from the review core."""
    return api_response(result.get("code", 200), result)


def error_response(code: int, message: str, status_code: int | None = None, **extra: Any) -> dict:
    """
    Helper to create error response.

    Args:
        code: Application status code placed in the body
        message: Error message
        status_code: HTTP status, defaults to ``code``
        **extra: Additional body fields

    Returns:
        dict: API Gateway error response
    """
    return api_response(status_code or code, {"code": code, "message": message, **extra})


def banned_response() -> dict:
    """
    Response for a banned actor.

    Sent with HTTP 400 and body code 507; ``refresh_token: false`` tells the
    client not to retry with a refreshed token.
    """
    return error_response(507, "The user is banned", status_code=400, refresh_token=False)
