"""
Request validation utilities for Reviews API

Provides functions to validate and extract data from API Gateway events.
"""

from __future__ import annotations

import json
import logging
from typing import Iterable

logger = logging.getLogger()


def parse_json_body(event: dict) -> tuple[dict, dict | None]:
    """
    Parse JSON body from API Gateway event.

    Args:
        event: API Gateway event

    Returns:
        tuple: (parsed_body, error_response) - If successful, error_response is None
               If error, parsed_body is empty dict (caller should check error first)
    """
    from .response import error_response

    try:
        body = json.loads(event.get("body") or "{}")
    except json.JSONDecodeError:
        logger.warning("Invalid JSON in request body")
        return {}, error_response(400, "Invalid JSON in request body")

    if not isinstance(body, dict):
        logger.warning("Request body is not a JSON object")
        return {}, error_response(400, "Request body must be a JSON object")

    return body, None


def validate_required_fields(body: dict, fields: Iterable[str], allow_empty: Iterable[str] = ()) -> dict | None:
    """
    Check that required fields are present and non-empty.

    Args:
        body: Request body dictionary
        fields: Field names that must be present
        allow_empty: Fields that must be present but may be falsy (e.g. an empty comment)

    Returns:
        dict: Error response if a field is missing, None if valid
    """
    from .response import error_response

    allow_empty = set(allow_empty)
    missing = [
        field
        for field in fields
        if body.get(field) is None or (field not in allow_empty and not body.get(field))
    ]
    if missing:
        logger.warning(f"Missing required fields: {missing}")
        return error_response(400, "Missing required fields")
    return None


def validate_method(body: dict, allowed: Iterable[str]) -> tuple[str | None, dict | None]:
    """
    Validate the ``method`` field against an allowed set.

    Args:
        body: Request body dictionary
        allowed: Allowed method names (compared case-sensitively)

    Returns:
        tuple: (method, error_response) - If successful, error_response is None
    """
    from .response import error_response

    allowed = list(allowed)
    method = body.get("method")
    if not isinstance(method, str) or method not in allowed:
        quoted = " or ".join(f"'{m}'" for m in allowed)
        return None, error_response(400, f"Invalid method. Must be {quoted}.")
    return method, None
