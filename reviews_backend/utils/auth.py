"""
Authentication utilities for Reviews API

Token verification happens in API Gateway's Cognito authorizer before a
handler runs; these helpers only read the verified identity it attaches.
"""


def get_claims(event: dict) -> dict:
    """
    Extract verified token claims from the authorizer context.

    Supports both REST API (``authorizer.claims``) and HTTP API
    (``authorizer.jwt.claims``) event shapes.

    Args:
        event: API Gateway event

    Returns:
        dict: Token claims, empty if the request was not authenticated
    """
    authorizer = (event.get("requestContext") or {}).get("authorizer") or {}
    claims = authorizer.get("claims")
    if claims is None:
        claims = (authorizer.get("jwt") or {}).get("claims")
    return claims or {}


def get_user_id(event: dict) -> str | None:
    """
    Extract user ID (sub) from Cognito authorizer context.

    Args:
        event: API Gateway event with Cognito authorization

    Returns:
        str: The user's Cognito sub (unique identifier), or None if not authenticated
    """
    return get_claims(event).get("sub") or None
