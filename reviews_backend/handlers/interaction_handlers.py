"""
Lambda handlers for review interactions (like/unlike, flag/unflag)

The authenticated variants take the actor from the Cognito authorizer; the
no-auth variants take user_guid from the body for trusted internal callers.
"""

from __future__ import annotations

import logging

# Support both Lambda deployment and local development
try:
    # Lambda deployment
    from reviews.errors import ReviewError
    from reviews.moderation import is_banned
    from reviews.mutations import FLAG, INTERACTION_METHODS, LIKE, InteractionKind, toggle_interaction
    from utils.auth import get_user_id
    from utils.response import banned_response, error_response, result_response
    from utils.validation import parse_json_body, validate_method, validate_required_fields
except ImportError:
    # Local development
    from reviews_backend.reviews.errors import ReviewError
    from reviews_backend.reviews.moderation import is_banned
    from reviews_backend.reviews.mutations import (
        FLAG,
        INTERACTION_METHODS,
        LIKE,
        InteractionKind,
        toggle_interaction,
    )
    from reviews_backend.utils.auth import get_user_id
    from reviews_backend.utils.response import banned_response, error_response, result_response
    from reviews_backend.utils.validation import parse_json_body, validate_method, validate_required_fields

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def _methods_for(kind: InteractionKind) -> list[str]:
    return [method for method, (k, _) in INTERACTION_METHODS.items() if k is kind]


def _handle_interaction(event: dict, kind: InteractionKind, authenticated: bool) -> dict:
    """
    Shared flow for the four interaction endpoints.

    1. Resolve the actor (authorizer claim or body user_guid)
    2. Validate comment_guid and method
    3. Reject banned actors
    4. Toggle the interaction transactionally
    """
    handler_name = f"{kind.name}{'' if authenticated else '_no_auth'}_handler"
    logger.info(f"{handler_name} invoked")

    try:
        actor_id = None
        if authenticated:
            actor_id = get_user_id(event)
            if not actor_id:
                return error_response(401, "User not authenticated")

        body, error = parse_json_body(event)
        if error:
            return error

        required = ["comment_guid", "method"] if authenticated else ["comment_guid", "user_guid", "method"]
        error = validate_required_fields(body, required)
        if error:
            return error

        if not authenticated:
            actor_id = body["user_guid"]
            if not isinstance(actor_id, str) or not actor_id.strip():
                return error_response(400, 'Field "user_guid" must be a non-empty string')

        method, error = validate_method(body, _methods_for(kind))
        if error:
            return error

        if is_banned(actor_id):
            logger.warning(f"Banned user {actor_id} attempted {method}")
            return banned_response()

        _, activate = INTERACTION_METHODS[method]
        result = toggle_interaction(body["comment_guid"], actor_id, kind, activate)
        return result_response(result)

    except ReviewError as e:
        logger.warning(f"{kind.name} request rejected ({e.code}): {e.message}")
        return error_response(e.code, e.message)
    except Exception as e:
        logger.error(f"Error handling {kind.name}: {str(e)}", exc_info=True)
        return error_response(500, str(e) or "Unexpected error")


def like_handler(event, context):
    """
    Lambda handler to like or unlike another user's review.
    Expects JSON body with comment_guid and method ("like" or "unlike").
    """
    return _handle_interaction(event, LIKE, authenticated=True)


def like_no_auth_handler(event, context):
    """Like/unlike for trusted callers; body also carries user_guid."""
    return _handle_interaction(event, LIKE, authenticated=False)


def flag_handler(event, context):
    """
    Lambda handler to flag or unflag another user's review.
    Expects JSON body with comment_guid and method ("flag" or "unflag").
    """
    return _handle_interaction(event, FLAG, authenticated=True)


def flag_no_auth_handler(event, context):
    """Flag/unflag for trusted callers; body also carries user_guid."""
    return _handle_interaction(event, FLAG, authenticated=False)
