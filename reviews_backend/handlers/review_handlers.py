"""
Lambda handlers for review mutations (put, update, delete)

review_handler takes the reviewer from the Cognito authorizer;
review_no_auth_handler takes it from the request body and is only exposed
to trusted internal callers.
"""

from __future__ import annotations

import logging

# Support both Lambda deployment and local development
try:
    # Lambda deployment
    from reviews.errors import ReviewError
    from reviews.moderation import is_banned
    from reviews.mutations import mutate_review, validate_review_input
    from utils.auth import get_user_id
    from utils.response import banned_response, error_response, result_response
    from utils.validation import parse_json_body, validate_required_fields
except ImportError:
    # Local development
    from reviews_backend.reviews.errors import ReviewError
    from reviews_backend.reviews.moderation import is_banned
    from reviews_backend.reviews.mutations import mutate_review, validate_review_input
    from reviews_backend.utils.auth import get_user_id
    from reviews_backend.utils.response import banned_response, error_response, result_response
    from reviews_backend.utils.validation import parse_json_body, validate_required_fields

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def _rate(body: dict, field: str):
    value = body.get(field)
    return 0 if value is None else value


def _handle_review(user_id: str, body: dict) -> dict:
    """
    Validate a review request, check the ban gate and apply the mutation.

    Validation runs before the ban lookup so malformed requests never touch
    the database.
    """
    error = validate_required_fields(body, ["method", "book_guid", "comment"], allow_empty=["comment"])
    if error:
        return error

    book_guid = body["book_guid"]
    if not isinstance(book_guid, str) or not book_guid.strip():
        return error_response(400, 'Field "book_guid" must be a non-empty string')

    comment = body["comment"]
    book_rate = _rate(body, "book_rate")
    narrator_rate = _rate(body, "narrator_rate")
    method = validate_review_input(body["method"], comment, book_rate, narrator_rate)

    if is_banned(user_id):
        logger.warning(f"Banned user {user_id} attempted review {method}")
        return banned_response()

    logger.info(f"Review {method} on book {book_guid} by user {user_id}")
    result = mutate_review(
        book_guid=book_guid,
        user_guid=user_id,
        method=method,
        comment=comment,
        book_rate=book_rate,
        narrator_rate=narrator_rate,
    )
    return result_response(result)


def review_handler(event, context):
    """
    Lambda handler to put, update or delete the caller's review of a book.
    Expects JSON body with:
    - method: "put", "update" or "delete"
    - book_guid: Book identifier
    - comment: Review text (may be empty, max 2000 characters)
    - book_rate, narrator_rate: 0-5, optional (0 = not rated)
    """
    logger.info("review_handler invoked")

    try:
        user_id = get_user_id(event)
        if not user_id:
            return error_response(401, "User not authenticated")

        body, error = parse_json_body(event)
        if error:
            return error

        return _handle_review(user_id, body)

    except ReviewError as e:
        logger.warning(f"Review request rejected ({e.code}): {e.message}")
        return error_response(e.code, e.message)
    except Exception as e:
        logger.error(f"Error handling review: {str(e)}", exc_info=True)
        return error_response(500, str(e) or "Unexpected error")


def review_no_auth_handler(event, context):
    """
    Lambda handler for review mutations from trusted internal callers.
    Same body as review_handler plus user_guid identifying the reviewer.
    """
    logger.info("review_no_auth_handler invoked")

    try:
        body, error = parse_json_body(event)
        if error:
            return error

        error = validate_required_fields(body, ["user_guid"])
        if error:
            return error

        user_id = body["user_guid"]
        if not isinstance(user_id, str) or not user_id.strip():
            return error_response(400, 'Field "user_guid" must be a non-empty string')

        return _handle_review(user_id, body)

    except ReviewError as e:
        logger.warning(f"Review request rejected ({e.code}): {e.message}")
        return error_response(e.code, e.message)
    except Exception as e:
        logger.error(f"Error handling review: {str(e)}", exc_info=True)
        return error_response(500, str(e) or "Unexpected error")
