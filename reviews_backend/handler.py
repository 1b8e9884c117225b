"""
Lambda handlers for Reviews API

This module serves as the entry point for all Lambda functions.
It re-exports handlers from their respective modules for Lambda function configuration.

Architecture:
- API Gateway (Cognito authorizer) -> Lambda -> DynamoDB transactions
- Trusted internal caller -> API Gateway (no authorizer) -> Lambda -> DynamoDB transactions

Tables:
- ReviewBooks: per-book rating aggregate (book_guid)
- ReviewContent: one review per user per book ("{book_guid}_{user_guid}")
- InteractionLedger: likes/flags per actor per book ("{user_guid}_{book_guid}")
- BannedUsers: moderation flags (read-only here)

Handlers:
1. review_handler: put/update/delete the caller's review, updating book ratings
2. review_no_auth_handler: same, reviewer given in the body
3. like_handler: like/unlike another user's review
4. like_no_auth_handler: same, actor given in the body
5. flag_handler: flag/unflag another user's review
6. flag_no_auth_handler: same, actor given in the body
"""

# Re-export handlers for Lambda function configuration
# Support both local development (reviews_backend.X) and Lambda deployment (X)
try:
    # Lambda deployment (files are in root, not in reviews_backend/)
    from handlers.interaction_handlers import (
        flag_handler,
        flag_no_auth_handler,
        like_handler,
        like_no_auth_handler,
    )
    from handlers.review_handlers import review_handler, review_no_auth_handler
    from config import (
        banned_users_table,
        dynamodb_client,
        interaction_ledger_table,
        review_books_table,
        review_content_table,
    )
except ImportError:
    # Local development / testing (with reviews_backend package structure)
    from reviews_backend.handlers.interaction_handlers import (
        flag_handler,
        flag_no_auth_handler,
        like_handler,
        like_no_auth_handler,
    )
    from reviews_backend.handlers.review_handlers import review_handler, review_no_auth_handler
    from reviews_backend.config import (
        banned_users_table,
        dynamodb_client,
        interaction_ledger_table,
        review_books_table,
        review_content_table,
    )

# Make handlers available at module level for Lambda
__all__ = [
    "review_handler",
    "review_no_auth_handler",
    "like_handler",
    "like_no_auth_handler",
    "flag_handler",
    "flag_no_auth_handler",
    # Also export config for tests
    "review_books_table",
    "review_content_table",
    "interaction_ledger_table",
    "banned_users_table",
    "dynamodb_client",
]
