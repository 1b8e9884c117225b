"""
Moderation gate: banned-user lookup

The BannedUsers table is owned by an external moderation process; this
module only reads it.
"""

from __future__ import annotations

import logging

from botocore.exceptions import ClientError

# Support both Lambda deployment and local development
try:
    import config
    from reviews.errors import ValidationError
except ImportError:
    import reviews_backend.config as config
    from reviews_backend.reviews.errors import ValidationError

logger = logging.getLogger(__name__)


def is_banned(user_guid: str) -> bool:
    """
    Check whether a user is banned.

    Uses a strongly consistent read. A ban that lands after this check but
    before the caller's mutation commits is not caught.

    Args:
        user_guid: User identifier

    Returns:
        bool: True only if the user has a record with ``banned`` set to true

    Raises:
        ValidationError: If user_guid is empty
        ClientError: If the lookup fails
    """
    if not user_guid or not isinstance(user_guid, str):
        raise ValidationError("Invalid user_guid provided.")

    try:
        response = config.banned_users_table.get_item(
            Key={"user_guid": user_guid}, ConsistentRead=True
        )
    except ClientError as e:
        logger.error(f"Error checking banned status for {user_guid}: {str(e)}", exc_info=True)
        raise

    item = response.get("Item")
    return bool(item) and item.get("banned") is True
