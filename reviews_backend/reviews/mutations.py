"""
Transactional review and interaction mutations

mutate_review: put / update / delete a user's review of a book, keeping the
book's rating aggregate in step with it.

toggle_interaction: like / unlike / flag / unflag another user's review,
keeping the review's counter in step with the actor's interaction ledger.

Both run every read and write through one optimistic transaction, so either
all affected items change or none do.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import UTC, datetime
from numbers import Real
from typing import Any

# Support both Lambda deployment and local development
try:
    import config
    from reviews.errors import (
        AlreadyActiveError,
        ConflictError,
        NotActiveError,
        NotFoundError,
        SelfInteractionError,
        ValidationError,
    )
    from reviews.models import BookAggregate, InteractionLedgerEntry, ReviewRecord
    from utils.dynamodb import ledger_id, review_id
    from utils.transactions import Transaction, run_transaction
except ImportError:
    import reviews_backend.config as config
    from reviews_backend.reviews.errors import (
        AlreadyActiveError,
        ConflictError,
        NotActiveError,
        NotFoundError,
        SelfInteractionError,
        ValidationError,
    )
    from reviews_backend.reviews.models import BookAggregate, InteractionLedgerEntry, ReviewRecord
    from reviews_backend.utils.dynamodb import ledger_id, review_id
    from reviews_backend.utils.transactions import Transaction, run_transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InteractionKind:
    name: str
    owners_field: str
    counter_field: str
    done: str
    undone: str


LIKE = InteractionKind("like", "liked_comment_owners", "num_of_likes", "liked", "unliked")
FLAG = InteractionKind("flag", "flagged_comment_owners", "num_of_flags", "flagged", "unflagged")

# method -> (kind, activate)
INTERACTION_METHODS: dict[str, tuple[InteractionKind, bool]] = {
    "like": (LIKE, True),
    "unlike": (LIKE, False),
    "flag": (FLAG, True),
    "unflag": (FLAG, False),
}


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _result(message: str) -> dict[str, Any]:
    return {"code": 200, "message": message}


def _check_rate(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError(f"{name} must be a number between {config.MIN_RATE} and {config.MAX_RATE}")
    if not math.isfinite(value) or value < config.MIN_RATE or value > config.MAX_RATE:
        raise ValidationError(f"{name} must be between {config.MIN_RATE} and {config.MAX_RATE}")
    return value


def validate_review_input(method: Any, comment: Any, book_rate: Any, narrator_rate: Any) -> str:
    """
    Check review mutation arguments.

    Returns:
        str: The normalized (lower-case) method

    Raises:
        ValidationError: On the first invalid argument
    """
    if not isinstance(method, str) or method.lower() not in config.REVIEW_METHODS:
        raise ValidationError(f"Invalid method. Allowed values: {', '.join(config.REVIEW_METHODS)}")
    _check_rate("book_rate", book_rate)
    _check_rate("narrator_rate", narrator_rate)
    if not isinstance(comment, str) or len(comment) > config.MAX_COMMENT_LENGTH:
        raise ValidationError(
            f"comment must be a string with a maximum of {config.MAX_COMMENT_LENGTH} characters"
        )
    return method.lower()


def _put_review(
    book: BookAggregate,
    review: ReviewRecord | None,
    book_guid: str,
    user_guid: str,
    comment: str,
    book_rate: float,
    narrator_rate: float,
) -> tuple[ReviewRecord, str]:
    if review is not None and not review.is_deleted:
        raise ConflictError("User has already commented on this book.")

    restoring = review is not None
    if review is None:
        review = ReviewRecord(book_guid=book_guid, user_guid=user_guid)
        is_edited = False
    else:
        # Likes and flags survive the soft delete; only text changes count as edits
        is_edited = review.text_differs(comment)

    review.set_content(comment, book_rate, narrator_rate, _now())
    review.is_deleted = False
    review.is_edited = is_edited

    # The soft delete already took this review's ratings out of the aggregate
    book.add_review(book_rate, narrator_rate)

    if restoring:
        return review, "Comment restored successfully."
    return review, "Comment added successfully."


def _update_review(
    book: BookAggregate,
    review: ReviewRecord | None,
    comment: str,
    book_rate: float,
    narrator_rate: float,
) -> tuple[ReviewRecord, str]:
    if review is None:
        raise NotFoundError("User has not commented on this book.")
    if review.is_deleted:
        raise ConflictError("Cannot update a deleted comment. Please restore it first.")

    old_book_rate, old_narrator_rate = review.book_rate, review.narrator_rate
    is_edited = review.is_edited or review.text_differs(comment)

    review.set_content(comment, book_rate, narrator_rate, _now())
    review.is_edited = is_edited

    book.change_ratings(old_book_rate, old_narrator_rate, book_rate, narrator_rate)
    return review, "Comment updated successfully."


def _delete_review(book: BookAggregate, review: ReviewRecord | None) -> tuple[ReviewRecord | None, str]:
    if review is None:
        raise NotFoundError("User has not commented on this book.")
    if review.is_deleted:
        return None, "Comment is already deleted."

    # Keep text and ratings so a later put can restore them
    review.is_deleted = True
    book.remove_review(review.book_rate, review.narrator_rate)
    return review, "Comment deleted successfully."


def mutate_review(
    book_guid: str,
    user_guid: str,
    method: str,
    comment: str,
    book_rate: float = 0,
    narrator_rate: float = 0,
) -> dict[str, Any]:
    """
    Put, update or delete a user's review of a book.

    put: create a review, or restore a soft-deleted one (ConflictError if an
         active review exists)
    update: change an active review (NotFoundError if absent, ConflictError if
            soft-deleted)
    delete: soft-delete a review; deleting an already-deleted review succeeds
            without changing anything

    The book aggregate is created on the first put and is updated in the same
    transaction as the review.

    Args:
        book_guid: Book identifier
        user_guid: Reviewer identifier (already authenticated)
        method: "put", "update" or "delete" (case-insensitive)
        comment: Review text, up to MAX_COMMENT_LENGTH characters, may be empty
        book_rate: 0-5, 0 meaning not rated
        narrator_rate: 0-5, 0 meaning not rated

    Returns:
        dict: {"code": 200, "message": ...}

    Raises:
        ValidationError, NotFoundError, ConflictError, TransientConflictError
    """
    method = validate_review_input(method, comment, book_rate, narrator_rate)
    if not isinstance(book_guid, str) or not book_guid.strip():
        raise ValidationError("Invalid book_guid.")
    if not isinstance(user_guid, str) or not user_guid.strip():
        raise ValidationError("Invalid user_guid.")

    book_key = {"book_guid": book_guid}
    review_key = {"id": review_id(book_guid, user_guid)}

    def operation(txn: Transaction) -> dict[str, Any]:
        book_item = txn.get(config.review_books_table, book_key)
        if book_item is None:
            if method != "put":
                raise NotFoundError("Book does not exist or user has not commented on this book.")
            book = BookAggregate(book_guid=book_guid)
        else:
            book = BookAggregate.from_item(book_item)

        review_item = txn.get(config.review_content_table, review_key)
        review = ReviewRecord.from_item(review_item) if review_item is not None else None

        updated: ReviewRecord | None
        if method == "put":
            updated, message = _put_review(
                book, review, book_guid, user_guid, comment, book_rate, narrator_rate
            )
        elif method == "update":
            updated, message = _update_review(book, review, comment, book_rate, narrator_rate)
        else:
            updated, message = _delete_review(book, review)

        if updated is not None:
            txn.put(config.review_content_table, review_key, {**(review_item or {}), **updated.to_item()})
            txn.put(config.review_books_table, book_key, {**(book_item or {}), **book.to_item()})

        return _result(message)

    result = run_transaction(operation)
    logger.info(f"Review {method} for book {book_guid} by {user_guid}: {result['message']}")
    return result


def toggle_interaction(
    comment_guid: str,
    actor_guid: str,
    kind: InteractionKind,
    activate: bool,
) -> dict[str, Any]:
    """
    Activate or deactivate a like/flag by ``actor_guid`` on a review.

    The actor's ledger entry for the review's book records which review
    owners they currently like/flag; the review's counter moves with it.

    Args:
        comment_guid: Target review id ("{book_guid}_{user_guid}")
        actor_guid: Acting user (already authenticated and ban-checked)
        kind: LIKE or FLAG
        activate: True for like/flag, False for unlike/unflag

    Returns:
        dict: {"code": 200, "message": ...}

    Raises:
        ValidationError: Empty comment_guid/actor, or review missing its book_guid
        NotFoundError: Review absent or soft-deleted
        SelfInteractionError: Actor owns the review
        AlreadyActiveError: Activating an active like/flag
        NotActiveError: Deactivating without a prior like/flag
        TransientConflictError: Contention outlasted the retry budget
    """
    if not isinstance(comment_guid, str) or not comment_guid.strip():
        raise ValidationError("Invalid comment_guid.")
    if not isinstance(actor_guid, str) or not actor_guid.strip():
        raise ValidationError("Invalid user_guid.")

    review_key = {"id": comment_guid}

    def operation(txn: Transaction) -> dict[str, Any]:
        review_item = txn.get(config.review_content_table, review_key)
        if review_item is None or review_item.get("is_deleted") is True:
            raise NotFoundError("Comment does not exist.")

        review = ReviewRecord.from_item(review_item)
        owner_guid = review.user_guid

        if owner_guid == actor_guid:
            raise SelfInteractionError(f"User cannot {kind.name} their own comment.")
        if not review.book_guid:
            raise ValidationError("Comment is missing book_guid.")

        ledger_key = {"id": ledger_id(actor_guid, review.book_guid)}
        ledger_item = txn.get(config.interaction_ledger_table, ledger_key)
        if ledger_item is None:
            ledger = InteractionLedgerEntry(user_guid=actor_guid, book_guid=review.book_guid)
        else:
            ledger = InteractionLedgerEntry.from_item(ledger_item)

        owners = ledger.owners(kind.owners_field)
        count = getattr(review, kind.counter_field)

        if activate:
            if owner_guid in owners:
                raise AlreadyActiveError(f"User has already {kind.done} this comment.")
            owners.append(owner_guid)
            count += 1
            message = f"Comment {kind.done} successfully."
        else:
            if owner_guid not in owners:
                raise NotActiveError(f"User has not {kind.done} this comment.")
            owners.remove(owner_guid)
            count = max(0, count - 1)
            message = f"Comment {kind.undone} successfully."

        txn.put(config.review_content_table, review_key, {**review_item, kind.counter_field: count})
        txn.put(config.interaction_ledger_table, ledger_key, {**(ledger_item or {}), **ledger.to_item()})
        return _result(message)

    result = run_transaction(operation)
    logger.info(f"{kind.name} toggle on {comment_guid} by {actor_guid}: {result['message']}")
    return result
