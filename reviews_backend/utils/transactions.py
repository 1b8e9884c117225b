"""
Optimistic multi-item transactions over DynamoDB

A transaction attempt reads items with strongly consistent reads, remembers
the ``version`` each one had, and commits every staged write in a single
TransactWriteItems call. Each write is conditioned on the version it was
computed from (or on the item still being absent), and items that were read
but not written get a ConditionCheck, so a commit only lands if nothing it
depended on changed in between.

When DynamoDB cancels the commit because of a condition failure or a
competing transaction, the whole read-compute-write cycle runs again after a
short jittered wait, up to MAX_TRANSACTION_ATTEMPTS times.

Usage:
    def operation(txn):
        key = {"book_guid": "b1"}
        item = txn.get(config.review_books_table, key)
        ...
        txn.put(config.review_books_table, key, {**item, "number_of_comments": 3})
        return result

    result = run_transaction(operation)
"""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Callable, TypeVar

from botocore.exceptions import ClientError

# Support both Lambda deployment and local development
try:
    import config
    from reviews.errors import TransientConflictError
    from utils.dynamodb import number_field, to_dynamodb_value
except ImportError:
    import reviews_backend.config as config
    from reviews_backend.reviews.errors import TransientConflictError
    from reviews_backend.utils.dynamodb import number_field, to_dynamodb_value

logger = logging.getLogger(__name__)

T = TypeVar("T")

VERSION_ATTRIBUTE = "version"

# Cancellation reasons that mean "someone else got there first"
RETRYABLE_CANCELLATION_CODES = {"ConditionalCheckFailed", "TransactionConflict"}


class CommitConflict(Exception):
    """A commit was rejected because state it depended on changed."""


def _key_id(table_name: str, key: dict[str, Any]) -> tuple:
    return (table_name, tuple(sorted(key.items())))


def build_condition(key: dict[str, Any], expected_version: int | None) -> dict[str, Any]:
    """
    Build the condition that pins an item to the state observed when it was read.

    Args:
        key: Primary key of the item
        expected_version: Version that was read, or None if the item did not exist

    Returns:
        dict: ConditionExpression plus its attribute names/values
    """
    if expected_version is None:
        key_attribute = next(iter(key))
        return {
            "ConditionExpression": "attribute_not_exists(#key)",
            "ExpressionAttributeNames": {"#key": key_attribute},
        }

    if expected_version == 0:
        # Items written before versioning have no version attribute
        expression = "attribute_not_exists(#version) OR #version = :expected_version"
    else:
        expression = "#version = :expected_version"

    return {
        "ConditionExpression": expression,
        "ExpressionAttributeNames": {"#version": VERSION_ATTRIBUTE},
        "ExpressionAttributeValues": {":expected_version": expected_version},
    }


class Transaction:
    """
    One attempt of an optimistic transaction.

    Not reusable: run_transaction creates a fresh Transaction per attempt.
    """

    def __init__(self) -> None:
        # key id -> (table, key, version observed or None if absent)
        self._reads: dict[tuple, tuple[Any, dict[str, Any], int | None]] = {}
        # key id -> item to write
        self._writes: dict[tuple, dict[str, Any]] = {}

    def get(self, table, key: dict[str, Any]) -> dict[str, Any] | None:
        """
        Read an item and record its version for the commit condition.

        Returns:
            dict: The item (without the version attribute), or None if absent
        """
        key_id = _key_id(table.name, key)
        response = table.get_item(Key=key, ConsistentRead=True)
        item = response.get("Item")

        if item is None:
            self._reads[key_id] = (table, key, None)
            return None

        item = dict(item)
        version = int(number_field(item, VERSION_ATTRIBUTE))
        item.pop(VERSION_ATTRIBUTE, None)
        self._reads[key_id] = (table, key, version)
        return item

    def put(self, table, key: dict[str, Any], item: dict[str, Any]) -> None:
        """
        Stage a full-item write. The item must have been read in this transaction.

        Raises:
            ValueError: If the item was not read first
        """
        key_id = _key_id(table.name, key)
        if key_id not in self._reads:
            raise ValueError(f"Item {key} in {table.name} must be read before it is written")
        self._writes[key_id] = item

    @property
    def has_writes(self) -> bool:
        return bool(self._writes)

    def build_transact_items(self) -> list[dict[str, Any]]:
        """Build the TransactItems list for all staged writes and read-only checks."""
        transact_items = []

        for key_id, (table, key, version) in self._reads.items():
            condition = build_condition(key, version)

            if key_id in self._writes:
                item = dict(self._writes[key_id])
                item[VERSION_ATTRIBUTE] = (version or 0) + 1
                transact_items.append(
                    {"Put": {"TableName": table.name, "Item": to_dynamodb_value(item), **condition}}
                )
            else:
                transact_items.append(
                    {"ConditionCheck": {"TableName": table.name, "Key": key, **condition}}
                )

        return transact_items

    def commit(self) -> None:
        """
        Commit staged writes atomically. No-op when nothing was written.

        Raises:
            CommitConflict: If a condition failed or another transaction interfered
            ClientError: For any other DynamoDB failure
        """
        if not self._writes:
            return

        try:
            config.dynamodb_client.transact_write_items(TransactItems=self.build_transact_items())
        except ClientError as e:
            if e.response["Error"]["Code"] != "TransactionCanceledException":  # type: ignore[typeddict-item]
                raise
            reasons = e.response.get("CancellationReasons", [])  # type: ignore[typeddict-item]
            codes = {reason.get("Code") for reason in reasons if reason.get("Code") not in (None, "None")}
            if codes and not codes <= RETRYABLE_CANCELLATION_CODES:
                raise
            raise CommitConflict(", ".join(sorted(codes)) or "TransactionCanceled") from e


def retry_delay(attempt: int) -> float:
    """Full-jitter wait before retrying after the given failed attempt."""
    return random.uniform(0, config.TRANSACTION_RETRY_BASE_DELAY * 2 ** (attempt - 1))


def run_transaction(operation: Callable[[Transaction], T], max_attempts: int | None = None) -> T:
    """
    Run ``operation`` inside an optimistic transaction, retrying on conflicts.

    ``operation`` receives a fresh Transaction on each attempt and must do all
    of its reads and writes through it. Exceptions raised by ``operation``
    abort the attempt with nothing written and propagate unchanged.

    Args:
        operation: Callable performing reads, staging writes and returning a result
        max_attempts: Override for config.MAX_TRANSACTION_ATTEMPTS

    Returns:
        Whatever ``operation`` returned on the attempt that committed

    Raises:
        TransientConflictError: If every attempt hit a conflict
    """
    attempts = max_attempts or config.MAX_TRANSACTION_ATTEMPTS

    for attempt in range(1, attempts + 1):
        txn = Transaction()
        result = operation(txn)
        try:
            txn.commit()
        except CommitConflict as e:
            logger.warning(f"Transaction conflict on attempt {attempt}/{attempts}: {str(e)}")
            if attempt < attempts:
                time.sleep(retry_delay(attempt))
            continue
        return result

    logger.error(f"Transaction abandoned after {attempts} conflicting attempts")
    raise TransientConflictError()
