"""
DynamoDB utilities for Reviews API

Provides key builders and number conversion between DynamoDB's Decimal
representation and plain Python numbers.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any


def review_id(book_guid: str, user_guid: str) -> str:
    """
    Build the ReviewContent key for a user's review of a book.

    This id doubles as the public ``comment_guid`` used by likes and flags.
    """
    return f"{book_guid}_{user_guid}"


def ledger_id(user_guid: str, book_guid: str) -> str:
    """Build the InteractionLedger key for an actor's interactions on one book."""
    return f"{user_guid}_{book_guid}"


def convert_decimal(value: Any) -> Any:
    """
    Convert Decimal types (from DynamoDB) to int or float.

    Args:
        value: Value that might be a Decimal

    Returns:
        Converted value (int if whole number, float otherwise, or the original value)
    """
    if isinstance(value, Decimal):
        return int(value) if value % 1 == 0 else float(value)
    return value


def to_dynamodb_value(value: Any) -> Any:
    """
    Convert a Python value into something boto3 will serialize.

    boto3 rejects floats, so they are stored as Decimal via their string form
    (``Decimal(str(4.5))`` rather than ``Decimal(4.5)``) to avoid binary noise.
    Lists and dicts are converted recursively.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, list):
        return [to_dynamodb_value(v) for v in value]
    if isinstance(value, dict):
        return {k: to_dynamodb_value(v) for k, v in value.items()}
    return value


def number_field(item: dict, field: str, default: int | float = 0) -> int | float:
    """Read a numeric attribute, treating missing or null as ``default``."""
    value = item.get(field)
    if value is None:
        return default
    return convert_decimal(value)
