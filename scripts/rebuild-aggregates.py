#!/usr/bin/env python3
"""
Rebuild book rating aggregates from review content.

This script:
1. Scans the ReviewContent table
2. Recomputes each book's aggregate from its active (non-deleted) reviews
3. Compares against the ReviewBooks table and reports drift
4. With --apply, writes corrected aggregates (conditioned on the version read)
5. Reports like/flag counters that disagree with the InteractionLedger table

Recomputed averages are exact means rounded to one decimal, so they can
differ slightly from incrementally maintained ones; differences under
--tolerance are not reported.

Usage:
    python3 scripts/rebuild-aggregates.py [--apply] [--tolerance 0.1]

Environment variables:
    AWS_REGION: AWS region (default: us-east-2)
    REVIEW_BOOKS_TABLE: Book aggregate table (default: ReviewBooks)
    REVIEW_CONTENT_TABLE: Review table (default: ReviewContent)
    INTERACTION_LEDGER_TABLE: Interaction ledger table (default: InteractionLedger)
"""

import argparse
import os
import sys
from collections import Counter, defaultdict
from decimal import Decimal
from pathlib import Path

import boto3
from botocore.exceptions import ClientError

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from reviews_backend.reviews.models import BookAggregate, ReviewRecord  # noqa: E402
from reviews_backend.reviews.ratings import overall_rate  # noqa: E402
from reviews_backend.utils.dynamodb import number_field, to_dynamodb_value  # noqa: E402

# Configuration
REGION = os.environ.get("AWS_REGION", "us-east-2")
BOOKS_TABLE_NAME = os.environ.get("REVIEW_BOOKS_TABLE", "ReviewBooks")
CONTENT_TABLE_NAME = os.environ.get("REVIEW_CONTENT_TABLE", "ReviewContent")
LEDGER_TABLE_NAME = os.environ.get("INTERACTION_LEDGER_TABLE", "InteractionLedger")

AGGREGATE_FIELDS = (
    "book_rate",
    "book_rate_number",
    "narrator_rate",
    "narrator_rate_number",
    "overall_rate",
    "number_of_comments",
)


def scan_all(table) -> list[dict]:
    """Scan a whole table, following pagination."""
    response = table.scan()
    items = response.get("Items", [])

    while "LastEvaluatedKey" in response:
        response = table.scan(ExclusiveStartKey=response["LastEvaluatedKey"])
        items.extend(response.get("Items", []))

    return items


def _mean(values: list[float]) -> float:
    return round(sum(values) / len(values), 1) if values else 0


def compute_aggregates(reviews: list[ReviewRecord]) -> dict[str, BookAggregate]:
    """
    Compute aggregates from scratch.

    Args:
        reviews: All review records (deleted ones are skipped)

    Returns:
        dict: book_guid -> BookAggregate
    """
    by_book: dict[str, list[ReviewRecord]] = defaultdict(list)
    for review in reviews:
        if not review.is_deleted:
            by_book[review.book_guid].append(review)

    aggregates = {}
    for book_guid, book_reviews in by_book.items():
        book_rates = [r.book_rate for r in book_reviews if r.book_rate > 0]
        narrator_rates = [r.narrator_rate for r in book_reviews if r.narrator_rate > 0]

        aggregate = BookAggregate(
            book_guid=book_guid,
            book_rate=_mean(book_rates),
            book_rate_number=len(book_rates),
            narrator_rate=_mean(narrator_rates),
            narrator_rate_number=len(narrator_rates),
            number_of_comments=len(book_reviews),
        )
        aggregate.overall_rate = overall_rate(
            aggregate.book_rate,
            aggregate.narrator_rate,
            aggregate.book_rate_number,
            aggregate.narrator_rate_number,
        )
        aggregates[book_guid] = aggregate

    return aggregates


def find_drift(stored: dict, expected: BookAggregate, tolerance: float) -> list[str]:
    """Describe fields where the stored aggregate differs from the recomputed one."""
    drift = []
    expected_item = expected.to_item()
    for field in AGGREGATE_FIELDS:
        actual = number_field(stored, field)
        wanted = expected_item[field]
        if field.endswith("_number") or field == "number_of_comments":
            if actual != wanted:
                drift.append(f"{field}: {actual} -> {wanted}")
        elif abs(actual - wanted) > tolerance:
            drift.append(f"{field}: {actual} -> {wanted}")
    return drift


def find_counter_drift(reviews: list[ReviewRecord], ledger_items: list[dict]) -> list[str]:
    """Compare review like/flag counters with the number of ledger entries naming each owner."""
    likes: Counter = Counter()
    flags: Counter = Counter()
    for entry in ledger_items:
        book_guid = entry.get("book_guid")
        for owner in entry.get("liked_comment_owners") or []:
            likes[(book_guid, owner)] += 1
        for owner in entry.get("flagged_comment_owners") or []:
            flags[(book_guid, owner)] += 1

    problems = []
    for review in reviews:
        key = (review.book_guid, review.user_guid)
        if review.num_of_likes != likes[key]:
            problems.append(f"{review.id}: num_of_likes {review.num_of_likes}, ledger {likes[key]}")
        if review.num_of_flags != flags[key]:
            problems.append(f"{review.id}: num_of_flags {review.num_of_flags}, ledger {flags[key]}")
    return problems


def write_aggregate(table, stored: dict | None, aggregate: BookAggregate) -> None:
    """Write a corrected aggregate, failing if it changed since it was scanned."""
    item = {**(stored or {}), **aggregate.to_item()}
    if stored is None:
        item["version"] = 1
        table.put_item(
            Item=to_dynamodb_value(item),
            ConditionExpression="attribute_not_exists(book_guid)",
        )
        return

    version = int(number_field(stored, "version"))
    item["version"] = version + 1
    table.put_item(
        Item=to_dynamodb_value(item),
        ConditionExpression="attribute_not_exists(#version) OR #version = :v",
        ExpressionAttributeNames={"#version": "version"},
        ExpressionAttributeValues={":v": Decimal(version)},
    )


def main():
    """Main rebuild logic."""
    parser = argparse.ArgumentParser(description="Rebuild book rating aggregates")
    parser.add_argument("--apply", action="store_true", help="Write corrected aggregates")
    parser.add_argument("--tolerance", type=float, default=0.1, help="Ignore average drift up to this much")
    args = parser.parse_args()

    print("=" * 60)
    print("📚 Review Aggregate Rebuild")
    print("=" * 60)
    print(f"Region: {REGION}")
    print(f"Books table: {BOOKS_TABLE_NAME}")
    print(f"Content table: {CONTENT_TABLE_NAME}")
    print(f"Ledger table: {LEDGER_TABLE_NAME}")
    print(f"Mode: {'APPLY' if args.apply else 'DRY RUN'}")
    print()

    dynamodb = boto3.resource("dynamodb", region_name=REGION)
    books_table = dynamodb.Table(BOOKS_TABLE_NAME)
    content_table = dynamodb.Table(CONTENT_TABLE_NAME)
    ledger_table = dynamodb.Table(LEDGER_TABLE_NAME)

    print("🔍 Scanning tables...")
    reviews = [ReviewRecord.from_item(item) for item in scan_all(content_table)]
    stored_books = {item["book_guid"]: item for item in scan_all(books_table)}
    ledger_items = scan_all(ledger_table)
    print(f"📊 {len(reviews)} reviews, {len(stored_books)} book aggregates, {len(ledger_items)} ledger entries")
    print()

    stats = {"checked": 0, "drifted": 0, "fixed": 0, "errors": 0}
    expected = compute_aggregates(reviews)

    # Books whose reviews are all deleted must read as empty
    for book_guid in stored_books.keys() - expected.keys():
        expected[book_guid] = BookAggregate(book_guid=book_guid)

    for book_guid, aggregate in sorted(expected.items()):
        stats["checked"] += 1
        stored = stored_books.get(book_guid)
        drift = find_drift(stored or {}, aggregate, args.tolerance)
        if not drift:
            continue

        stats["drifted"] += 1
        print(f"⚠️  {book_guid}")
        for line in drift:
            print(f"     {line}")

        if args.apply:
            try:
                write_aggregate(books_table, stored, aggregate)
                print("  ✅ Corrected")
                stats["fixed"] += 1
            except ClientError as e:
                print(f"  ❌ Failed to update DynamoDB: {str(e)}")
                stats["errors"] += 1

    counter_problems = find_counter_drift(reviews, ledger_items)

    print()
    print("=" * 60)
    print("📊 Rebuild Summary:")
    print("=" * 60)
    print(f"Books checked:         {stats['checked']}")
    print(f"Books with drift:      {stats['drifted']}")
    print(f"Books corrected:       {stats['fixed']}")
    print(f"Errors:                {stats['errors']}")
    print(f"Counter mismatches:    {len(counter_problems)}")
    print("=" * 60)

    for problem in counter_problems:
        print(f"  ⚠️  {problem}")

    return 0 if stats["errors"] == 0 else 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted by user")
        sys.exit(130)
    except Exception as e:
        print(f"\n❌ Fatal error: {str(e)}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
