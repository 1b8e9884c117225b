"""
Shared fixtures for unit tests.

FakeTable and FakeDynamoDBClient stand in for the two DynamoDB surfaces the
review core touches: Table.get_item for reads and the client's
transact_write_items for commits. Commits honour the version/existence
conditions the transaction layer generates, so conflicts behave like the
real service.
"""

import copy
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from botocore.exceptions import ClientError

from reviews_backend import config


class FakeTable:
    """In-memory table keyed by a single partition key attribute."""

    def __init__(self, name, key_attribute):
        self.name = name
        self.key_attribute = key_attribute
        self.items = {}

    def get_item(self, Key, ConsistentRead=False):
        item = self.items.get(Key[self.key_attribute])
        if item is None:
            return {}
        return {"Item": copy.deepcopy(item)}

    def seed(self, item):
        self.items[item[self.key_attribute]] = copy.deepcopy(item)


class FakeDynamoDBClient:
    """
    Minimal transact_write_items implementation.

    before_commit, if set, is called once with no arguments right before the
    next commit is evaluated; tests use it to slip in a competing write.
    """

    def __init__(self, tables):
        self.tables = {table.name: table for table in tables}
        self.commits = []
        self.before_commit = None

    @staticmethod
    def _condition_holds(current, params):
        expression = params["ConditionExpression"]
        if expression == "attribute_not_exists(#key)":
            return current is None
        if current is None:
            return False
        expected = params["ExpressionAttributeValues"][":expected_version"]
        version = current.get("version")
        if version is None:
            return "attribute_not_exists(#version)" in expression
        return int(version) == expected

    def transact_write_items(self, TransactItems):
        if self.before_commit is not None:
            hook, self.before_commit = self.before_commit, None
            hook()

        reasons = []
        puts = []
        for entry in TransactItems:
            operation, params = next(iter(entry.items()))
            table = self.tables[params["TableName"]]
            if operation == "Put":
                key_value = params["Item"][table.key_attribute]
                puts.append((table, key_value, params["Item"]))
            else:
                key_value = params["Key"][table.key_attribute]
            current = table.items.get(key_value)
            reasons.append("None" if self._condition_holds(current, params) else "ConditionalCheckFailed")

        if any(code != "None" for code in reasons):
            raise ClientError(
                {
                    "Error": {"Code": "TransactionCanceledException", "Message": "Transaction cancelled"},
                    "CancellationReasons": [{"Code": code} for code in reasons],
                },  # type: ignore[arg-type]
                "TransactWriteItems",
            )

        for table, key_value, item in puts:
            table.items[key_value] = copy.deepcopy(item)
        self.commits.append(TransactItems)
        return {}


@pytest.fixture(autouse=True)
def no_retry_delay():
    """Retry immediately so conflict tests do not sleep."""
    with patch.object(config, "TRANSACTION_RETRY_BASE_DELAY", 0):
        yield


@pytest.fixture
def tables():
    """Patch config with empty fake tables and a fake transactional client."""
    books = FakeTable("ReviewBooks", "book_guid")
    content = FakeTable("ReviewContent", "id")
    ledger = FakeTable("InteractionLedger", "id")
    banned = FakeTable("BannedUsers", "user_guid")
    client = FakeDynamoDBClient([books, content, ledger])

    with patch.object(config, "review_books_table", books), \
         patch.object(config, "review_content_table", content), \
         patch.object(config, "interaction_ledger_table", ledger), \
         patch.object(config, "banned_users_table", banned), \
         patch.object(config, "dynamodb_client", client):
        yield SimpleNamespace(books=books, content=content, ledger=ledger, banned=banned, client=client)
