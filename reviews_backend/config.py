"""
Configuration and AWS client initialization for Reviews API Lambda handlers

This module provides:
- AWS service clients (DynamoDB resource and its low-level client)
- Environment variable configuration
- Constants used across handlers
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import boto3
from botocore.config import Config

if TYPE_CHECKING:
    from mypy_boto3_dynamodb.client import DynamoDBClient
    from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

# Constants
MAX_COMMENT_LENGTH = 2000  # Maximum length for review comments
MIN_RATE = 0  # 0 means "not rated"
MAX_RATE = 5
REVIEW_METHODS = ("put", "update", "delete")

# Environment configuration
REGION = os.environ.get("AWS_REGION", "us-east-2")
REVIEW_BOOKS_TABLE_NAME = os.environ.get("REVIEW_BOOKS_TABLE")
REVIEW_CONTENT_TABLE_NAME = os.environ.get("REVIEW_CONTENT_TABLE")
INTERACTION_LEDGER_TABLE_NAME = os.environ.get("INTERACTION_LEDGER_TABLE")
BANNED_USERS_TABLE_NAME = os.environ.get("BANNED_USERS_TABLE")

# Whole read-compute-write attempts before giving up on a contended transaction
MAX_TRANSACTION_ATTEMPTS = int(os.environ.get("MAX_TRANSACTION_ATTEMPTS", "3"))
# Upper bound in seconds of the first jittered wait between attempts; doubles per retry
TRANSACTION_RETRY_BASE_DELAY = float(os.environ.get("TRANSACTION_RETRY_BASE_DELAY", "0.05"))

# Initialize AWS clients with type hints
dynamodb: "DynamoDBServiceResource" = boto3.resource(
    "dynamodb",
    region_name=REGION,
    config=Config(retries={"max_attempts": 3, "mode": "standard"}),
)
# The resource's client accepts plain Python values (no AttributeValue wrapping)
dynamodb_client: "DynamoDBClient" = dynamodb.meta.client

# Initialize DynamoDB tables
# For type checking: treat as non-None (tests will mock these)
# For production: Lambda environment must have these env vars set
if REVIEW_BOOKS_TABLE_NAME:
    review_books_table: "Table" = dynamodb.Table(REVIEW_BOOKS_TABLE_NAME)
else:
    review_books_table = None  # type: ignore[assignment]

if REVIEW_CONTENT_TABLE_NAME:
    review_content_table: "Table" = dynamodb.Table(REVIEW_CONTENT_TABLE_NAME)
else:
    review_content_table = None  # type: ignore[assignment]

if INTERACTION_LEDGER_TABLE_NAME:
    interaction_ledger_table: "Table" = dynamodb.Table(INTERACTION_LEDGER_TABLE_NAME)
else:
    interaction_ledger_table = None  # type: ignore[assignment]

if BANNED_USERS_TABLE_NAME:
    banned_users_table: "Table" = dynamodb.Table(BANNED_USERS_TABLE_NAME)
else:
    banned_users_table = None  # type: ignore[assignment]
