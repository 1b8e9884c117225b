"""
Records persisted by the review core

- BookAggregate: per-book rating statistics, keyed by book_guid
- ReviewRecord: one user's review of one book, keyed by "{book_guid}_{user_guid}"
- InteractionLedgerEntry: which review owners an actor has liked/flagged on a
  book, keyed by "{user_guid}_{book_guid}"

Each record converts to and from the DynamoDB item shape. The ``version``
attribute is owned by the transaction layer and never appears here.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

# Support both Lambda deployment and local development
try:
    from reviews.ratings import apply_rating_change, overall_rate
    from utils.dynamodb import ledger_id, number_field, review_id
except ImportError:
    from reviews_backend.reviews.ratings import apply_rating_change, overall_rate
    from reviews_backend.utils.dynamodb import ledger_id, number_field, review_id


@dataclass
class BookAggregate:
    book_guid: str
    book_rate: float = 0
    book_rate_number: int = 0
    narrator_rate: float = 0
    narrator_rate_number: int = 0
    overall_rate: float = 0
    number_of_comments: int = 0

    @classmethod
    def from_item(cls, item: dict) -> "BookAggregate":
        return cls(
            book_guid=item["book_guid"],
            book_rate=number_field(item, "book_rate"),
            book_rate_number=int(number_field(item, "book_rate_number")),
            narrator_rate=number_field(item, "narrator_rate"),
            narrator_rate_number=int(number_field(item, "narrator_rate_number")),
            overall_rate=number_field(item, "overall_rate"),
            number_of_comments=int(number_field(item, "number_of_comments")),
        )

    def to_item(self) -> dict[str, Any]:
        return asdict(self)

    def key(self) -> dict[str, str]:
        return {"book_guid": self.book_guid}

    def add_review(self, book_rate: float, narrator_rate: float) -> None:
        """Count a newly active review and fold in its non-zero ratings."""
        self.number_of_comments += 1
        self.change_ratings(0, 0, book_rate, narrator_rate)

    def remove_review(self, book_rate: float, narrator_rate: float) -> None:
        """Drop a review that is going inactive, along with its ratings."""
        self.number_of_comments = max(0, self.number_of_comments - 1)
        self.change_ratings(book_rate, narrator_rate, 0, 0)

    def change_ratings(
        self,
        old_book_rate: float,
        old_narrator_rate: float,
        new_book_rate: float,
        new_narrator_rate: float,
    ) -> None:
        self.book_rate, self.book_rate_number = apply_rating_change(
            self.book_rate, self.book_rate_number, old_book_rate, new_book_rate
        )
        self.narrator_rate, self.narrator_rate_number = apply_rating_change(
            self.narrator_rate, self.narrator_rate_number, old_narrator_rate, new_narrator_rate
        )
        self.recompute_overall_rate()

    def recompute_overall_rate(self) -> None:
        self.overall_rate = overall_rate(
            self.book_rate,
            self.narrator_rate,
            self.book_rate_number,
            self.narrator_rate_number,
        )


@dataclass
class ReviewRecord:
    book_guid: str
    user_guid: str
    comment: str = ""
    book_rate: float = 0
    narrator_rate: float = 0
    timestamp: str | None = None
    num_of_likes: int = 0
    num_of_flags: int = 0
    is_there_comment: bool = False
    is_deleted: bool = False
    is_edited: bool = False

    @property
    def id(self) -> str:
        return review_id(self.book_guid, self.user_guid)

    @classmethod
    def from_item(cls, item: dict) -> "ReviewRecord":
        comment = item.get("comment") or ""
        return cls(
            book_guid=item.get("book_guid", ""),
            user_guid=item.get("user_guid", ""),
            comment=comment,
            book_rate=number_field(item, "book_rate"),
            narrator_rate=number_field(item, "narrator_rate"),
            timestamp=item.get("timestamp"),
            num_of_likes=int(number_field(item, "num_of_likes")),
            num_of_flags=int(number_field(item, "num_of_flags")),
            is_there_comment=bool(item.get("is_there_comment", comment.strip() != "")),
            is_deleted=item.get("is_deleted") is True,
            is_edited=item.get("is_edited") is True,
        )

    def to_item(self) -> dict[str, Any]:
        item = asdict(self)
        item["id"] = self.id
        return item

    def key(self) -> dict[str, str]:
        return {"id": self.id}

    def text_differs(self, comment: str) -> bool:
        """Whether ``comment`` differs from the stored text, ignoring surrounding whitespace."""
        return self.comment.strip() != comment.strip()

    def set_content(self, comment: str, book_rate: float, narrator_rate: float, timestamp: str) -> None:
        self.comment = comment
        self.book_rate = book_rate
        self.narrator_rate = narrator_rate
        self.timestamp = timestamp
        self.is_there_comment = comment.strip() != ""


@dataclass
class InteractionLedgerEntry:
    user_guid: str
    book_guid: str
    liked_comment_owners: list[str] = field(default_factory=list)
    flagged_comment_owners: list[str] = field(default_factory=list)

    @property
    def id(self) -> str:
        return ledger_id(self.user_guid, self.book_guid)

    @classmethod
    def from_item(cls, item: dict) -> "InteractionLedgerEntry":
        return cls(
            user_guid=item["user_guid"],
            book_guid=item["book_guid"],
            liked_comment_owners=list(item.get("liked_comment_owners") or []),
            flagged_comment_owners=list(item.get("flagged_comment_owners") or []),
        )

    def to_item(self) -> dict[str, Any]:
        item = asdict(self)
        item["id"] = self.id
        return item

    def key(self) -> dict[str, str]:
        return {"id": self.id}

    def owners(self, owners_field: str) -> list[str]:
        return getattr(self, owners_field)
