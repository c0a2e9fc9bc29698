"""
Display ordering for live lists.

Comparators return 0 when neither side carries the sort field, so the
stable sort keeps the delivery order for those records.
"""

from functools import cmp_to_key
from typing import Optional, Sequence, TypeVar

from falusy.models.records import Notification, TimestampedRecord, TransactionRecord


R = TypeVar("R", bound=TimestampedRecord)


def _descending(a, b) -> int:
    return (b > a) - (b < a)


def _compare_created(a: Optional[int], b: Optional[int]) -> int:
    if a is not None and b is not None:
        return _descending(a, b)
    return 0


def compare_transactions(a: TransactionRecord, b: TransactionRecord) -> int:
    """Newest business date first; createdAt when a date is missing."""
    if a.date is not None and b.date is not None:
        return _descending(a.date, b.date)
    return _compare_created(a.created_at, b.created_at)


def compare_created(a: TimestampedRecord, b: TimestampedRecord) -> int:
    """Newest createdAt first."""
    return _compare_created(a.created_at, b.created_at)


def compare_notifications(a: Notification, b: Notification) -> int:
    """Urgent first, then unread, then newest."""
    if a.urgent != b.urgent:
        return -1 if a.urgent else 1
    if a.read != b.read:
        return -1 if not a.read else 1
    return _descending(a.created_at or 0, b.created_at or 0)


def sort_transactions(records: Sequence[R]) -> list[R]:
    return sorted(records, key=cmp_to_key(compare_transactions))


def sort_by_created(records: Sequence[R]) -> list[R]:
    return sorted(records, key=cmp_to_key(compare_created))


def sort_notifications(records: Sequence[Notification]) -> list[Notification]:
    return sorted(records, key=cmp_to_key(compare_notifications))
