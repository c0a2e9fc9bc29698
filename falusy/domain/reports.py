"""
Financial summaries and CSV export.

All functions are pure: they work on the record lists the live
collections already hold.
"""

import csv
import io
from decimal import Decimal
from typing import Optional, Sequence

from pydantic import BaseModel

from falusy.i18n import DEFAULT_LANGUAGE, translate
from falusy.models.records import Expense, Revenue, TransactionRecord
from falusy.sync.ordering import sort_transactions


class FinancialSummary(BaseModel):
    total_expenses: Decimal = Decimal("0")
    total_revenues: Decimal = Decimal("0")
    expense_count: int = 0
    revenue_count: int = 0

    @property
    def net(self) -> Decimal:
        return self.total_revenues - self.total_expenses


class MonthlyTotal(BaseModel):
    month: str  # YYYY-MM
    expenses: Decimal = Decimal("0")
    revenues: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.revenues - self.expenses


def _total(records: Sequence[TransactionRecord]) -> Decimal:
    return sum((r.amount for r in records), Decimal("0"))


def summarize(expenses: Sequence[Expense], revenues: Sequence[Revenue]) -> FinancialSummary:
    return FinancialSummary(
        total_expenses=_total(expenses),
        total_revenues=_total(revenues),
        expense_count=len(expenses),
        revenue_count=len(revenues),
    )


def project_summary(
    project_id: Optional[str],
    expenses: Sequence[Expense],
    revenues: Sequence[Revenue],
) -> FinancialSummary:
    """Summary of one project; None selects unassigned transactions."""
    return summarize(
        [e for e in expenses if e.project_id == project_id],
        [r for r in revenues if r.project_id == project_id],
    )


def monthly_totals(expenses: Sequence[Expense], revenues: Sequence[Revenue]) -> list[MonthlyTotal]:
    """Per-month totals in ascending month order; undated records are skipped."""
    months: dict[str, MonthlyTotal] = {}

    def bucket(record: TransactionRecord) -> Optional[MonthlyTotal]:
        if record.date is None:
            return None
        key = record.date.strftime("%Y-%m")
        return months.setdefault(key, MonthlyTotal(month=key))

    for expense in expenses:
        total = bucket(expense)
        if total is not None:
            total.expenses += expense.amount
    for revenue in revenues:
        total = bucket(revenue)
        if total is not None:
            total.revenues += revenue.amount

    return [months[key] for key in sorted(months)]


CSV_COLUMNS = ("date", "type", "category", "description", "amount", "payment_method")


def export_csv(
    expenses: Sequence[Expense],
    revenues: Sequence[Revenue],
    language: str = DEFAULT_LANGUAGE,
) -> str:
    """All transactions as CSV, newest first, with localized headers."""
    expense_label = translate("csv_expense", language)
    revenue_label = translate("csv_revenue", language)

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([translate(f"csv_{column}", language) for column in CSV_COLUMNS])
    for record in sort_transactions([*expenses, *revenues]):
        writer.writerow([
            record.date.isoformat() if record.date else "",
            expense_label if isinstance(record, Expense) else revenue_label,
            record.category,
            record.description or "",
            str(record.amount),
            record.payment_method,
        ])
    return buffer.getvalue()
