"""
Budgets

A budget caps spending over a calendar window:
- monthly: first to last day of the month it was created in
- yearly: January 1st to December 31st of that year

A budget with a category only counts expenses in that category.
Alerts fire at the budget's threshold (warning) and at 100% (exceeded).
"""

import calendar
import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Union

import structlog
from pydantic import BaseModel

from falusy.domain.base import DomainService
from falusy.models.activity import EntityType
from falusy.models.records import Budget, BudgetInput, BudgetPeriod, Expense, utc_now
from falusy.services.remote import Collection


logger = structlog.get_logger(__name__)


def budget_window(period: BudgetPeriod, today: dt.date) -> tuple[dt.date, dt.date]:
    """Calendar window containing today for the given period."""
    if period is BudgetPeriod.YEARLY:
        return dt.date(today.year, 1, 1), dt.date(today.year, 12, 31)
    last_day = calendar.monthrange(today.year, today.month)[1]
    return dt.date(today.year, today.month, 1), dt.date(today.year, today.month, last_day)


class BudgetSpending(BaseModel):
    spent: Decimal
    remaining: Decimal
    percentage: float


def calculate_spending(budget: Budget, expenses: Sequence[Expense]) -> BudgetSpending:
    """Spending against a budget within its window (and category, if any)."""
    spent = Decimal("0")
    for expense in expenses:
        if expense.date is None:
            continue
        if budget.start_date is not None and expense.date < budget.start_date:
            continue
        if budget.end_date is not None and expense.date > budget.end_date:
            continue
        if budget.category and expense.category != budget.category:
            continue
        spent += expense.amount

    percentage = float(spent / budget.amount * 100) if budget.amount > 0 else 0.0
    return BudgetSpending(
        spent=spent,
        remaining=budget.amount - spent,
        percentage=round(percentage, 2),
    )


class BudgetAlertLevel(str, Enum):
    WARNING = "warning"
    EXCEEDED = "exceeded"


class BudgetAlert(BaseModel):
    budget_id: str
    name: str
    level: BudgetAlertLevel
    percentage: float


def budget_alerts(budgets: Sequence[Budget], expenses: Sequence[Expense]) -> list[BudgetAlert]:
    """Alerts for budgets with alerts enabled that reached their threshold."""
    alerts = []
    for budget in budgets:
        if not budget.enable_alerts:
            continue
        spending = calculate_spending(budget, expenses)
        if spending.percentage >= 100:
            level = BudgetAlertLevel.EXCEEDED
        elif spending.percentage >= budget.alert_threshold:
            level = BudgetAlertLevel.WARNING
        else:
            continue
        alerts.append(BudgetAlert(
            budget_id=budget.id,
            name=budget.name,
            level=level,
            percentage=spending.percentage,
        ))
    return alerts


class BudgetService(DomainService):
    """CRUD facade over the budgets collection."""

    async def add_budget(
        self,
        data: Union[BudgetInput, Mapping[str, Any]],
        today: Optional[dt.date] = None,
    ) -> str:
        payload = self._validate(BudgetInput, data)
        start, end = budget_window(payload.period, today or utc_now().date())

        document = payload.to_document()
        document["amount"] = float(payload.amount)
        document["startDate"] = start.isoformat()
        document["endDate"] = end.isoformat()
        document["userId"] = self.user_id
        document["createdAt"] = utc_now()

        budget_id = await self._remote_call(
            self._remote.create(Collection.BUDGETS, document),
            "budget_add_failed",
            "budget_add_failed",
        )
        logger.info("budget_added", budget_id=budget_id, period=payload.period.value)

        await self._activity.log_added(
            self.user_id,
            EntityType.BUDGET,
            budget_id,
            {"name": payload.name, "amount": float(payload.amount)},
        )
        self._toasts.success("budget_added")
        return budget_id

    async def update_budget(
        self,
        budget_id: str,
        data: Union[BudgetInput, Mapping[str, Any]],
    ) -> None:
        payload = self._validate(BudgetInput, data)
        changes = payload.to_document()
        changes["amount"] = float(payload.amount)

        await self._remote_call(
            self._remote.update(Collection.BUDGETS, budget_id, changes),
            "budget_update_failed",
            "budget_update_failed",
            budget_id=budget_id,
        )
        await self._activity.log_edited(self.user_id, EntityType.BUDGET, budget_id, changes)
        self._toasts.success("budget_updated")

    async def delete_budget(self, budget_id: str) -> None:
        await self._remote_call(
            self._remote.delete(Collection.BUDGETS, budget_id),
            "budget_delete_failed",
            "budget_delete_failed",
            budget_id=budget_id,
        )
        await self._activity.log_deleted(self.user_id, EntityType.BUDGET, budget_id)
        self._toasts.success("budget_deleted")

    def announce_alerts(self, budgets: Sequence[Budget], expenses: Sequence[Expense]) -> list[BudgetAlert]:
        """Toast every budget alert and return them."""
        alerts = budget_alerts(budgets, expenses)
        for alert in alerts:
            if alert.level is BudgetAlertLevel.EXCEEDED:
                self._toasts.error("budget_exceeded", name=alert.name)
            else:
                self._toasts.warning(
                    "budget_warning",
                    name=alert.name,
                    percentage=f"{alert.percentage:g}",
                )
        return alerts
