"""
Transaction Service

Create, update and delete expenses and revenues for one user.

Documents written to the remote service carry:
- userId of the session user
- amount as a JSON number
- date as an ISO date string
- createdAt as a UTC datetime (stored natively by the backend)
"""

from typing import Any, Mapping, Union

import structlog

from falusy.domain.base import DomainService
from falusy.models.activity import EntityType
from falusy.models.records import (
    ExpenseInput,
    RevenueInput,
    TransactionInput,
    TransactionKind,
    TransactionUpdate,
    utc_now,
)
from falusy.services.remote import Collection


logger = structlog.get_logger(__name__)

_COLLECTIONS = {
    TransactionKind.EXPENSE: Collection.EXPENSES,
    TransactionKind.REVENUE: Collection.REVENUES,
}

_ENTITY_TYPES = {
    TransactionKind.EXPENSE: EntityType.EXPENSE,
    TransactionKind.REVENUE: EntityType.REVENUE,
}


def _numeric_amount(document: dict[str, Any]) -> dict[str, Any]:
    if document.get("amount") is not None:
        document["amount"] = float(document["amount"])
    return document


class TransactionService(DomainService):
    """CRUD facade over the expenses and revenues collections."""

    async def add_expense(self, data: Union[ExpenseInput, Mapping[str, Any]]) -> str:
        payload = self._validate(ExpenseInput, data)
        return await self._add(TransactionKind.EXPENSE, payload)

    async def add_revenue(self, data: Union[RevenueInput, Mapping[str, Any]]) -> str:
        payload = self._validate(RevenueInput, data)
        return await self._add(TransactionKind.REVENUE, payload)

    async def update_expense(
        self,
        expense_id: str,
        changes: Union[TransactionUpdate, Mapping[str, Any]],
    ) -> None:
        await self._update(TransactionKind.EXPENSE, expense_id, changes)

    async def update_revenue(
        self,
        revenue_id: str,
        changes: Union[TransactionUpdate, Mapping[str, Any]],
    ) -> None:
        await self._update(TransactionKind.REVENUE, revenue_id, changes)

    async def delete_expense(self, expense_id: str) -> None:
        await self._delete(TransactionKind.EXPENSE, expense_id)

    async def delete_revenue(self, revenue_id: str) -> None:
        await self._delete(TransactionKind.REVENUE, revenue_id)

    # ------------------------------------------------------------------

    async def _add(self, kind: TransactionKind, payload: TransactionInput) -> str:
        document = _numeric_amount(payload.to_document())
        document["userId"] = self.user_id
        document["createdAt"] = utc_now()

        doc_id = await self._remote_call(
            self._remote.create(_COLLECTIONS[kind], document),
            f"{kind.value}_add_failed",
            "transaction_add_failed",
            kind=kind.value,
        )
        logger.info("transaction_added", kind=kind.value, doc_id=doc_id, user_id=self.user_id)

        await self._activity.log_added(
            self.user_id,
            _ENTITY_TYPES[kind],
            doc_id,
            {"amount": float(payload.amount), "category": payload.category},
        )
        self._toasts.success(f"{kind.value}_added")
        return doc_id

    async def _update(
        self,
        kind: TransactionKind,
        doc_id: str,
        data: Union[TransactionUpdate, Mapping[str, Any]],
    ) -> None:
        update = self._validate(TransactionUpdate, data)
        changes = _numeric_amount(update.to_changes())
        if kind is TransactionKind.REVENUE:
            changes.pop("type", None)
        if not changes:
            logger.debug("transaction_update_empty", kind=kind.value, doc_id=doc_id)
            return

        await self._remote_call(
            self._remote.update(_COLLECTIONS[kind], doc_id, changes),
            f"{kind.value}_update_failed",
            "transaction_update_failed",
            kind=kind.value,
            doc_id=doc_id,
        )
        logger.info("transaction_updated", kind=kind.value, doc_id=doc_id, fields=sorted(changes))

        await self._activity.log_edited(self.user_id, _ENTITY_TYPES[kind], doc_id, changes)
        self._toasts.success(f"{kind.value}_updated")

    async def _delete(self, kind: TransactionKind, doc_id: str) -> None:
        await self._remote_call(
            self._remote.delete(_COLLECTIONS[kind], doc_id),
            f"{kind.value}_delete_failed",
            "transaction_delete_failed",
            kind=kind.value,
            doc_id=doc_id,
        )
        logger.info("transaction_deleted", kind=kind.value, doc_id=doc_id)

        await self._activity.log_deleted(self.user_id, _ENTITY_TYPES[kind], doc_id)
        self._toasts.success(f"{kind.value}_deleted")
