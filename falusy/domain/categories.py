"""
Categories

Eight built-in categories, merged with the user's custom ones. A custom
category named like a built-in one overrides the icon and colour but the
merged entry stays a default category.
"""

from decimal import Decimal
from typing import Any, Mapping, Sequence, Union

import structlog
from pydantic import BaseModel

from falusy.domain.base import DomainService
from falusy.models.activity import EntityType
from falusy.models.records import (
    CategoryDefinition,
    CategoryInput,
    CategoryUpdate,
    CustomCategory,
    Expense,
    Revenue,
    utc_now,
)
from falusy.services.remote import Collection


logger = structlog.get_logger(__name__)

DEFAULT_CATEGORIES: tuple[CategoryDefinition, ...] = (
    CategoryDefinition(name="Food", icon="🍔", color="#FF6B6B", is_default=True),
    CategoryDefinition(name="Transportation", icon="🚗", color="#4ECDC4", is_default=True),
    CategoryDefinition(name="Shopping", icon="🛒", color="#45B7D1", is_default=True),
    CategoryDefinition(name="Health", icon="🏥", color="#96CEB4", is_default=True),
    CategoryDefinition(name="Entertainment", icon="🎬", color="#FFEAA7", is_default=True),
    CategoryDefinition(name="Bills", icon="💡", color="#DDA15E", is_default=True),
    CategoryDefinition(name="Education", icon="📚", color="#9B59B6", is_default=True),
    CategoryDefinition(name="Other", icon="📦", color="#95A5A6", is_default=True),
)


def all_categories(custom: Sequence[CustomCategory]) -> list[CategoryDefinition]:
    """Built-ins first (with any overrides applied), then the remaining custom ones."""
    by_name = {c.name.strip().casefold(): c for c in custom}
    merged = []
    for default in DEFAULT_CATEGORIES:
        override = by_name.pop(default.name.casefold(), None)
        if override is None:
            merged.append(default)
        else:
            merged.append(default.model_copy(update={
                "icon": override.icon or default.icon,
                "color": override.color or default.color,
                "id": override.id,
            }))
    for category in custom:
        if by_name.pop(category.name.strip().casefold(), None) is not None:
            merged.append(CategoryDefinition(
                name=category.name,
                icon=category.icon,
                color=category.color,
                is_default=False,
                id=category.id,
            ))
    return merged


class CategoryStatistics(BaseModel):
    """Per-category totals."""

    category: str
    total_expenses: Decimal = Decimal("0")
    total_revenues: Decimal = Decimal("0")
    count: int = 0

    @property
    def net(self) -> Decimal:
        return self.total_revenues - self.total_expenses


def category_statistics(
    name: str,
    expenses: Sequence[Expense],
    revenues: Sequence[Revenue],
) -> CategoryStatistics:
    matching_expenses = [e for e in expenses if e.category == name]
    matching_revenues = [r for r in revenues if r.category == name]
    return CategoryStatistics(
        category=name,
        total_expenses=sum((e.amount for e in matching_expenses), Decimal("0")),
        total_revenues=sum((r.amount for r in matching_revenues), Decimal("0")),
        count=len(matching_expenses) + len(matching_revenues),
    )


class CategoryService(DomainService):
    """CRUD facade over the customCategories collection."""

    async def add_category(self, data: Union[CategoryInput, Mapping[str, Any]]) -> str:
        payload = self._validate(CategoryInput, data)
        document = payload.to_document()
        document["userId"] = self.user_id
        document["createdAt"] = utc_now()

        category_id = await self._remote_call(
            self._remote.create(Collection.CUSTOM_CATEGORIES, document),
            "category_add_failed",
            "category_add_failed",
        )
        logger.info("category_added", category_id=category_id, name=payload.name)

        await self._activity.log_added(self.user_id, EntityType.CATEGORY, category_id, {"name": payload.name})
        self._toasts.success("category_added")
        return category_id

    async def update_category(
        self,
        category_id: str,
        data: Union[CategoryUpdate, Mapping[str, Any]],
    ) -> None:
        changes = self._validate(CategoryUpdate, data).to_changes()
        if not changes:
            return

        await self._remote_call(
            self._remote.update(Collection.CUSTOM_CATEGORIES, category_id, changes),
            "category_update_failed",
            "category_update_failed",
            category_id=category_id,
        )
        await self._activity.log_edited(self.user_id, EntityType.CATEGORY, category_id, changes)
        self._toasts.success("category_updated")

    async def delete_category(self, category_id: str) -> None:
        await self._remote_call(
            self._remote.delete(Collection.CUSTOM_CATEGORIES, category_id),
            "category_delete_failed",
            "category_delete_failed",
            category_id=category_id,
        )
        await self._activity.log_deleted(self.user_id, EntityType.CATEGORY, category_id)
        self._toasts.success("category_deleted")
