"""Tests for category merging, statistics and the category service."""

import asyncio
from decimal import Decimal

import pytest
from pydantic import ValidationError

from conftest import USER
from falusy.domain import DEFAULT_CATEGORIES, CategoryService, all_categories, category_statistics
from falusy.models import CustomCategory, Expense, Revenue
from falusy.services.remote import Collection
from falusy.toasts import ToastLevel


@pytest.fixture
def service(remote, activity, toasts):
    return CategoryService(remote, USER, activity, toasts)


def custom(name, icon="⭐", color="#123456", doc_id=None) -> CustomCategory:
    return CustomCategory(id=doc_id or name.lower(), user_id=USER, name=name, icon=icon, color=color)


class TestCategoryMerge:
    def test_builtins_without_custom(self):
        merged = all_categories([])
        assert [c.name for c in merged] == [c.name for c in DEFAULT_CATEGORIES]
        assert all(c.is_default for c in merged)
        assert len(merged) == 8

    def test_custom_categories_are_appended(self):
        merged = all_categories([custom("Pets")])
        assert merged[-1].name == "Pets"
        assert merged[-1].is_default is False
        assert merged[-1].id == "pets"

    def test_custom_overrides_builtin_look(self):
        """Test a same-named custom category changes icon/colour but stays default."""
        merged = all_categories([custom("food", icon="🍕", color="#000000", doc_id="c1")])
        food = next(c for c in merged if c.name == "Food")
        assert food.icon == "🍕"
        assert food.color == "#000000"
        assert food.is_default is True
        assert food.id == "c1"
        assert len(merged) == 8


class TestCategoryStatistics:
    def test_totals_and_net(self):
        expenses = [
            Expense(id="e1", user_id=USER, amount=Decimal("10"), category="Food"),
            Expense(id="e2", user_id=USER, amount=Decimal("5"), category="Food"),
            Expense(id="e3", user_id=USER, amount=Decimal("100"), category="Bills"),
        ]
        revenues = [Revenue(id="r1", user_id=USER, amount=Decimal("3"), category="Food")]

        stats = category_statistics("Food", expenses, revenues)
        assert stats.total_expenses == Decimal("15")
        assert stats.total_revenues == Decimal("3")
        assert stats.count == 3
        assert stats.net == Decimal("-12")


class TestCategoryService:
    def test_add_update_delete(self, remote, toasts, service):
        async def scenario():
            category_id = await service.add_category({"name": "Pets", "icon": "🐶", "color": "#abc"})
            await service.update_category(category_id, {"color": "#ABCDEF"})
            updated = await remote.get(Collection.CUSTOM_CATEGORIES, category_id)
            await service.delete_category(category_id)
            return updated, await remote.get(Collection.CUSTOM_CATEGORIES, category_id)

        updated, deleted = asyncio.run(scenario())
        assert updated["color"] == "#ABCDEF"
        assert updated["name"] == "Pets"
        assert updated["userId"] == USER
        assert deleted is None
        assert toasts.keys(ToastLevel.SUCCESS) == ["category_added", "category_updated", "category_deleted"]

    @pytest.mark.parametrize("data", [
        {"name": "", "icon": "🐶", "color": "#abc"},
        {"name": "Pets", "icon": "", "color": "#abc"},
        {"name": "Pets", "icon": "🐶", "color": "blue"},
    ])
    def test_invalid_category_is_rejected(self, remote, service, data):
        with pytest.raises(ValidationError):
            asyncio.run(service.add_category(data))
        assert asyncio.run(remote.query(Collection.CUSTOM_CATEGORIES)) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
