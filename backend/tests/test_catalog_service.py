"""
Tests for CatalogService: products and categories.
"""

import pytest
from sqlalchemy import select

from rest_api.models import AuditLog, Category, Product
from rest_api.services.domain import CatalogService
from rest_api.services.events import CatalogUpdated
from shared.utils.exceptions import (
    DuplicateEntityError,
    NotFoundError,
    PlanLimitError,
    ValidationError,
)
from shared.utils.schemas import CategoryCreate, CategoryUpdate, ProductCreate, ProductUpdate


def _catalog(ledger, fn, tenant_id=1):
    with ledger.unit_of_work(tenant_id) as uow:
        return fn(CatalogService(uow))


class TestCategories:
    """Test category management."""

    def test_order_defaults_to_next(self, ledger, seed_user, seed_category):
        category = _catalog(ledger, lambda s: s.create_category(CategoryCreate(name="Postres")))
        assert category.order == 2

    def test_explicit_order(self, ledger, seed_user):
        category = _catalog(ledger, lambda s: s.create_category(CategoryCreate(name="Bebidas", order=9)))
        assert category.order == 9

    def test_update_emits_event(self, ledger, events, seed_category):
        category = _catalog(
            ledger, lambda s: s.update_category(seed_category.id, CategoryUpdate(name="Platos"))
        )
        assert category.name == "Platos"
        assert events[-1] == CatalogUpdated(
            tenant_id=1, entity="category", entity_id=seed_category.id, action="updated", ts=events[-1].ts
        )

    def test_update_without_changes_emits_nothing(self, ledger, events, seed_category):
        _catalog(ledger, lambda s: s.update_category(seed_category.id, CategoryUpdate(name="Principales")))
        assert events == []

    def test_category_in_use_cannot_be_removed(self, ledger, seed_category, stocked_product):
        with pytest.raises(ValidationError):
            _catalog(ledger, lambda s: s.remove_category(seed_category.id))

    def test_remove_after_products_are_gone(self, ledger, db_session, seed_category, stocked_product):
        _catalog(ledger, lambda s: s.remove_product(stocked_product.id))
        _catalog(ledger, lambda s: s.remove_category(seed_category.id))

        db_session.refresh(seed_category)
        assert seed_category.is_active is False


class TestProducts:
    """Test product management."""

    def test_initial_stock_is_audited(self, ledger, events, db_session, seed_user, seed_category):
        product = _catalog(
            ledger,
            lambda s: s.create_product(
                ProductCreate(
                    category_id=seed_category.id,
                    name="Flan",
                    price_cents=3500,
                    stock_enabled=True,
                    stock_quantity=8,
                ),
                actor_user_id=seed_user.id,
            ),
        )

        assert product.stock_quantity == 8
        log = db_session.scalar(select(AuditLog).where(AuditLog.entity_id == product.id))
        assert log.reason == "Stock inicial"
        assert (log.before, log.after) == ({"stock": 0}, {"stock": 8})
        assert log.actor_user_id == seed_user.id

        assert len(events) == 1
        assert events[0].entity == "product"
        assert events[0].action == "created"

    def test_stock_is_ignored_without_stock_control(self, ledger, db_session, seed_category):
        product = _catalog(
            ledger,
            lambda s: s.create_product(
                ProductCreate(category_id=seed_category.id, name="Helado", price_cents=3000, stock_quantity=50)
            ),
        )

        assert product.stock_quantity == 0
        assert db_session.scalars(select(AuditLog)).all() == []

    def test_duplicate_sku(self, ledger, seed_category, stocked_product):
        with pytest.raises(DuplicateEntityError):
            _catalog(
                ledger,
                lambda s: s.create_product(
                    ProductCreate(category_id=seed_category.id, name="Otra", price_cents=1, sku="MIL-01")
                ),
            )

    def test_sku_is_reusable_after_removal(self, ledger, seed_category, stocked_product):
        _catalog(ledger, lambda s: s.remove_product(stocked_product.id))
        product = _catalog(
            ledger,
            lambda s: s.create_product(
                ProductCreate(category_id=seed_category.id, name="Nueva", price_cents=1, sku="MIL-01")
            ),
        )
        assert product.sku == "MIL-01"

    def test_empty_sku_is_stored_as_none(self, ledger, seed_category):
        product = _catalog(
            ledger,
            lambda s: s.create_product(
                ProductCreate(category_id=seed_category.id, name="Pan", price_cents=1, sku="")
            ),
        )
        assert product.sku is None

    def test_unknown_category(self, ledger, seed_tenant):
        with pytest.raises(NotFoundError):
            _catalog(
                ledger,
                lambda s: s.create_product(ProductCreate(category_id=77, name="Pan", price_cents=1)),
            )

    def test_update_does_not_touch_stock(self, ledger, events, seed_user, stocked_product):
        product = _catalog(
            ledger,
            lambda s: s.update_product(
                stocked_product.id, ProductUpdate(price_cents=1200, stock_min=1), seed_user.id
            ),
        )

        assert product.price_cents == 1200
        assert product.stock_min == 1
        assert product.stock_quantity == 10
        assert product.updated_by_id == seed_user.id
        assert events[-1].action == "updated"

    def test_update_without_changes_emits_nothing(self, ledger, events, stocked_product):
        _catalog(ledger, lambda s: s.update_product(stocked_product.id, ProductUpdate(name="Milanesa")))
        assert events == []

    def test_plan_limit(self, ledger, db_session, other_tenant):
        category = Category(tenant_id=other_tenant.id, name="Todo", order=1)
        db_session.add(category)
        db_session.flush()
        for i in range(50):
            db_session.add(
                Product(tenant_id=other_tenant.id, category_id=category.id, name=f"P{i}", price_cents=100)
            )
        db_session.commit()

        with pytest.raises(PlanLimitError) as exc_info:
            _catalog(
                ledger,
                lambda s: s.create_product(
                    ProductCreate(category_id=category.id, name="Uno más", price_cents=100)
                ),
                tenant_id=other_tenant.id,
            )
        assert "productos" in exc_info.value.detail
