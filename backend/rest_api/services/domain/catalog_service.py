"""
Catalog Service - products and categories.

CLEAN-ARCH: Handles all catalog business logic for one unit of work.

Business rules:
- SKU is unique among the tenant's active products
- A product's category must be active
- Category order is auto-calculated if not provided
- A category cannot be removed while an active product references it
- Initial stock of a new product is recorded as "Stock inicial"
- Removal is a soft delete; order items keep their snapshots
"""

from __future__ import annotations

from sqlalchemy import func, select

from rest_api.models import Category, Product
from rest_api.services.base_service import LedgerService
from rest_api.services.events import CatalogUpdated
from shared.config.constants import StockReason
from shared.config.logging import get_logger
from shared.utils.exceptions import DuplicateEntityError, ValidationError
from shared.utils.schemas import CategoryCreate, CategoryUpdate, ProductCreate, ProductUpdate

from .stock_service import StockService
from .tenant_service import TenantService

logger = get_logger(__name__)


class CatalogService(LedgerService):
    """
    Service for product and category management.

    Usage:
        with ledger.unit_of_work(tenant_id) as uow:
            product = CatalogService(uow).create_product(data, actor_user_id=user_id)
    """

    def __init__(self, uow):
        super().__init__(uow)
        self._products = self.repo(Product, "Producto")
        self._categories = self.repo(Category, "Categoría")

    def _catalog_updated(self, entity: str, entity_id: int, action: str) -> CatalogUpdated:
        return CatalogUpdated(
            tenant_id=self.tenant_id, entity=entity, entity_id=entity_id, action=action
        )

    def _ensure_unique_sku(self, sku: str | None, exclude_id: int | None = None) -> None:
        if not sku:
            return
        criteria = [Product.sku == sku]
        if exclude_id is not None:
            criteria.append(Product.id != exclude_id)
        if self._products.exists(self.tenant_id, *criteria):
            raise DuplicateEntityError("Producto", sku, tenant_id=self.tenant_id)

    # =========================================================================
    # Categories
    # =========================================================================

    def _next_category_order(self) -> int:
        current = self.db.scalar(
            select(func.max(Category.order)).where(
                Category.tenant_id == self.tenant_id,
                Category.is_active.is_(True),
            )
        )
        return (current or 0) + 1

    def create_category(self, data: CategoryCreate, actor_user_id: int | None = None) -> Category:
        category = Category(
            tenant_id=self.tenant_id,
            name=data.name,
            order=data.order if data.order is not None else self._next_category_order(),
        )
        category.set_created_by(self.require_actor(actor_user_id))
        self._categories.add(category)
        self.db.flush()

        self.emit(self._catalog_updated("category", category.id, "created"))
        logger.info("Category created", tenant_id=self.tenant_id, category_id=category.id)
        return category

    def update_category(
        self,
        category_id: int,
        data: CategoryUpdate,
        actor_user_id: int | None = None,
    ) -> Category:
        category = self._categories.require(category_id, self.tenant_id, for_update=True)
        changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        changes = {k: v for k, v in changes.items() if getattr(category, k) != v}
        if not changes:
            return category

        for field, value in changes.items():
            setattr(category, field, value)
        category.set_updated_by(self.require_actor(actor_user_id))
        self.db.flush()

        self.emit(self._catalog_updated("category", category.id, "updated"))
        logger.info(
            "Category updated",
            tenant_id=self.tenant_id,
            category_id=category.id,
            fields=sorted(changes),
        )
        return category

    def remove_category(self, category_id: int, actor_user_id: int | None = None) -> Category:
        """
        Soft delete a category.

        Raises:
            ValidationError: An active product still references it.
        """
        category = self._categories.require(category_id, self.tenant_id, for_update=True)
        in_use = self._products.count(self.tenant_id, Product.category_id == category.id)
        if in_use:
            raise ValidationError(
                f"La categoría {category.name} tiene {in_use} productos asociados",
                category_id=category.id,
            )

        category.soft_delete(self.require_actor(actor_user_id))
        self.db.flush()

        self.emit(self._catalog_updated("category", category.id, "removed"))
        logger.info("Category removed", tenant_id=self.tenant_id, category_id=category.id)
        return category

    # =========================================================================
    # Products
    # =========================================================================

    def create_product(self, data: ProductCreate, actor_user_id: int | None = None) -> Product:
        TenantService(self.db).ensure_capacity(self.tenant_id, "products")
        self._categories.require(data.category_id, self.tenant_id)
        self._ensure_unique_sku(data.sku)
        actor_user_id = self.require_actor(actor_user_id)

        product = Product(
            tenant_id=self.tenant_id,
            category_id=data.category_id,
            sku=data.sku or None,
            name=data.name,
            description=data.description,
            image=data.image,
            price_cents=data.price_cents,
            stock_enabled=data.stock_enabled,
            stock_quantity=0,
            stock_min=data.stock_min,
        )
        product.set_created_by(actor_user_id)
        self._products.add(product)
        self.db.flush()

        if data.stock_enabled and data.stock_quantity > 0:
            StockService(self.uow).apply_delta(
                product, data.stock_quantity, StockReason.INITIAL, actor_user_id
            )
            self.db.flush()

        self.emit(self._catalog_updated("product", product.id, "created"))
        logger.info(
            "Product created",
            tenant_id=self.tenant_id,
            product_id=product.id,
            stock=product.stock_quantity,
        )
        return product

    def update_product(
        self,
        product_id: int,
        data: ProductUpdate,
        actor_user_id: int | None = None,
    ) -> Product:
        """Edit product fields. Stock quantity is not editable here."""
        product = self._products.require(product_id, self.tenant_id, for_update=True)
        raw = data.model_dump(exclude_unset=True)

        changes: dict = {}
        for field, value in raw.items():
            if field == "sku" and value == "":
                value = None
            # Optional text fields can be cleared; the rest ignore null
            if value is None and field not in ("sku", "description", "image"):
                continue
            if getattr(product, field) != value:
                changes[field] = value

        if "category_id" in changes:
            self._categories.require(changes["category_id"], self.tenant_id)
        if changes.get("sku"):
            self._ensure_unique_sku(changes["sku"], exclude_id=product.id)
        if not changes:
            return product

        for field, value in changes.items():
            setattr(product, field, value)
        product.set_updated_by(self.require_actor(actor_user_id))
        self.db.flush()

        self.emit(self._catalog_updated("product", product.id, "updated"))
        logger.info(
            "Product updated",
            tenant_id=self.tenant_id,
            product_id=product.id,
            fields=sorted(changes),
        )
        return product

    def remove_product(self, product_id: int, actor_user_id: int | None = None) -> Product:
        product = self._products.require(product_id, self.tenant_id, for_update=True)
        product.soft_delete(self.require_actor(actor_user_id))
        self.db.flush()

        self.emit(self._catalog_updated("product", product.id, "removed"))
        logger.info("Product removed", tenant_id=self.tenant_id, product_id=product.id)
        return product
