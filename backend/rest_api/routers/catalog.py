"""
Catalog router.
Handles products and categories.
"""

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rest_api.core.dependencies import get_ledger
from rest_api.services import Ledger
from rest_api.services.domain import CatalogService, QueryService
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context
from shared.utils.schemas import (
    CategoryCreate,
    CategoryOutput,
    CategoryUpdate,
    ProductCreate,
    ProductOutput,
    ProductUpdate,
    QueryFilter,
)

router = APIRouter(tags=["catalog"])


# =============================================================================
# Products
# =============================================================================


@router.get("/api/products", response_model=list[ProductOutput])
def list_products(
    category_id: int | None = None,
    search: str | None = None,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[ProductOutput]:
    flt = QueryFilter(category_id=category_id, search=search, include_inactive=include_inactive)
    products = QueryService(db).query("products", ctx["tenant_id"], flt)
    return [ProductOutput.model_validate(p) for p in products]


@router.post("/api/products", response_model=ProductOutput, status_code=status.HTTP_201_CREATED)
def create_product(
    body: ProductCreate,
    ledger: Ledger = Depends(get_ledger),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> ProductOutput:
    with ledger.unit_of_work(ctx["tenant_id"]) as uow:
        product = CatalogService(uow).create_product(body, actor_user_id=ctx["user_id"])
        return ProductOutput.model_validate(product)


@router.get("/api/products/{product_id}", response_model=ProductOutput)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> ProductOutput:
    return ProductOutput.model_validate(QueryService(db).get_product(product_id, ctx["tenant_id"]))


@router.patch("/api/products/{product_id}", response_model=ProductOutput)
def update_product(
    product_id: int,
    body: ProductUpdate,
    ledger: Ledger = Depends(get_ledger),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> ProductOutput:
    """Edit a product. Stock is adjusted through /api/products/{id}/stock."""
    with ledger.unit_of_work(ctx["tenant_id"]) as uow:
        product = CatalogService(uow).update_product(product_id, body, actor_user_id=ctx["user_id"])
        return ProductOutput.model_validate(product)


@router.delete("/api/products/{product_id}", response_model=ProductOutput)
def remove_product(
    product_id: int,
    ledger: Ledger = Depends(get_ledger),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> ProductOutput:
    with ledger.unit_of_work(ctx["tenant_id"]) as uow:
        product = CatalogService(uow).remove_product(product_id, actor_user_id=ctx["user_id"])
        return ProductOutput.model_validate(product)


# =============================================================================
# Categories
# =============================================================================


@router.get("/api/categories", response_model=list[CategoryOutput])
def list_categories(
    search: str | None = None,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[CategoryOutput]:
    flt = QueryFilter(search=search, include_inactive=include_inactive)
    categories = QueryService(db).query("categories", ctx["tenant_id"], flt)
    return [CategoryOutput.model_validate(c) for c in categories]


@router.post("/api/categories", response_model=CategoryOutput, status_code=status.HTTP_201_CREATED)
def create_category(
    body: CategoryCreate,
    ledger: Ledger = Depends(get_ledger),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> CategoryOutput:
    with ledger.unit_of_work(ctx["tenant_id"]) as uow:
        category = CatalogService(uow).create_category(body, actor_user_id=ctx["user_id"])
        return CategoryOutput.model_validate(category)


@router.get("/api/categories/{category_id}", response_model=CategoryOutput)
def get_category(
    category_id: int,
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> CategoryOutput:
    return CategoryOutput.model_validate(QueryService(db).get_category(category_id, ctx["tenant_id"]))


@router.patch("/api/categories/{category_id}", response_model=CategoryOutput)
def update_category(
    category_id: int,
    body: CategoryUpdate,
    ledger: Ledger = Depends(get_ledger),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> CategoryOutput:
    with ledger.unit_of_work(ctx["tenant_id"]) as uow:
        category = CatalogService(uow).update_category(
            category_id, body, actor_user_id=ctx["user_id"]
        )
        return CategoryOutput.model_validate(category)


@router.delete("/api/categories/{category_id}", response_model=CategoryOutput)
def remove_category(
    category_id: int,
    ledger: Ledger = Depends(get_ledger),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> CategoryOutput:
    """Soft delete a category. 400 while active products use it."""
    with ledger.unit_of_work(ctx["tenant_id"]) as uow:
        category = CatalogService(uow).remove_category(category_id, actor_user_id=ctx["user_id"])
        return CategoryOutput.model_validate(category)
