"""
Seed data for development.
Creates a demo restaurant: one tenant, its staff user, a small menu and
the floor layout.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from rest_api.models import AuditLog, Category, Product, Table, Tenant, User
from shared.config.constants import AuditAction, PlanTier, StockReason
from shared.config.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# Demo data
# =============================================================================

DEMO_CATEGORIES = ["Entradas", "Principales", "Postres", "Bebidas"]

# (category, name, price_cents, stock_enabled, stock_quantity)
DEMO_PRODUCTS = [
    ("Entradas", "Empanada de carne", 1800, True, 40),
    ("Entradas", "Provoleta", 4500, False, 0),
    ("Principales", "Bife de chorizo", 12500, True, 12),
    ("Principales", "Milanesa napolitana", 9800, True, 15),
    ("Principales", "Ravioles de ricota", 8200, False, 0),
    ("Postres", "Flan con dulce de leche", 3500, True, 8),
    ("Postres", "Helado", 3000, False, 0),
    ("Bebidas", "Agua sin gas", 1500, True, 48),
    ("Bebidas", "Gaseosa", 2000, True, 36),
    ("Bebidas", "Copa de Malbec", 3800, True, 3),
]

# (number, capacity, zone)
DEMO_TABLES = [
    ("1", 2, "Salón"),
    ("2", 4, "Salón"),
    ("3", 4, "Salón"),
    ("4", 6, "Salón"),
    ("T-1", 4, "Terraza"),
    ("T-2", 4, "Terraza"),
]


def seed(db: Session) -> None:
    """
    Seed the database with demo data.
    Idempotent: does nothing once any tenant exists.
    """
    if db.scalar(select(Tenant.id).limit(1)):
        logger.info("Database already seeded, skipping")
        return

    logger.info("Seeding database")

    tenant = Tenant(name="Demo Restaurant", slug="demo", plan=PlanTier.PRO.value)
    db.add(tenant)
    db.flush()

    owner = User(tenant_id=tenant.id, email="owner@demo.com", name="Demo Owner", role="OWNER")
    db.add(owner)
    db.flush()

    categories: dict[str, Category] = {}
    for order, name in enumerate(DEMO_CATEGORIES, start=1):
        category = Category(tenant_id=tenant.id, name=name, order=order)
        category.set_created_by(owner.id)
        db.add(category)
        categories[name] = category
    db.flush()

    for category_name, name, price_cents, stock_enabled, quantity in DEMO_PRODUCTS:
        product = Product(
            tenant_id=tenant.id,
            category_id=categories[category_name].id,
            name=name,
            price_cents=price_cents,
            stock_enabled=stock_enabled,
            stock_quantity=quantity,
        )
        product.set_created_by(owner.id)
        db.add(product)
        db.flush()

        # Seeded stock goes through the audit trail like any other movement
        if stock_enabled and quantity > 0:
            db.add(
                AuditLog(
                    tenant_id=tenant.id,
                    actor_user_id=owner.id,
                    action=AuditAction.STOCK_ADJUST,
                    entity_type="product",
                    entity_id=product.id,
                    before={"stock": 0},
                    after={"stock": quantity},
                    reason=StockReason.INITIAL,
                )
            )

    for number, capacity, zone in DEMO_TABLES:
        table = Table(tenant_id=tenant.id, number=number, capacity=capacity, zone=zone)
        table.set_created_by(owner.id)
        db.add(table)

    db.commit()
    logger.info(
        "Database seeded",
        tenant_id=tenant.id,
        products=len(DEMO_PRODUCTS),
        tables=len(DEMO_TABLES),
    )
