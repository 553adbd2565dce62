"""
Create the schema and seed the default admin account plus two sample products.

    python -m app.db.init_db [--reset]

Seeding is idempotent: existing rows are left alone. Production deployments
should run ``alembic upgrade head`` instead of ``create_all``.
"""
import argparse
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

import app.models  # noqa: F401
from app.core.config import settings
from app.core.observability import log_event, setup_observability
from app.core.permissions import ALL_PERMISSIONS
from app.core.security import hash_password
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.models.product import Product
from app.models.user import User
from app.services.inventory_service import record_movement

ADMIN_USER_ID = "admin-001"

SAMPLE_PRODUCTS = [
    {
        "id": "prod-001",
        "name": "قميص قطني رجالي",
        "category": "قمصان رجالية",
        "sku": "SH-001",
        "description": "قميص قطني عالي الجودة للرجال",
        "price": Decimal("120.00"),
        "cost": Decimal("80.00"),
        "stock": 156,
        "min_stock": 50,
        "max_stock": 200,
        "image": "https://images.pexels.com/photos/996329/pexels-photo-996329.jpeg?auto=compress&cs=tinysrgb&w=300",
    },
    {
        "id": "prod-002",
        "name": "فستان صيفي نسائي",
        "category": "فساتين نسائية",
        "sku": "DR-002",
        "description": "فستان صيفي أنيق ومريح",
        "price": Decimal("200.00"),
        "cost": Decimal("130.00"),
        "stock": 89,
        "min_stock": 30,
        "max_stock": 100,
        "image": "https://images.pexels.com/photos/1021693/pexels-photo-1021693.jpeg?auto=compress&cs=tinysrgb&w=300",
    },
]


def parse_args(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(description="Create tables and seed default data.")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop every table before creating the schema again.",
    )
    return parser.parse_args(argv)


def seed_admin(db: Session) -> bool:
    exists = db.execute(
        select(User.id).where(
            (User.id == ADMIN_USER_ID) | (User.email == settings.seed_admin_email.lower())
        )
    ).first()
    if exists:
        return False

    db.add(
        User(
            id=ADMIN_USER_ID,
            name=settings.admin_role,
            email=settings.seed_admin_email.lower(),
            hashed_password=hash_password(settings.seed_admin_password),
            role=settings.admin_role,
            department="تقنية المعلومات",
            phone="+966 50 123 4567",
            status="active",
            permissions=[ALL_PERMISSIONS],
        )
    )
    db.flush()
    return True


def seed_products(db: Session) -> int:
    created = 0
    for sample in SAMPLE_PRODUCTS:
        exists = db.execute(
            select(Product.id).where((Product.id == sample["id"]) | (Product.sku == sample["sku"]))
        ).first()
        if exists:
            continue

        opening_stock = sample["stock"]
        product = Product(
            **{key: value for key, value in sample.items() if key != "stock"},
            stock=0,
            unit=settings.default_product_unit,
            status="active",
        )
        db.add(product)
        db.flush()
        record_movement(
            db,
            product=product,
            movement_type="in",
            quantity=opening_stock,
            reference="INITIAL_STOCK",
            notes="Initial stock entry",
        )
        created += 1
    return created


def main(argv: list[str] | None = None) -> None:
    setup_observability()
    args = parse_args(argv)

    if args.reset:
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        admin_created = seed_admin(db)
        products_created = seed_products(db)
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    log_event(
        "seed.completed",
        admin_created=admin_created,
        products_created=products_created,
        reset=args.reset,
    )


if __name__ == "__main__":
    main()
