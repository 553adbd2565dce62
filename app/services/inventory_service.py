from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from app.core.id_utils import generate_uuid
from app.core.limits import MAX_QUANTITY
from app.core.observability import log_event
from app.models.inventory import InventoryMovement
from app.models.product import Product

INBOUND_TYPES = {"in"}
OUTBOUND_TYPES = {"out", "transfer"}


class InventoryError(ValueError):
    pass


class ProductNotFoundError(InventoryError):
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class InsufficientStockError(InventoryError):
    def __init__(self, product_name: str, *, available: int, requested: int):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(f"Insufficient stock for product: {product_name}")


def signed_quantity(movement_type: str, quantity: int) -> int:
    if movement_type in INBOUND_TYPES:
        return quantity
    if movement_type in OUTBOUND_TYPES:
        return -quantity
    # Adjustments carry their own sign.
    return quantity


def signed_quantity_expr():
    return case(
        (InventoryMovement.movement_type.in_(INBOUND_TYPES), InventoryMovement.quantity),
        (InventoryMovement.movement_type.in_(OUTBOUND_TYPES), -InventoryMovement.quantity),
        else_=InventoryMovement.quantity,
    )


def get_product_for_update(db: Session, product_id: str) -> Product:
    """
    Load a product and lock its row for the rest of the transaction.

    SQLite ignores FOR UPDATE; there the guarded UPDATE in ``apply_stock_delta``
    is what keeps concurrent writers from overselling.
    """
    product = db.execute(
        select(Product)
        .where(Product.id == product_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if not product:
        raise ProductNotFoundError(product_id)
    return product


def _current_stock(db: Session, product_id: str) -> int:
    stock = db.execute(select(Product.stock).where(Product.id == product_id)).scalar_one_or_none()
    return int(stock or 0)


def apply_stock_delta(db: Session, product: Product, delta: int) -> None:
    result = db.execute(
        update(Product)
        .where(Product.id == product.id, Product.stock + delta >= 0)
        .values(stock=Product.stock + delta)
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount != 1:
        raise InsufficientStockError(
            product.name,
            available=_current_stock(db, product.id),
            requested=abs(delta),
        )


def record_movement(
    db: Session,
    *,
    product: Product,
    movement_type: str,
    quantity: int,
    reference: str | None = None,
    notes: str | None = None,
) -> InventoryMovement:
    """
    Apply one signed stock change and append its ledger row.

    Both writes join the caller's transaction; nothing is committed here.
    """
    delta = signed_quantity(movement_type, quantity)
    if delta < 0 and product.stock < -delta:
        raise InsufficientStockError(product.name, available=product.stock, requested=-delta)
    if delta > 0 and product.stock + delta > MAX_QUANTITY:
        raise InventoryError(f"Stock for product {product.name} cannot exceed {MAX_QUANTITY}")
    if delta:
        apply_stock_delta(db, product, delta)

    movement = InventoryMovement(
        id=generate_uuid(),
        product_id=product.id,
        product_name=product.name,
        movement_type=movement_type,
        quantity=quantity,
        reference=reference,
        notes=notes,
    )
    db.add(movement)
    log_event(
        "inventory.movement",
        product_id=product.id,
        movement_type=movement_type,
        quantity=quantity,
        reference=reference,
    )
    return movement


def get_ledger_stock(db: Session, product_id: str) -> int:
    q = select(func.coalesce(func.sum(signed_quantity_expr()), 0)).where(
        InventoryMovement.product_id == product_id,
    )
    return int(db.execute(q).scalar_one())


def reconcile_stock(db: Session) -> list[dict]:
    ledger_rows = db.execute(
        select(
            InventoryMovement.product_id,
            func.coalesce(func.sum(signed_quantity_expr()), 0),
        ).group_by(InventoryMovement.product_id)
    ).all()
    ledger_by_product = {product_id: int(total) for product_id, total in ledger_rows}

    products = db.execute(select(Product).order_by(Product.name.asc())).scalars().all()
    rows: list[dict] = []
    for product in products:
        ledger_stock = ledger_by_product.get(product.id, 0)
        rows.append(
            {
                "product_id": product.id,
                "product_name": product.name,
                "sku": product.sku,
                "stock": int(product.stock),
                "ledger_stock": ledger_stock,
                "drift": int(product.stock) - ledger_stock,
            }
        )
    return rows
