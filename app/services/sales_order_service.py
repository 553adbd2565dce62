from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.core.id_utils import generate_order_id, generate_uuid
from app.core.limits import MAX_MONEY
from app.core.money import ZERO_MONEY, to_money
from app.core.observability import log_event
from app.models.customer import Customer
from app.models.sales_order import SalesOrder, SalesOrderItem
from app.services.inventory_service import (
    InsufficientStockError,
    ProductNotFoundError,
    get_product_for_update,
    record_movement,
)

CANCEL_REFERENCE_PREFIX = "CANCEL-"
_ORDER_ID_ATTEMPTS = 5


class SalesOrderError(ValueError):
    pass


class CustomerNotFoundError(SalesOrderError):
    def __init__(self, customer_id: str):
        self.customer_id = customer_id
        super().__init__("Customer not found")


class OrderNotFoundError(SalesOrderError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__("Sales order not found")


class InvalidOrderError(SalesOrderError):
    pass


@dataclass(frozen=True)
class OrderLine:
    product_id: str
    quantity: int
    price: Decimal | None = None


def _new_order_id(db: Session) -> str:
    for _ in range(_ORDER_ID_ATTEMPTS):
        candidate = generate_order_id()
        exists = db.execute(select(SalesOrder.id).where(SalesOrder.id == candidate)).scalar_one_or_none()
        if exists is None:
            return candidate
    raise InvalidOrderError("Could not allocate a sales order id")


def _shift_customer_totals(db: Session, customer_id: str, *, orders: int, spent: Decimal) -> None:
    db.execute(
        update(Customer)
        .where(Customer.id == customer_id)
        .values(
            total_orders=Customer.total_orders + orders,
            total_spent=Customer.total_spent + spent,
        )
        .execution_options(synchronize_session="fetch")
    )


def place_order(
    db: Session,
    *,
    customer_id: str,
    order_date: date,
    delivery_date: date,
    lines: list[OrderLine],
    discount: Decimal | None = None,
    tax: Decimal | None = None,
    status: str = "pending",
    notes: str | None = None,
) -> SalesOrder:
    """
    Create a sales order, take its lines out of stock and charge the customer.

    Everything happens in the caller's transaction and is flushed but not
    committed. On any raised error the caller must roll back; none of the
    stock, ledger, order or customer writes made so far may survive.
    """
    if not lines:
        raise InvalidOrderError("Sales order must contain at least one item")

    customer = db.execute(
        select(Customer).where(Customer.id == customer_id).with_for_update()
    ).scalar_one_or_none()
    if not customer:
        raise CustomerNotFoundError(customer_id)

    order_id = _new_order_id(db)
    order = SalesOrder(
        id=order_id,
        customer_id=customer.id,
        customer_name=customer.name,
        order_date=order_date,
        delivery_date=delivery_date,
        subtotal=ZERO_MONEY,
        discount=to_money(discount),
        tax=to_money(tax),
        total=ZERO_MONEY,
        status=status,
        notes=notes,
    )
    db.add(order)

    subtotal = ZERO_MONEY
    for line in lines:
        product = get_product_for_update(db, line.product_id)
        # Earlier lines for the same product have already reduced product.stock.
        if product.stock < line.quantity:
            raise InsufficientStockError(product.name, available=product.stock, requested=line.quantity)

        unit_price = to_money(line.price if line.price is not None else product.price)
        line_total = to_money(unit_price * line.quantity)
        if line_total > MAX_MONEY:
            raise InvalidOrderError(f"Line total for product {product.name} exceeds the allowed amount")
        order.items.append(
            SalesOrderItem(
                id=generate_uuid(),
                product_id=product.id,
                product_name=product.name,
                quantity=line.quantity,
                price=unit_price,
                total=line_total,
            )
        )
        record_movement(
            db,
            product=product,
            movement_type="out",
            quantity=line.quantity,
            reference=order_id,
            notes=f"Sales order: {order_id}",
        )
        subtotal += line_total

    total = to_money(subtotal - order.discount + order.tax)
    if subtotal > MAX_MONEY or total > MAX_MONEY:
        raise InvalidOrderError("Order total exceeds the allowed amount")
    if customer.total_spent + total > MAX_MONEY:
        raise InvalidOrderError("Customer total spent would exceed the allowed amount")
    if total < ZERO_MONEY:
        raise InvalidOrderError("Discount cannot exceed subtotal plus tax")
    order.subtotal = to_money(subtotal)
    order.total = total

    _shift_customer_totals(db, customer.id, orders=1, spent=total)
    db.flush()

    log_event(
        "sales_order.placed",
        order_id=order_id,
        customer_id=customer.id,
        items=len(lines),
        total=str(total),
    )
    return order


def cancel_order(db: Session, order_id: str) -> SalesOrder:
    """Reverse a placed order's stock and customer effects, then delete it."""
    order = db.execute(
        select(SalesOrder).where(SalesOrder.id == order_id).with_for_update()
    ).scalar_one_or_none()
    if not order:
        raise OrderNotFoundError(order_id)

    reference = f"{CANCEL_REFERENCE_PREFIX}{order.id}"
    for item in order.items:
        try:
            product = get_product_for_update(db, item.product_id)
        except ProductNotFoundError as exc:
            raise InvalidOrderError(str(exc)) from exc
        record_movement(
            db,
            product=product,
            movement_type="in",
            quantity=item.quantity,
            reference=reference,
            notes=f"Cancelled sales order: {order.id}",
        )

    _shift_customer_totals(db, order.customer_id, orders=-1, spent=-to_money(order.total))
    db.delete(order)
    db.flush()

    log_event(
        "sales_order.cancelled",
        order_id=order.id,
        customer_id=order.customer_id,
        items=len(order.items),
        total=str(to_money(order.total)),
    )
    return order


def customer_aggregate_drift(db: Session) -> list[dict]:
    """Customers whose stored totals disagree with the orders that exist for them."""
    order_stats = (
        select(
            SalesOrder.customer_id.label("customer_id"),
            func.count(SalesOrder.id).label("order_count"),
            func.coalesce(func.sum(SalesOrder.total), 0).label("order_total"),
        )
        .group_by(SalesOrder.customer_id)
        .subquery()
    )
    rows = db.execute(
        select(
            Customer.id,
            Customer.total_orders,
            Customer.total_spent,
            func.coalesce(order_stats.c.order_count, 0),
            func.coalesce(order_stats.c.order_total, 0),
        ).outerjoin(order_stats, order_stats.c.customer_id == Customer.id)
    ).all()

    drifted: list[dict] = []
    for customer_id, total_orders, total_spent, order_count, order_total in rows:
        if int(total_orders) != int(order_count) or to_money(total_spent) != to_money(order_total):
            drifted.append(
                {
                    "customer_id": customer_id,
                    "total_orders": int(total_orders),
                    "order_count": int(order_count),
                    "total_spent": to_money(total_spent),
                    "order_total": to_money(order_total),
                }
            )
    return drifted

