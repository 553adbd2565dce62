from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import case, func, literal, select
from sqlalchemy.orm import Session, selectinload

from app.core.money import ZERO_MONEY, to_money
from app.models.customer import Customer
from app.models.inventory import InventoryMovement
from app.models.product import Product
from app.models.sales_order import SalesOrder

MONTHLY_SALES_MONTHS = 6
RECENT_ACTIVITY_LIMIT = 10


def _months_back(today: date, months: int) -> date:
    month_index = today.year * 12 + (today.month - 1) - (months - 1)
    return date(month_index // 12, month_index % 12 + 1, 1)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _low_stock_condition():
    return Product.stock <= Product.min_stock


def get_monthly_sales(db: Session, *, today: date | None = None) -> list[dict]:
    """
    Order totals per ``YYYY-MM`` of ``order_date`` for the current month and the
    five before it, newest first. Months without orders are omitted.
    """
    today = today or datetime.now(timezone.utc).date()
    since = _months_back(today, MONTHLY_SALES_MONTHS)
    rows = db.execute(
        select(SalesOrder.order_date, SalesOrder.total).where(SalesOrder.order_date >= since)
    ).all()

    totals: dict[str, Decimal] = {}
    for order_date, total in rows:
        month = order_date.strftime("%Y-%m")
        totals[month] = totals.get(month, ZERO_MONEY) + to_money(total)

    return [
        {"month": month, "sales": float(to_money(totals[month]))}
        for month in sorted(totals, reverse=True)
    ]


def get_recent_activities(db: Session, *, limit: int = RECENT_ACTIVITY_LIMIT) -> list[dict]:
    orders = db.execute(
        select(
            literal("sales_order").label("type"),
            SalesOrder.id,
            SalesOrder.customer_name,
            SalesOrder.total,
            SalesOrder.created_at,
        )
        .order_by(SalesOrder.created_at.desc())
        .limit(limit)
    ).all()
    movements = db.execute(
        select(
            literal("inventory_movement").label("type"),
            InventoryMovement.reference,
            InventoryMovement.product_name,
            InventoryMovement.movement_type,
            InventoryMovement.quantity,
            InventoryMovement.created_at,
        )
        .order_by(InventoryMovement.created_at.desc())
        .limit(limit)
    ).all()

    activities: list[dict] = []
    for activity_type, reference, customer_name, total, created_at in orders:
        activities.append(
            {
                "type": activity_type,
                "reference": reference,
                "description": customer_name,
                "amount": float(to_money(total)),
                "created_at": created_at,
            }
        )
    for activity_type, reference, product_name, movement_type, quantity, created_at in movements:
        activities.append(
            {
                "type": activity_type,
                "reference": reference,
                "description": f"{product_name} - {movement_type}",
                "amount": float(quantity),
                "created_at": created_at,
            }
        )

    activities.sort(key=lambda item: _as_utc(item["created_at"]), reverse=True)
    return activities[:limit]


def get_dashboard(db: Session) -> dict:
    total_orders, total_sales = db.execute(
        select(func.count(SalesOrder.id), func.coalesce(func.sum(SalesOrder.total), 0))
    ).one()

    total_products, active_products = db.execute(
        select(
            func.count(Product.id),
            func.count(case((Product.status == "active", 1))),
        )
    ).one()

    total_customers, active_customers = db.execute(
        select(
            func.count(Customer.id),
            func.count(case((Customer.status == "active", 1))),
        )
    ).one()

    inventory_value, low_stock_items = db.execute(
        select(
            func.coalesce(func.sum(Product.stock * Product.price), 0),
            func.count(case((_low_stock_condition(), 1))),
        ).where(Product.status == "active")
    ).one()

    return {
        "sales": {
            "total_orders": int(total_orders),
            "total_sales": float(to_money(total_sales)),
        },
        "products": {
            "total_products": int(total_products),
            "active_products": int(active_products),
        },
        "customers": {
            "total_customers": int(total_customers),
            "active_customers": int(active_customers),
        },
        "inventory": {
            "inventory_value": float(to_money(inventory_value)),
            "low_stock_items": int(low_stock_items),
        },
        "monthly_sales": get_monthly_sales(db),
        "recent_activities": get_recent_activities(db),
    }


def get_sales_report(
    db: Session,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
    customer_id: str | None = None,
) -> dict:
    filters = []
    if start_date:
        filters.append(SalesOrder.order_date >= start_date)
    if end_date:
        filters.append(SalesOrder.order_date <= end_date)
    if customer_id:
        filters.append(SalesOrder.customer_id == customer_id)

    orders = db.execute(
        select(SalesOrder)
        .where(*filters)
        .options(selectinload(SalesOrder.items))
        .order_by(SalesOrder.order_date.desc(), SalesOrder.created_at.desc())
    ).scalars().all()

    count, subtotal, discount, tax, total = db.execute(
        select(
            func.count(SalesOrder.id),
            func.coalesce(func.sum(SalesOrder.subtotal), 0),
            func.coalesce(func.sum(SalesOrder.discount), 0),
            func.coalesce(func.sum(SalesOrder.tax), 0),
            func.coalesce(func.sum(SalesOrder.total), 0),
        ).where(*filters)
    ).one()

    return {
        "start_date": start_date,
        "end_date": end_date,
        "orders": orders,
        "summary": {
            "total_orders": int(count),
            "total_subtotal": float(to_money(subtotal)),
            "total_discount": float(to_money(discount)),
            "total_tax": float(to_money(tax)),
            "total_amount": float(to_money(total)),
        },
    }


def get_inventory_report(
    db: Session,
    *,
    category: str | None = None,
    low_stock_only: bool = False,
) -> dict:
    filters = [Product.status == "active"]
    if category:
        filters.append(Product.category == category)

    product_stmt = select(Product).where(*filters)
    if low_stock_only:
        product_stmt = product_stmt.where(_low_stock_condition())
    products = db.execute(
        product_stmt.order_by(Product.category.asc(), Product.name.asc())
    ).scalars().all()

    # Summary covers the whole active category, not just the low-stock subset.
    count, quantity, value, cost, low_stock_count = db.execute(
        select(
            func.count(Product.id),
            func.coalesce(func.sum(Product.stock), 0),
            func.coalesce(func.sum(Product.stock * Product.price), 0),
            func.coalesce(func.sum(Product.stock * Product.cost), 0),
            func.count(case((_low_stock_condition(), 1))),
        ).where(*filters)
    ).one()

    return {
        "products": products,
        "summary": {
            "total_products": int(count),
            "total_quantity": int(quantity),
            "total_value": float(to_money(value)),
            "total_cost": float(to_money(cost)),
            "low_stock_count": int(low_stock_count),
        },
    }


def get_customer_report(db: Session, *, customer_type: str | None = None) -> dict:
    filters = []
    if customer_type:
        filters.append(Customer.customer_type == customer_type)

    customers = db.execute(
        select(Customer).where(*filters).order_by(Customer.total_spent.desc(), Customer.name.asc())
    ).scalars().all()

    count, active, revenue = db.execute(
        select(
            func.count(Customer.id),
            func.count(case((Customer.status == "active", 1))),
            func.coalesce(func.sum(Customer.total_spent), 0),
        ).where(*filters)
    ).one()
    count = int(count)
    revenue_money = to_money(revenue)
    average_spent = to_money(revenue_money / count) if count else ZERO_MONEY

    return {
        "customers": customers,
        "summary": {
            "total_customers": count,
            "active_customers": int(active),
            "total_revenue": float(revenue_money),
            "average_spent": float(average_spent),
        },
    }
