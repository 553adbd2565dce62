from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from app.core.api_docs import error_responses
from app.core.deps import get_db
from app.core.money import money_out
from app.core.security_current import get_current_user
from app.models.sales_order import SalesOrder, SalesOrderItem
from app.models.user import User
from app.schemas.common import ApiResponse, MessageOut
from app.schemas.sales_order import (
    SalesOrderCreateIn,
    SalesOrderItemOut,
    SalesOrderOut,
    SalesOrderStatusIn,
)
from app.services.inventory_service import InventoryError
from app.services.sales_order_service import (
    OrderLine,
    OrderNotFoundError,
    SalesOrderError,
    cancel_order,
    place_order,
)

router = APIRouter(prefix="/sales-orders", tags=["sales-orders"])


def _item_out(item: SalesOrderItem) -> SalesOrderItemOut:
    return SalesOrderItemOut(
        id=item.id,
        order_id=item.order_id,
        product_id=item.product_id,
        product_name=item.product_name,
        quantity=item.quantity,
        price=money_out(item.price),
        total=money_out(item.total),
        created_at=item.created_at,
    )


def sales_order_out(order: SalesOrder) -> SalesOrderOut:
    return SalesOrderOut(
        id=order.id,
        customer_id=order.customer_id,
        customer_name=order.customer_name,
        order_date=order.order_date,
        delivery_date=order.delivery_date,
        subtotal=money_out(order.subtotal),
        discount=money_out(order.discount),
        tax=money_out(order.tax),
        total=money_out(order.total),
        status=order.status,
        notes=order.notes,
        created_at=order.created_at,
        updated_at=order.updated_at,
        items=[_item_out(item) for item in order.items],
    )


def _order_or_404(db: Session, order_id: str) -> SalesOrder:
    order = db.execute(
        select(SalesOrder).where(SalesOrder.id == order_id).options(selectinload(SalesOrder.items))
    ).scalar_one_or_none()
    if not order:
        raise HTTPException(status_code=404, detail="Sales order not found")
    return order


@router.get(
    "",
    response_model=ApiResponse[list[SalesOrderOut]],
    summary="List sales orders",
    responses=error_responses(400, 401, 500),
)
def list_sales_orders(
    customer_id: str | None = Query(default=None),
    status: str | None = Query(default=None),
    search: str | None = Query(default=None, max_length=120),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    stmt = select(SalesOrder).options(selectinload(SalesOrder.items))
    if customer_id:
        stmt = stmt.where(SalesOrder.customer_id == customer_id)
    if status:
        stmt = stmt.where(SalesOrder.status == status.strip().lower())
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(SalesOrder.id).like(pattern),
                func.lower(SalesOrder.customer_name).like(pattern),
            )
        )

    orders = db.execute(
        stmt.order_by(SalesOrder.created_at.desc(), SalesOrder.id.desc())
    ).scalars().all()
    return ApiResponse(data=[sales_order_out(order) for order in orders])


@router.get(
    "/{order_id}",
    response_model=ApiResponse[SalesOrderOut],
    summary="Get sales order with items",
    responses=error_responses(401, 404, 500),
)
def get_sales_order(
    order_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return ApiResponse(data=sales_order_out(_order_or_404(db, order_id)))


@router.post(
    "",
    response_model=ApiResponse[SalesOrderOut],
    status_code=201,
    summary="Place sales order",
    description=(
        "Checks stock for every line, records the items, takes stock out through "
        "`out` movements and updates the customer's running totals. All or nothing."
    ),
    responses=error_responses(400, 401, 500),
)
def create_sales_order(
    payload: SalesOrderCreateIn,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    try:
        order = place_order(
            db,
            customer_id=payload.customer_id,
            order_date=payload.order_date,
            delivery_date=payload.delivery_date,
            lines=[
                OrderLine(product_id=item.product_id, quantity=item.quantity, price=item.price)
                for item in payload.items
            ],
            discount=payload.discount,
            tax=payload.tax,
            status=payload.status,
            notes=payload.notes,
        )
    except (SalesOrderError, InventoryError) as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    order_id = order.id
    db.commit()
    db.expire_all()
    return ApiResponse(
        message="Sales order created successfully",
        data=sales_order_out(_order_or_404(db, order_id)),
    )


@router.put(
    "/{order_id}/status",
    response_model=ApiResponse[SalesOrderOut],
    summary="Update sales order status",
    description="Status is a label only; it never changes stock.",
    responses=error_responses(400, 401, 404, 500),
)
def update_sales_order_status(
    order_id: str,
    payload: SalesOrderStatusIn,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    order = _order_or_404(db, order_id)
    order.status = payload.status
    db.commit()
    db.refresh(order)
    return ApiResponse(message="Sales order status updated successfully", data=sales_order_out(order))


@router.delete(
    "/{order_id}",
    response_model=MessageOut,
    summary="Cancel and delete sales order",
    description="Returns every item to stock through `in` movements and reverses the customer's totals.",
    responses=error_responses(400, 401, 404, 500),
)
def delete_sales_order(
    order_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    try:
        cancel_order(db, order_id)
    except OrderNotFoundError as exc:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except (SalesOrderError, InventoryError) as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    db.commit()
    return MessageOut(message="Sales order deleted successfully")
