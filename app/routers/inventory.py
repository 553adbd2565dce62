from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from app.core.api_docs import error_responses
from app.core.config import settings
from app.core.deps import get_db
from app.core.money import money_out
from app.core.security_current import get_current_user
from app.models.inventory import InventoryMovement
from app.models.product import Product
from app.models.user import User
from app.routers.products import product_out
from app.schemas.common import ApiResponse
from app.schemas.inventory import (
    CategoryInventoryOut,
    InventoryOverviewOut,
    MovementCreateIn,
    MovementOut,
    MovementType,
    ReconciliationOut,
    ReconciliationRowOut,
)
from app.schemas.product import ProductOut
from app.services.inventory_service import (
    InventoryError,
    ProductNotFoundError,
    get_product_for_update,
    reconcile_stock,
    record_movement,
)

router = APIRouter(prefix="/inventory", tags=["inventory"])


def _movement_out(movement: InventoryMovement) -> MovementOut:
    return MovementOut(
        id=movement.id,
        product_id=movement.product_id,
        product_name=movement.product_name,
        movement_type=movement.movement_type,
        quantity=movement.quantity,
        reference=movement.reference,
        notes=movement.notes,
        created_at=movement.created_at,
    )


@router.get(
    "/overview",
    response_model=ApiResponse[InventoryOverviewOut],
    summary="Inventory overview for active products",
    responses=error_responses(401, 500),
)
def inventory_overview(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    total_products, total_quantity, total_value, low_stock_items = db.execute(
        select(
            func.count(Product.id),
            func.coalesce(func.sum(Product.stock), 0),
            func.coalesce(func.sum(Product.stock * Product.price), 0),
            func.count(case((Product.stock <= Product.min_stock, 1))),
        ).where(Product.status == "active")
    ).one()

    return ApiResponse(
        data=InventoryOverviewOut(
            total_products=int(total_products),
            total_quantity=int(total_quantity),
            total_value=money_out(total_value),
            low_stock_items=int(low_stock_items),
        )
    )


@router.get(
    "/movements",
    response_model=ApiResponse[list[MovementOut]],
    summary="List inventory movements",
    responses=error_responses(400, 401, 500),
)
def list_movements(
    product_id: str | None = Query(default=None),
    movement_type: MovementType | None = Query(default=None),
    limit: int = Query(default=50, ge=1),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    stmt = select(InventoryMovement)
    if product_id:
        stmt = stmt.where(InventoryMovement.product_id == product_id)
    if movement_type:
        stmt = stmt.where(InventoryMovement.movement_type == movement_type)

    limit = min(limit, settings.movement_list_max_limit)
    movements = db.execute(
        stmt.order_by(InventoryMovement.created_at.desc(), InventoryMovement.id.desc()).limit(limit)
    ).scalars().all()
    return ApiResponse(data=[_movement_out(movement) for movement in movements])


@router.post(
    "/movements",
    response_model=ApiResponse[MovementOut],
    status_code=201,
    summary="Record inventory movement",
    description=(
        "Applies the movement's signed quantity to product stock and appends it to the ledger "
        "in one transaction. `in` adds, `out` and `transfer` remove, `adjustment` applies "
        "the given quantity as-is."
    ),
    responses=error_responses(400, 401, 404, 500),
)
def create_movement(
    payload: MovementCreateIn,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    try:
        product = get_product_for_update(db, payload.product_id)
        movement = record_movement(
            db,
            product=product,
            movement_type=payload.movement_type,
            quantity=payload.quantity,
            reference=payload.reference,
            notes=payload.notes,
        )
    except ProductNotFoundError as exc:
        db.rollback()
        raise HTTPException(status_code=404, detail="Product not found") from exc
    except InventoryError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    db.commit()
    db.refresh(movement)
    return ApiResponse(message="Inventory movement created successfully", data=_movement_out(movement))


@router.get(
    "/low-stock",
    response_model=ApiResponse[list[ProductOut]],
    summary="Active products at or below minimum stock",
    responses=error_responses(401, 500),
)
def low_stock_products(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    products = db.execute(
        select(Product)
        .where(Product.status == "active", Product.stock <= Product.min_stock)
        .order_by((Product.stock - Product.min_stock).asc(), Product.name.asc())
    ).scalars().all()
    return ApiResponse(data=[product_out(product) for product in products])


@router.get(
    "/by-category",
    response_model=ApiResponse[list[CategoryInventoryOut]],
    summary="Inventory totals per category",
    responses=error_responses(401, 500),
)
def inventory_by_category(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    total_value = func.coalesce(func.sum(Product.stock * Product.price), 0)
    rows = db.execute(
        select(
            Product.category,
            func.count(Product.id),
            func.coalesce(func.sum(Product.stock), 0),
            total_value,
        )
        .where(Product.status == "active")
        .group_by(Product.category)
        .order_by(total_value.desc(), Product.category.asc())
    ).all()

    return ApiResponse(
        data=[
            CategoryInventoryOut(
                category=category,
                product_count=int(count),
                total_quantity=int(quantity),
                total_value=money_out(value),
            )
            for category, count, quantity, value in rows
        ]
    )


@router.get(
    "/reconciliation",
    response_model=ApiResponse[ReconciliationOut],
    summary="Compare stored stock with the movement ledger",
    responses=error_responses(401, 500),
)
def stock_reconciliation(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    rows = [ReconciliationRowOut(**row) for row in reconcile_stock(db)]
    return ApiResponse(
        data=ReconciliationOut(
            checked=len(rows),
            drifted=sum(1 for row in rows if row.drift),
            items=rows,
        )
    )
