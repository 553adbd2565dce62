from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from app.core.api_docs import error_responses
from app.core.config import settings
from app.core.deps import get_db
from app.core.id_utils import generate_uuid
from app.core.money import money_out, to_money
from app.core.security_current import get_current_user
from app.models.inventory import InventoryMovement
from app.models.product import Product
from app.models.sales_order import SalesOrderItem
from app.models.user import User
from app.schemas.common import ApiResponse, MessageOut
from app.schemas.product import ProductCreateIn, ProductOut, ProductUpdateIn
from app.services.inventory_service import InventoryError, record_movement

router = APIRouter(prefix="/products", tags=["products"])

INITIAL_STOCK_REFERENCE = "INITIAL_STOCK"
STOCK_ADJUSTMENT_REFERENCE = "STOCK_ADJUSTMENT"


def product_out(product: Product) -> ProductOut:
    return ProductOut(
        id=product.id,
        name=product.name,
        category=product.category,
        sku=product.sku,
        description=product.description,
        price=money_out(product.price),
        cost=money_out(product.cost),
        stock=product.stock,
        min_stock=product.min_stock,
        max_stock=product.max_stock,
        unit=product.unit,
        status=product.status,
        image=product.image,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def _product_or_404(db: Session, product_id: str) -> Product:
    product = db.execute(select(Product).where(Product.id == product_id)).scalar_one_or_none()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def _sku_taken(db: Session, sku: str, *, exclude_product_id: str | None = None) -> bool:
    stmt = select(Product.id).where(Product.sku == sku)
    if exclude_product_id:
        stmt = stmt.where(Product.id != exclude_product_id)
    return db.execute(stmt).scalar_one_or_none() is not None


@router.get(
    "",
    response_model=ApiResponse[list[ProductOut]],
    summary="List products",
    responses=error_responses(400, 401, 500),
)
def list_products(
    category: str | None = Query(default=None),
    status: str | None = Query(default=None),
    search: str | None = Query(default=None, max_length=120),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    stmt = select(Product)
    if category:
        stmt = stmt.where(Product.category == category)
    if status:
        stmt = stmt.where(Product.status == status.strip().lower())
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(Product.name).like(pattern),
                func.lower(Product.sku).like(pattern),
                func.lower(Product.description).like(pattern),
            )
        )

    products = db.execute(stmt.order_by(Product.created_at.desc(), Product.id.asc())).scalars().all()
    return ApiResponse(data=[product_out(product) for product in products])


@router.get(
    "/categories/list",
    response_model=ApiResponse[list[str]],
    summary="List product categories",
    responses=error_responses(401, 500),
)
def list_categories(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    categories = db.execute(
        select(Product.category).distinct().order_by(Product.category.asc())
    ).scalars().all()
    return ApiResponse(data=list(categories))


@router.get(
    "/{product_id}",
    response_model=ApiResponse[ProductOut],
    summary="Get product",
    responses=error_responses(401, 404, 500),
)
def get_product(
    product_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return ApiResponse(data=product_out(_product_or_404(db, product_id)))


@router.post(
    "",
    response_model=ApiResponse[ProductOut],
    status_code=201,
    summary="Create product",
    description="A non-zero opening stock is recorded as an `in` movement referenced `INITIAL_STOCK`.",
    responses=error_responses(400, 401, 500),
)
def create_product(
    payload: ProductCreateIn,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    if _sku_taken(db, payload.sku):
        raise HTTPException(status_code=400, detail="SKU already exists")

    product = Product(
        id=generate_uuid(),
        name=payload.name,
        category=payload.category,
        sku=payload.sku,
        description=payload.description,
        price=to_money(payload.price),
        cost=to_money(payload.cost),
        stock=0,
        min_stock=payload.min_stock,
        max_stock=payload.max_stock,
        unit=payload.unit or settings.default_product_unit,
        status=payload.status,
        image=payload.image,
    )
    db.add(product)
    db.flush()

    if payload.stock > 0:
        record_movement(
            db,
            product=product,
            movement_type="in",
            quantity=payload.stock,
            reference=INITIAL_STOCK_REFERENCE,
            notes="Initial stock entry",
        )

    db.commit()
    db.refresh(product)
    return ApiResponse(message="Product created successfully", data=product_out(product))


@router.put(
    "/{product_id}",
    response_model=ApiResponse[ProductOut],
    summary="Update product",
    description="Changing `stock` records an `in` or `out` movement for the difference.",
    responses=error_responses(400, 401, 404, 500),
)
def update_product(
    product_id: str,
    payload: ProductUpdateIn,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    product = _product_or_404(db, product_id)
    changes = payload.model_dump(exclude_unset=True)
    new_stock = changes.pop("stock", None)

    if changes.get("sku") and _sku_taken(db, changes["sku"], exclude_product_id=product.id):
        raise HTTPException(status_code=400, detail="SKU already exists")

    for field, value in changes.items():
        if value is None and field not in {"description", "image"}:
            continue
        if field in {"price", "cost"}:
            value = to_money(value)
        setattr(product, field, value)

    min_stock = product.min_stock
    max_stock = product.max_stock
    if max_stock and max_stock < min_stock:
        db.rollback()
        raise HTTPException(status_code=400, detail="max_stock cannot be lower than min_stock")

    if new_stock is not None and new_stock != product.stock:
        difference = new_stock - product.stock
        try:
            record_movement(
                db,
                product=product,
                movement_type="in" if difference > 0 else "out",
                quantity=abs(difference),
                reference=STOCK_ADJUSTMENT_REFERENCE,
                notes="Stock adjustment via product update",
            )
        except InventoryError as exc:
            db.rollback()
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    db.commit()
    db.refresh(product)
    return ApiResponse(message="Product updated successfully", data=product_out(product))


@router.delete(
    "/{product_id}",
    response_model=MessageOut,
    summary="Delete product",
    description="Products that appear on any sales order cannot be deleted.",
    responses=error_responses(400, 401, 404, 500),
)
def delete_product(
    product_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    product = _product_or_404(db, product_id)

    in_orders = db.execute(
        select(SalesOrderItem.id).where(SalesOrderItem.product_id == product.id).limit(1)
    ).scalar_one_or_none()
    if in_orders:
        raise HTTPException(status_code=400, detail="Cannot delete product with existing sales orders")

    db.execute(delete(InventoryMovement).where(InventoryMovement.product_id == product.id))
    db.delete(product)
    db.commit()
    return MessageOut(message="Product deleted successfully")
