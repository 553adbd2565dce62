from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.core.api_docs import error_responses
from app.core.deps import get_db
from app.core.id_utils import generate_uuid
from app.core.money import money_out, to_money
from app.core.security_current import get_current_user
from app.models.customer import Customer
from app.models.sales_order import SalesOrder
from app.models.user import User
from app.schemas.common import ApiResponse, MessageOut
from app.schemas.customer import CustomerCreateIn, CustomerOut, CustomerUpdateIn

router = APIRouter(prefix="/customers", tags=["customers"])


def customer_out(customer: Customer) -> CustomerOut:
    return CustomerOut(
        id=customer.id,
        name=customer.name,
        contact=customer.contact,
        phone=customer.phone,
        email=customer.email,
        address=customer.address,
        tax_number=customer.tax_number,
        credit_limit=money_out(customer.credit_limit),
        payment_terms=customer.payment_terms,
        customer_type=customer.customer_type,
        status=customer.status,
        total_orders=customer.total_orders,
        total_spent=money_out(customer.total_spent),
        created_at=customer.created_at,
        updated_at=customer.updated_at,
    )


def _customer_or_404(db: Session, customer_id: str) -> Customer:
    customer = db.execute(select(Customer).where(Customer.id == customer_id)).scalar_one_or_none()
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.get(
    "",
    response_model=ApiResponse[list[CustomerOut]],
    summary="List customers",
    responses=error_responses(400, 401, 500),
)
def list_customers(
    search: str | None = Query(default=None, max_length=120),
    customer_type: str | None = Query(default=None),
    status: str | None = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    stmt = select(Customer)
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(Customer.name).like(pattern),
                func.lower(Customer.contact).like(pattern),
                func.lower(Customer.phone).like(pattern),
                func.lower(Customer.email).like(pattern),
            )
        )
    if customer_type:
        stmt = stmt.where(Customer.customer_type == customer_type.strip().lower())
    if status:
        stmt = stmt.where(Customer.status == status.strip().lower())

    customers = db.execute(stmt.order_by(Customer.created_at.desc(), Customer.id.asc())).scalars().all()
    return ApiResponse(data=[customer_out(customer) for customer in customers])


@router.get(
    "/{customer_id}",
    response_model=ApiResponse[CustomerOut],
    summary="Get customer",
    responses=error_responses(401, 404, 500),
)
def get_customer(
    customer_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return ApiResponse(data=customer_out(_customer_or_404(db, customer_id)))


@router.post(
    "",
    response_model=ApiResponse[CustomerOut],
    status_code=201,
    summary="Create customer",
    responses=error_responses(400, 401, 500),
)
def create_customer(
    payload: CustomerCreateIn,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    customer = Customer(
        id=generate_uuid(),
        name=payload.name,
        contact=payload.contact,
        phone=payload.phone,
        email=payload.email,
        address=payload.address,
        tax_number=payload.tax_number,
        credit_limit=to_money(payload.credit_limit),
        payment_terms=payload.payment_terms,
        customer_type=payload.customer_type,
        status=payload.status,
        total_orders=0,
        total_spent=to_money(0),
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return ApiResponse(message="Customer created successfully", data=customer_out(customer))


@router.put(
    "/{customer_id}",
    response_model=ApiResponse[CustomerOut],
    summary="Update customer",
    description="Running totals are maintained by sales orders and cannot be edited here.",
    responses=error_responses(400, 401, 404, 500),
)
def update_customer(
    customer_id: str,
    payload: CustomerUpdateIn,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    customer = _customer_or_404(db, customer_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field not in {"email", "tax_number"}:
            continue
        if field == "credit_limit":
            value = to_money(value)
        setattr(customer, field, value)

    db.commit()
    db.refresh(customer)
    return ApiResponse(message="Customer updated successfully", data=customer_out(customer))


@router.delete(
    "/{customer_id}",
    response_model=MessageOut,
    summary="Delete customer",
    responses=error_responses(400, 401, 404, 500),
)
def delete_customer(
    customer_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    customer = _customer_or_404(db, customer_id)
    order_count = db.execute(
        select(func.count(SalesOrder.id)).where(SalesOrder.customer_id == customer.id)
    ).scalar_one()
    if order_count:
        raise HTTPException(status_code=400, detail="Cannot delete customer with existing orders")

    db.delete(customer)
    db.commit()
    return MessageOut(message="Customer deleted successfully")
