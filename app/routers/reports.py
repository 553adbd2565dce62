from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.api_docs import error_responses
from app.core.deps import get_db
from app.core.security_current import get_current_user
from app.models.user import User
from app.routers.customers import customer_out
from app.routers.products import product_out
from app.routers.sales_orders import sales_order_out
from app.schemas.common import ApiResponse
from app.schemas.report import (
    CustomerReportOut,
    CustomerSummaryOut,
    DashboardOut,
    InventoryReportOut,
    InventorySummaryOut,
    SalesReportOut,
    SalesSummaryOut,
)
from app.services.report_service import (
    get_customer_report,
    get_dashboard,
    get_inventory_report,
    get_sales_report,
)

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get(
    "/dashboard",
    response_model=ApiResponse[DashboardOut],
    summary="Dashboard statistics",
    description="Headline counts, six months of sales by month and the ten latest activities.",
    responses=error_responses(401, 500),
)
def dashboard(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return ApiResponse(data=DashboardOut(**get_dashboard(db)))


@router.get(
    "/sales",
    response_model=ApiResponse[SalesReportOut],
    summary="Sales report",
    responses=error_responses(400, 401, 500),
)
def sales_report(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    customer_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date cannot be after end_date")

    report = get_sales_report(db, start_date=start_date, end_date=end_date, customer_id=customer_id)
    return ApiResponse(
        data=SalesReportOut(
            start_date=report["start_date"],
            end_date=report["end_date"],
            orders=[sales_order_out(order) for order in report["orders"]],
            summary=SalesSummaryOut(**report["summary"]),
        )
    )


@router.get(
    "/inventory",
    response_model=ApiResponse[InventoryReportOut],
    summary="Inventory report",
    responses=error_responses(400, 401, 500),
)
def inventory_report(
    category: str | None = Query(default=None),
    low_stock_only: bool = Query(default=False),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    report = get_inventory_report(db, category=category, low_stock_only=low_stock_only)
    return ApiResponse(
        data=InventoryReportOut(
            products=[product_out(product) for product in report["products"]],
            summary=InventorySummaryOut(**report["summary"]),
        )
    )


@router.get(
    "/customers",
    response_model=ApiResponse[CustomerReportOut],
    summary="Customer report",
    responses=error_responses(400, 401, 500),
)
def customer_report(
    customer_type: str | None = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    report = get_customer_report(db, customer_type=customer_type)
    return ApiResponse(
        data=CustomerReportOut(
            customers=[customer_out(customer) for customer in report["customers"]],
            summary=CustomerSummaryOut(**report["summary"]),
        )
    )
