from datetime import date, datetime

from pydantic import BaseModel

from app.schemas.customer import CustomerOut
from app.schemas.product import ProductOut
from app.schemas.sales_order import SalesOrderOut


class SalesStatsOut(BaseModel):
    total_orders: int
    total_sales: float


class ProductStatsOut(BaseModel):
    total_products: int
    active_products: int


class CustomerStatsOut(BaseModel):
    total_customers: int
    active_customers: int


class InventoryStatsOut(BaseModel):
    inventory_value: float
    low_stock_items: int


class MonthlySalesOut(BaseModel):
    month: str
    sales: float


class RecentActivityOut(BaseModel):
    type: str
    reference: str | None = None
    description: str
    amount: float
    created_at: datetime


class DashboardOut(BaseModel):
    sales: SalesStatsOut
    products: ProductStatsOut
    customers: CustomerStatsOut
    inventory: InventoryStatsOut
    monthly_sales: list[MonthlySalesOut]
    recent_activities: list[RecentActivityOut]


class SalesSummaryOut(BaseModel):
    total_orders: int
    total_subtotal: float
    total_discount: float
    total_tax: float
    total_amount: float


class SalesReportOut(BaseModel):
    start_date: date | None = None
    end_date: date | None = None
    orders: list[SalesOrderOut]
    summary: SalesSummaryOut


class InventorySummaryOut(BaseModel):
    total_products: int
    total_quantity: int
    total_value: float
    total_cost: float
    low_stock_count: int


class InventoryReportOut(BaseModel):
    products: list[ProductOut]
    summary: InventorySummaryOut


class CustomerSummaryOut(BaseModel):
    total_customers: int
    active_customers: int
    total_revenue: float
    average_spent: float


class CustomerReportOut(BaseModel):
    customers: list[CustomerOut]
    summary: CustomerSummaryOut
