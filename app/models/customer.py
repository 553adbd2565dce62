from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    contact: Mapped[str] = mapped_column(String(120), nullable=False)
    phone: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    tax_number: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    credit_limit: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0, server_default="0")
    payment_terms: Mapped[int] = mapped_column(Integer, nullable=False, default=30, server_default="30")
    customer_type: Mapped[str] = mapped_column(String(30), nullable=False, default="retail", server_default="retail")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active", server_default="active")

    # Running aggregates over existing sales orders; mutated only by order placement/cancellation.
    total_orders: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_spent: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        Index("ix_customers_name_created_at", "name", "created_at"),
        Index("ix_customers_type_status", "customer_type", "status"),
    )
