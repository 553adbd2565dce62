from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base

MOVEMENT_TYPES = ("in", "out", "transfer", "adjustment")


class InventoryMovement(Base):
    """
    One row per stock change, never updated. ``in`` adds ``quantity``, ``out`` and
    ``transfer`` remove it, ``adjustment`` applies ``quantity`` as a signed delta.
    """
    __tablename__ = "inventory_movements"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    product_id: Mapped[str] = mapped_column(String(36), ForeignKey("products.id"), index=True)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)

    movement_type: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)  # e.g. sales order id
    notes: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_inventory_movements_product_created_at", "product_id", "created_at"),
        Index("ix_inventory_movements_type_created_at", "movement_type", "created_at"),
    )
