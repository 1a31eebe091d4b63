# app/models/inventory_stats.py
"""
Denormalized dashboard counters for the inventory.
A single row with a fixed id, maintained incrementally by the inventory services.
"""

import uuid

from sqlalchemy import Column, DateTime, Integer, Uuid, text

from app.models.base import Base

INVENTORY_STATS_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")

# Counter columns that callers may increment / decrement by name.
STAT_FIELDS = ("total", "available", "borrowed", "maintenance")


class InventoryStats(Base):
    __tablename__ = "inventory_stats"

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=lambda: INVENTORY_STATS_ID,
        nullable=False,
    )

    total = Column(Integer, nullable=False, default=0, server_default=text("0"))
    available = Column(Integer, nullable=False, default=0, server_default=text("0"))
    borrowed = Column(Integer, nullable=False, default=0, server_default=text("0"))
    maintenance = Column(Integer, nullable=False, default=0, server_default=text("0"))

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
    )
