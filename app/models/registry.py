# app/models/registry.py
"""
Import every model so Base.metadata is complete (Alembic, create_all in tests).
"""

from app.models.activity_log import ActivityLog
from app.models.booking import Booking
from app.models.inventory_stats import InventoryStats
from app.models.notification import Notification
from app.models.photography_job import PhotographyJob
from app.models.product import Product
from app.models.repair_ticket import RepairTicket
from app.models.room import Room
from app.models.transaction import Transaction

__all__ = [
    "ActivityLog",
    "Booking",
    "InventoryStats",
    "Notification",
    "PhotographyJob",
    "Product",
    "RepairTicket",
    "Room",
    "Transaction",
]
