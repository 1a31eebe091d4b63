import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "x" * 48)
os.environ.setdefault("LINE_ENABLED", "false")

import unittest
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.v1.endpoints.auth import get_current_user
from app.core.database import get_db, get_session_factory
from app.main import app
from app.models import registry  # noqa: F401
from app.models.base import Base
from app.models.product import ProductKind
from app.schemas.auth import Actor, ActorRole
from app.schemas.product import ProductCreate
from app.schemas.transaction import BorrowRequest, ReturnRequest
from app.services import inventory_service
from app.services.booking_service import seed_rooms
from app.services.stats_service import get_stats

ADMIN = Actor(id="U-admin", name="Admin Somchai", role=ActorRole.ADMIN)
TEACHER = Actor(id="U-teacher-1", name="Kru Malee", role=ActorRole.USER)
OTHER_TEACHER = Actor(id="U-teacher-2", name="Kru Niran", role=ActorRole.USER)
TECHNICIAN = Actor(id="U-tech", name="Chang Dee", role=ActorRole.TECHNICIAN)
MODERATOR = Actor(id="U-mod", name="Kru Wipa", role=ActorRole.MODERATOR)

SIGNATURE = "https://files.example.test/signatures/sig.png"


def at(hour: int, minute: int = 0, day: int = 1) -> datetime:
    return datetime(2026, 9, day, hour, minute, tzinfo=timezone.utc)


def make_engine():
    return create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )


class DatabaseTestCase(unittest.TestCase):
    """Fresh in-memory schema per test."""

    def setUp(self):
        self.engine = make_engine()
        Base.metadata.create_all(self.engine)
        self.SessionTesting = sessionmaker(bind=self.engine, autoflush=False, future=True)
        self.db: Session = self.SessionTesting()

    def tearDown(self):
        self.db.close()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    # helpers
    def stats(self) -> dict:
        with self.SessionTesting() as fresh:
            row = get_stats(fresh)
            if row is None:
                return {"total": 0, "available": 0, "borrowed": 0, "maintenance": 0}
            return {
                "total": row.total,
                "available": row.available,
                "borrowed": row.borrowed,
                "maintenance": row.maintenance,
            }

    def add_unique(self, name="Notebook Dell", category="notebook"):
        return inventory_service.create_product(
            self.db,
            ProductCreate(name=name, category=category, kind=ProductKind.UNIQUE, quantity=1),
            ADMIN,
        )

    def add_bulk(self, quantity, name="HDMI cable", category="cable"):
        return inventory_service.create_product(
            self.db,
            ProductCreate(name=name, category=category, kind=ProductKind.BULK, quantity=quantity),
            ADMIN,
        )

    def borrow(self, product_id, actor=TEACHER):
        return inventory_service.borrow_product(
            self.db,
            product_id,
            BorrowRequest(
                room="ม.4/2",
                phone="0812345678",
                return_date=datetime.now(timezone.utc) + timedelta(days=3),
                signature_url=SIGNATURE,
            ),
            actor,
        )

    def give_back(self, product_id, transaction_id=None, returner="Kru Malee"):
        return inventory_service.complete_return(
            self.db,
            product_id,
            ReturnRequest(
                returner_name=returner,
                signature_url=SIGNATURE,
                notes="ok",
                transaction_id=transaction_id,
            ),
            ADMIN,
        )


class ApiTestCase(DatabaseTestCase):
    """TestClient wired to the per-test database and a switchable actor."""

    def setUp(self):
        super().setUp()
        seed_rooms(self.db)
        self.actor = ADMIN

        def override_get_db():
            db = self.SessionTesting()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_session_factory] = lambda: self.SessionTesting
        app.dependency_overrides[get_current_user] = lambda: self.actor
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        super().tearDown()

    def act_as(self, actor: Actor) -> None:
        self.actor = actor
