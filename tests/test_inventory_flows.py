from tests.helpers import ADMIN, OTHER_TEACHER, SIGNATURE, TEACHER, DatabaseTestCase

import uuid
from datetime import datetime, timedelta, timezone
from unittest import mock

from sqlalchemy.exc import OperationalError

from app.models.product import Product, ProductStatus
from app.models.transaction import Transaction, TransactionStatus, TransactionType
from app.schemas.product import ProductUpdate, StockAdjustMode
from app.schemas.transaction import BorrowRequest, RequisitionRequest, ReturnRequest
from app.services import inventory_service
from app.services.errors import ConflictError, NotFoundError, ValidationError


class CreateProductTests(DatabaseTestCase):
    def test_stock_ids_are_sequential_per_prefix(self):
        first = self.add_unique(name="Notebook A")
        second = self.add_unique(name="Notebook B")
        camera = self.add_unique(name="Canon", category="camera")
        other = self.add_unique(name="Thing", category=None)

        self.assertEqual(first.stock_id, "NBK-001")
        self.assertEqual(second.stock_id, "NBK-002")
        self.assertEqual(camera.stock_id, "CAM-001")
        self.assertEqual(other.stock_id, "GEN-001")

    def test_empty_bulk_item_starts_depleted(self):
        paper = self.add_bulk(0, name="A4 paper", category="consumable")

        self.assertEqual(paper.status, ProductStatus.REQUISITIONED)
        self.assertEqual(self.stats(), {"total": 1, "available": 0, "borrowed": 0, "maintenance": 0})


class UniqueBorrowReturnTests(DatabaseTestCase):
    def test_borrow_sets_back_reference_and_status(self):
        laptop = self.add_unique()

        borrow = self.borrow(laptop.id)

        product = inventory_service.get_product(self.db, laptop.id)
        self.assertEqual(product.status, ProductStatus.BORROWED)
        self.assertEqual(product.active_borrow_id, borrow.id)
        self.assertEqual(borrow.status, TransactionStatus.ACTIVE)
        self.assertEqual(borrow.actor_name, TEACHER.name)

    def test_borrowing_a_borrowed_item_conflicts(self):
        laptop = self.add_unique()
        self.borrow(laptop.id)

        with self.assertRaises(ConflictError):
            self.borrow(laptop.id, actor=OTHER_TEACHER)

    def test_return_clears_back_reference(self):
        laptop = self.add_unique()
        borrow = self.borrow(laptop.id)

        record = self.give_back(laptop.id)

        product = inventory_service.get_product(self.db, laptop.id)
        self.assertIsNone(product.active_borrow_id)
        self.assertEqual(product.status, ProductStatus.AVAILABLE)

        closed = self.db.get(Transaction, borrow.id)
        self.assertEqual(closed.status, TransactionStatus.COMPLETED)
        self.assertEqual(closed.returner_name, "Kru Malee")
        self.assertEqual(closed.return_receiver_name, ADMIN.name)
        self.assertIsNotNone(closed.returned_at)

        self.assertEqual(record.type, TransactionType.RETURN)
        self.assertEqual(record.borrow_transaction_id, borrow.id)
        self.assertEqual(self.stats(), {"total": 1, "available": 1, "borrowed": 0, "maintenance": 0})

    def test_returning_an_item_on_the_shelf_conflicts(self):
        laptop = self.add_unique()
        with self.assertRaises(ConflictError):
            self.give_back(laptop.id)

    def test_return_without_signature_writes_nothing(self):
        laptop = self.add_unique()
        borrow = self.borrow(laptop.id)
        count_before = self.db.query(Transaction).count()

        for payload in (
            ReturnRequest(returner_name="Kru Malee", signature_url=""),
            ReturnRequest(returner_name="   ", signature_url=SIGNATURE),
        ):
            with self.assertRaises(ValidationError):
                inventory_service.complete_return(self.db, laptop.id, payload, ADMIN)

        self.assertEqual(self.db.query(Transaction).count(), count_before)
        product = inventory_service.get_product(self.db, laptop.id)
        self.assertEqual(product.status, ProductStatus.BORROWED)
        self.assertEqual(product.active_borrow_id, borrow.id)

    def test_legacy_borrow_without_back_reference_uses_oldest_active(self):
        laptop = self.add_unique()
        product = self.db.get(Product, laptop.id)
        product.status = ProductStatus.BORROWED
        older = Transaction(
            id=uuid.uuid4(),
            type=TransactionType.BORROW,
            status=TransactionStatus.ACTIVE,
            product_id=laptop.id,
            quantity=1,
            actor_name="Kru Old",
            borrow_date=datetime(2024, 5, 1, tzinfo=timezone.utc),
        )
        newer = Transaction(
            id=uuid.uuid4(),
            type=TransactionType.BORROW,
            status=TransactionStatus.ACTIVE,
            product_id=laptop.id,
            quantity=1,
            actor_name="Kru New",
            borrow_date=datetime(2024, 6, 1, tzinfo=timezone.utc),
        )
        self.db.add_all([older, newer])
        self.db.commit()

        record = self.give_back(laptop.id)

        self.assertEqual(record.borrow_transaction_id, older.id)
        self.assertEqual(self.db.get(Transaction, older.id).status, TransactionStatus.COMPLETED)
        self.assertEqual(self.db.get(Transaction, newer.id).status, TransactionStatus.ACTIVE)

    def test_legacy_return_with_no_ledger_entry_still_completes(self):
        laptop = self.add_unique()
        product = self.db.get(Product, laptop.id)
        product.status = ProductStatus.BORROWED
        self.db.commit()

        with self.assertLogs("app.services.inventory_service", level="WARNING"):
            record = self.give_back(laptop.id)

        self.assertIsNone(record.borrow_transaction_id)
        self.assertEqual(inventory_service.get_product(self.db, laptop.id).status, ProductStatus.AVAILABLE)

    def test_stale_session_cannot_double_borrow(self):
        laptop = self.add_unique()

        # Client A has the item loaded as available
        stale_db = self.SessionTesting()
        stale = inventory_service.get_product(stale_db, laptop.id)
        self.assertEqual(stale.status, ProductStatus.AVAILABLE)

        # Client B borrows it first
        self.borrow(laptop.id, actor=OTHER_TEACHER)

        # A re-reads under lock and loses
        with self.assertRaises(ConflictError):
            inventory_service.borrow_product(
                stale_db,
                laptop.id,
                BorrowRequest(
                    room="ม.1/1",
                    phone="0800000000",
                    return_date=datetime.now(timezone.utc) + timedelta(days=1),
                    signature_url=SIGNATURE,
                ),
                TEACHER,
            )
        stale_db.close()

        active = inventory_service.list_active_borrows(self.db, laptop.id)
        self.assertEqual(len(active), 1)
        self.assertEqual(active[0].actor_id, OTHER_TEACHER.id)
        self.assertEqual(self.stats()["borrowed"], 1)


class BulkBorrowReturnTests(DatabaseTestCase):
    def test_return_closes_only_the_selected_borrow(self):
        cable = self.add_bulk(5)
        borrow_a = self.borrow(cable.id, actor=TEACHER)
        borrow_b = self.borrow(cable.id, actor=OTHER_TEACHER)

        self.give_back(cable.id, transaction_id=borrow_a.id)

        self.assertEqual(self.db.get(Transaction, borrow_a.id).status, TransactionStatus.COMPLETED)
        self.assertEqual(self.db.get(Transaction, borrow_b.id).status, TransactionStatus.ACTIVE)
        self.assertEqual(inventory_service.get_product(self.db, cable.id).borrowed_count, 1)

    def test_active_borrows_listed_oldest_first(self):
        cable = self.add_bulk(5)
        first = self.borrow(cable.id, actor=TEACHER)
        second = self.borrow(cable.id, actor=OTHER_TEACHER)

        active = inventory_service.list_active_borrows(self.db, cable.id)

        self.assertEqual([t.id for t in active], [first.id, second.id])

    def test_bulk_return_requires_a_selection(self):
        cable = self.add_bulk(2)
        self.borrow(cable.id)

        with self.assertRaises(ValidationError):
            self.give_back(cable.id, transaction_id=None)

    def test_bulk_return_of_unknown_borrow_is_not_found(self):
        cable = self.add_bulk(2)
        self.borrow(cable.id)

        with self.assertRaises(NotFoundError):
            self.give_back(cable.id, transaction_id=uuid.uuid4())

    def test_last_unit_cannot_be_borrowed_twice(self):
        cable = self.add_bulk(1)
        self.borrow(cable.id)

        with self.assertRaises(ConflictError):
            self.borrow(cable.id, actor=OTHER_TEACHER)

        product = inventory_service.get_product(self.db, cable.id)
        self.assertEqual(product.borrowed_count, 1)

    def test_bulk_status_not_touched_by_lending(self):
        cable = self.add_bulk(1)
        self.borrow(cable.id)

        product = inventory_service.get_product(self.db, cable.id)
        self.assertEqual(product.status, ProductStatus.AVAILABLE)
        self.assertEqual(product.available_units, 0)


class StockAdjustmentTests(DatabaseTestCase):
    def test_set_is_idempotent(self):
        cable = self.add_bulk(2)

        first = inventory_service.adjust_stock(self.db, cable.id, StockAdjustMode.SET, 5, ADMIN)
        second = inventory_service.adjust_stock(self.db, cable.id, StockAdjustMode.SET, 5, ADMIN)

        self.assertEqual((first, second), (5, 5))
        self.assertEqual(inventory_service.get_product(self.db, cable.id).quantity, 5)

    def test_add_below_zero_is_rejected(self):
        cable = self.add_bulk(10)

        with self.assertRaises(ValidationError):
            inventory_service.adjust_stock(self.db, cable.id, StockAdjustMode.ADD, -100, ADMIN)

        self.assertEqual(inventory_service.get_product(self.db, cable.id).quantity, 10)

    def test_cannot_drop_below_units_on_loan(self):
        cable = self.add_bulk(3)
        self.borrow(cable.id)
        self.borrow(cable.id)

        with self.assertRaises(ValidationError):
            inventory_service.adjust_stock(self.db, cable.id, StockAdjustMode.SET, 1, ADMIN)

    def test_depleting_stock_rederives_status_and_stats(self):
        cable = self.add_bulk(2)

        inventory_service.adjust_stock(self.db, cable.id, StockAdjustMode.ADD, -2, ADMIN)
        product = inventory_service.get_product(self.db, cable.id)
        self.assertEqual(product.status, ProductStatus.REQUISITIONED)
        self.assertEqual(self.stats()["available"], 0)

        inventory_service.adjust_stock(self.db, cable.id, StockAdjustMode.ADD, 4, ADMIN)
        product = inventory_service.get_product(self.db, cable.id)
        self.assertEqual(product.status, ProductStatus.AVAILABLE)
        self.assertEqual(product.quantity, 4)
        self.assertEqual(self.stats()["available"], 1)

    def test_no_change_requested_writes_nothing(self):
        cable = self.add_bulk(0)
        stats_before = self.stats()

        for delta in (None, 0):
            quantity = inventory_service.adjust_stock(self.db, cable.id, StockAdjustMode.ADD, delta, ADMIN)
            self.assertEqual(quantity, 0)

        product = inventory_service.get_product(self.db, cable.id)
        self.assertEqual(product.status, ProductStatus.REQUISITIONED)
        self.assertEqual(self.stats(), stats_before)

    def test_unique_items_have_no_stock(self):
        laptop = self.add_unique()

        with self.assertRaises(ValidationError):
            inventory_service.adjust_stock(self.db, laptop.id, StockAdjustMode.SET, 3, ADMIN)


class RequisitionTests(DatabaseTestCase):
    def _requisition(self, product_id, quantity=1):
        return inventory_service.requisition_product(
            self.db,
            product_id,
            RequisitionRequest(room="ห้องธุรการ", reason="ใช้งานประจำ", quantity=quantity, signature_url=SIGNATURE),
            TEACHER,
        )

    def test_bulk_requisition_removes_units(self):
        paper = self.add_bulk(10, name="A4 paper", category="consumable")

        record = self._requisition(paper.id, quantity=4)

        self.assertEqual(record.type, TransactionType.REQUISITION)
        self.assertEqual(record.status, TransactionStatus.COMPLETED)
        self.assertEqual(inventory_service.get_product(self.db, paper.id).quantity, 6)
        self.assertEqual(self.stats()["available"], 1)

    def test_bulk_requisition_cannot_take_units_on_loan(self):
        paper = self.add_bulk(3, name="A4 paper", category="consumable")
        self.borrow(paper.id)

        with self.assertRaises(ConflictError):
            self._requisition(paper.id, quantity=3)

        self._requisition(paper.id, quantity=2)
        product = inventory_service.get_product(self.db, paper.id)
        self.assertEqual((product.quantity, product.borrowed_count), (1, 1))
        self.assertEqual(product.status, ProductStatus.REQUISITIONED)
        self.assertEqual(self.stats(), {"total": 1, "available": 0, "borrowed": 1, "maintenance": 0})

    def test_unique_requisition(self):
        laptop = self.add_unique()

        self._requisition(laptop.id)

        self.assertEqual(inventory_service.get_product(self.db, laptop.id).status, ProductStatus.REQUISITIONED)
        self.assertEqual(self.stats(), {"total": 1, "available": 0, "borrowed": 0, "maintenance": 0})

        with self.assertRaises(ConflictError):
            self.borrow(laptop.id)

    def test_missing_signature_rejected(self):
        laptop = self.add_unique()
        with self.assertRaises(ValidationError):
            inventory_service.requisition_product(
                self.db,
                laptop.id,
                RequisitionRequest(room="x", reason="y", signature_url=""),
                TEACHER,
            )


class StatusEditAndDeleteTests(DatabaseTestCase):
    def test_maintenance_round_trip_is_reconciled(self):
        laptop = self.add_unique()

        inventory_service.set_product_status(self.db, laptop.id, ProductStatus.MAINTENANCE, ADMIN)
        self.assertEqual(self.stats(), {"total": 1, "available": 0, "borrowed": 0, "maintenance": 1})

        inventory_service.set_product_status(self.db, laptop.id, ProductStatus.AVAILABLE, ADMIN)
        self.assertEqual(self.stats(), {"total": 1, "available": 1, "borrowed": 0, "maintenance": 0})

    def test_status_edit_refused_while_on_loan(self):
        laptop = self.add_unique()
        self.borrow(laptop.id)

        with self.assertRaises(ConflictError):
            inventory_service.set_product_status(self.db, laptop.id, ProductStatus.MAINTENANCE, ADMIN)

    def test_status_edit_cannot_lend(self):
        laptop = self.add_unique()
        with self.assertRaises(ValidationError):
            inventory_service.set_product_status(self.db, laptop.id, ProductStatus.BORROWED, ADMIN)

    def test_delete_removes_contribution(self):
        laptop = self.add_unique()
        self.add_bulk(3)

        inventory_service.delete_product(self.db, laptop.id, ADMIN)

        self.assertEqual(self.stats(), {"total": 1, "available": 1, "borrowed": 0, "maintenance": 0})
        with self.assertRaises(NotFoundError):
            inventory_service.get_product(self.db, laptop.id)
        self.assertTrue(self.db.get(Product, laptop.id).is_deleted)

    def test_delete_refused_with_units_on_loan(self):
        cable = self.add_bulk(3)
        self.borrow(cable.id)

        with self.assertRaises(ConflictError):
            inventory_service.delete_product(self.db, cable.id, ADMIN)

    def test_update_details_keeps_stock_id(self):
        laptop = self.add_unique()

        product = inventory_service.update_product_details(
            self.db,
            laptop.id,
            ProductUpdate(name="Notebook Lenovo", location="ห้องคอม 2", brand=""),
            ADMIN,
        )

        self.assertEqual(product.name, "Notebook Lenovo")
        self.assertEqual(product.location, "ห้องคอม 2")
        self.assertIsNone(product.brand)
        self.assertEqual(product.stock_id, laptop.stock_id)


class WriteFailureTests(DatabaseTestCase):
    def test_failed_stats_write_rolls_back_the_borrow(self):
        cable = self.add_bulk(3)
        before = self.stats()

        failure = OperationalError("UPDATE inventory_stats", {}, Exception("disk I/O error"))
        with mock.patch.object(inventory_service, "bulk_borrow_delta", side_effect=failure):
            with self.assertRaises(OperationalError):
                self.borrow(cable.id)

        with self.SessionTesting() as fresh:
            self.assertEqual(inventory_service.get_product(fresh, cable.id).borrowed_count, 0)
            self.assertEqual(fresh.query(Transaction).count(), 0)
        self.assertEqual(self.stats(), before)

        # the session is usable again after the rollback
        self.borrow(cable.id)
        self.assertEqual(inventory_service.get_product(self.db, cable.id).borrowed_count, 1)
