from tests.helpers import ADMIN, MODERATOR, OTHER_TEACHER, SIGNATURE, TEACHER, TECHNICIAN, ApiTestCase

from unittest import mock

from fastapi.testclient import TestClient

from app.core.security import create_access_token
from app.main import app
from app.models.notification import Notification, NotificationStatus
from app.services import notification_service

API = "/api/v1"


class AuthApiTests(ApiTestCase):
    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})

    def test_me_from_real_token(self):
        app.dependency_overrides.clear()
        client = TestClient(app)

        token = create_access_token("U-teacher-1", "Kru Malee", "user")
        resp = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"id": "U-teacher-1", "name": "Kru Malee", "role": "user"})

    def test_missing_or_bad_token_is_401(self):
        app.dependency_overrides.clear()
        client = TestClient(app)

        self.assertEqual(client.get(f"{API}/auth/me").status_code, 401)
        bad = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not-a-token"})
        self.assertEqual(bad.status_code, 401)


class ProductApiTests(ApiTestCase):
    def create(self, **body):
        payload = {"name": "Notebook HP", "category": "notebook"}
        payload.update(body)
        resp = self.client.post(f"{API}/products", json=payload)
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()

    def borrow_body(self):
        return {
            "room": "ม.5/1",
            "phone": "0899999999",
            "return_date": "2026-10-30T16:00:00Z",
            "signature_url": SIGNATURE,
        }

    def test_only_staff_can_add_products(self):
        self.act_as(TEACHER)
        resp = self.client.post(f"{API}/products", json={"name": "x"})
        self.assertEqual(resp.status_code, 403)

    def test_unique_item_rejects_quantity(self):
        resp = self.client.post(f"{API}/products", json={"name": "x", "kind": "unique", "quantity": 4})
        self.assertEqual(resp.status_code, 422)

    def test_borrow_and_return_flow(self):
        product = self.create()
        self.assertEqual(product["stock_id"], "NBK-001")

        self.act_as(TEACHER)
        borrow = self.client.post(f"{API}/products/{product['id']}/borrow", json=self.borrow_body())
        self.assertEqual(borrow.status_code, 201, borrow.text)
        self.assertEqual(borrow.json()["status"], "active")

        again = self.client.post(f"{API}/products/{product['id']}/borrow", json=self.borrow_body())
        self.assertEqual(again.status_code, 409)

        history = self.client.get(f"{API}/transactions/me").json()
        self.assertEqual([t["id"] for t in history], [borrow.json()["id"]])

        stats = self.client.get(f"{API}/dashboard/stats").json()
        self.assertEqual(stats, {"total": 1, "available": 0, "borrowed": 1, "maintenance": 0})

        self.act_as(ADMIN)
        no_sig = self.client.post(
            f"{API}/products/{product['id']}/return",
            json={"returner_name": "Kru Malee", "signature_url": ""},
        )
        self.assertEqual(no_sig.status_code, 400)

        ret = self.client.post(
            f"{API}/products/{product['id']}/return",
            json={"returner_name": "Kru Malee", "signature_url": SIGNATURE},
        )
        self.assertEqual(ret.status_code, 201, ret.text)
        self.assertEqual(ret.json()["type"], "return")

        item = self.client.get(f"{API}/products/{product['id']}").json()
        self.assertEqual(item["status"], "available")
        self.assertIsNone(item["active_borrow_id"])

        actions = [a["action"] for a in self.client.get(f"{API}/dashboard/activity").json()]
        self.assertIn("borrow", actions)
        self.assertIn("return", actions)

    def test_bulk_stock_endpoint(self):
        product = self.create(name="USB-C adapter", category="cable", kind="bulk", quantity=2)

        resp = self.client.post(f"{API}/products/{product['id']}/stock", json={"mode": "set", "delta": 5})
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["quantity"], 5)

        resp = self.client.post(f"{API}/products/{product['id']}/stock", json={"mode": "add", "delta": -100})
        self.assertEqual(resp.status_code, 400)

        item = self.client.get(f"{API}/products/{product['id']}").json()
        self.assertEqual(item["quantity"], 5)
        self.assertEqual(item["available_units"], 5)

    def test_unknown_product_is_404(self):
        resp = self.client.get(f"{API}/products/00000000-0000-0000-0000-00000000abcd")
        self.assertEqual(resp.status_code, 404)

    def test_delete_hides_product(self):
        product = self.create()

        resp = self.client.delete(f"{API}/products/{product['id']}")
        self.assertEqual(resp.status_code, 204)

        self.assertEqual(self.client.get(f"{API}/products").json(), [])
        self.assertEqual(self.client.get(f"{API}/dashboard/stats").json()["total"], 0)


class BookingApiTests(ApiTestCase):
    def body(self, start, end, room_id="jh_gym"):
        return {"room_id": room_id, "title": "กีฬาสี", "start_time": start, "end_time": end}

    def test_rooms_carry_equipment(self):
        rooms = self.client.get(f"{API}/rooms", params={"zone": "junior_high"}).json()

        gym = next(r for r in rooms if r["id"] == "jh_gym")
        self.assertIn("Projector", gym["equipment"])

    def test_conflicting_booking_is_409(self):
        self.act_as(TEACHER)
        first = self.client.post(f"{API}/bookings", json=self.body("2026-11-02T09:00:00Z", "2026-11-02T10:00:00Z"))
        self.assertEqual(first.status_code, 201, first.text)

        self.act_as(OTHER_TEACHER)
        clash = self.client.post(f"{API}/bookings", json=self.body("2026-11-02T09:30:00Z", "2026-11-02T11:00:00Z"))
        self.assertEqual(clash.status_code, 409)

        touching = self.client.post(f"{API}/bookings", json=self.body("2026-11-02T10:00:00Z", "2026-11-02T11:00:00Z"))
        self.assertEqual(touching.status_code, 201)

    def test_inverted_range_is_400(self):
        resp = self.client.post(f"{API}/bookings", json=self.body("2026-11-02T10:00:00Z", "2026-11-02T09:00:00Z"))
        self.assertEqual(resp.status_code, 400)

    def test_availability_check(self):
        self.client.post(f"{API}/bookings", json=self.body("2026-11-02T09:00:00Z", "2026-11-02T10:00:00Z"))

        busy = self.client.get(
            f"{API}/bookings/availability",
            params={"room_id": "jh_gym", "start_time": "2026-11-02T09:30:00Z", "end_time": "2026-11-02T10:30:00Z"},
        ).json()
        free = self.client.get(
            f"{API}/bookings/availability",
            params={"room_id": "jh_gym", "start_time": "2026-11-02T10:00:00Z", "end_time": "2026-11-02T10:30:00Z"},
        ).json()

        self.assertFalse(busy["available"])
        self.assertTrue(free["available"])

    def test_creation_schedules_a_line_notification(self):
        with mock.patch.object(notification_service, "send_line_push", return_value=True) as push:
            with mock.patch.object(
                notification_service,
                "get_settings",
                return_value=mock.Mock(line_admin_target="C-admin", display_timezone="Asia/Bangkok"),
            ):
                resp = self.client.post(
                    f"{API}/bookings",
                    json=self.body("2026-11-03T09:00:00Z", "2026-11-03T10:00:00Z"),
                )

        self.assertEqual(resp.status_code, 201)
        push.assert_called_once()
        self.assertEqual(push.call_args[0][0], "C-admin")
        with self.SessionTesting() as db:
            self.assertEqual(db.query(Notification).one().status, NotificationStatus.SENT)

    def test_notification_failure_does_not_fail_booking(self):
        with mock.patch.object(notification_service, "send_line_push", side_effect=RuntimeError("LINE down")):
            resp = self.client.post(
                f"{API}/bookings",
                json=self.body("2026-11-04T09:00:00Z", "2026-11-04T10:00:00Z"),
            )

        self.assertEqual(resp.status_code, 201)

    def test_requester_cannot_approve(self):
        self.act_as(TEACHER)
        booking = self.client.post(
            f"{API}/bookings", json=self.body("2026-11-05T09:00:00Z", "2026-11-05T10:00:00Z")
        ).json()

        resp = self.client.patch(f"{API}/bookings/{booking['id']}/status", json={"status": "rejected"})
        self.assertEqual(resp.status_code, 403)

        resp = self.client.patch(f"{API}/bookings/{booking['id']}/status", json={"status": "cancelled"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "cancelled")


class RepairApiTests(ApiTestCase):
    def test_ticket_lifecycle(self):
        self.act_as(TEACHER)
        ticket = self.client.post(
            f"{API}/repairs", json={"room": "ห้อง 115", "description": "แอร์ไม่เย็น"}
        )
        self.assertEqual(ticket.status_code, 201, ticket.text)
        ticket_id = ticket.json()["id"]

        blocked = self.client.patch(f"{API}/repairs/{ticket_id}", json={"status": "in_progress"})
        self.assertEqual(blocked.status_code, 403)

        self.act_as(TECHNICIAN)
        incomplete = self.client.patch(f"{API}/repairs/{ticket_id}", json={"status": "completed"})
        self.assertEqual(incomplete.status_code, 400)

        done = self.client.patch(
            f"{API}/repairs/{ticket_id}",
            json={
                "status": "completed",
                "technician_note": "ล้างแอร์",
                "completion_image_url": "https://img.test/ac.jpg",
            },
        )
        self.assertEqual(done.status_code, 200, done.text)
        self.assertEqual(done.json()["status"], "completed")

    def test_teachers_only_see_their_tickets(self):
        self.act_as(TEACHER)
        self.client.post(f"{API}/repairs", json={"room": "A", "description": "x"})
        self.act_as(OTHER_TEACHER)
        self.client.post(f"{API}/repairs", json={"room": "B", "description": "y"})

        mine = self.client.get(f"{API}/repairs").json()
        self.assertEqual([t["room"] for t in mine], ["B"])

        self.act_as(TECHNICIAN)
        self.assertEqual(len(self.client.get(f"{API}/repairs").json()), 2)


class AdminApiTests(ApiTestCase):
    def test_admin_tools_are_admin_only(self):
        self.act_as(TEACHER)
        self.assertEqual(self.client.post(f"{API}/admin/inventory/recount").status_code, 403)
        self.assertEqual(self.client.post(f"{API}/admin/inventory/repair").status_code, 403)

    def test_recount_and_repair(self):
        self.client.post(f"{API}/products", json={"name": "Camera", "category": "camera"})

        recount = self.client.post(f"{API}/admin/inventory/recount")
        self.assertEqual(recount.status_code, 200)
        self.assertEqual(recount.json(), {"total": 1, "available": 1, "borrowed": 0, "maintenance": 0})

        report = self.client.post(f"{API}/admin/inventory/repair", params={"dry_run": "true"})
        self.assertEqual(report.status_code, 200)
        self.assertTrue(report.json()["dry_run"])
        self.assertEqual(report.json()["borrow_count_fixes"], [])

    def test_seed_rooms(self):
        resp = self.client.post(f"{API}/admin/rooms/seed")
        self.assertEqual(resp.json(), {"created": 0})


class ProductLookupAndGatingTests(ApiTestCase):
    def test_lookup_by_asset_tag(self):
        created = self.client.post(f"{API}/products", json={"name": "Camera Canon", "category": "camera"}).json()

        self.act_as(TEACHER)
        resp = self.client.get(f"{API}/products/by-stock-id/{created['stock_id'].lower()}")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["id"], created["id"])
        self.assertEqual(self.client.get(f"{API}/products/by-stock-id/CAM-999").status_code, 404)

    def test_moderators_cannot_delete_or_correct_stock(self):
        product = self.client.post(
            f"{API}/products", json={"name": "HDMI", "category": "cable", "kind": "bulk", "quantity": 3}
        ).json()

        self.act_as(MODERATOR)
        self.assertEqual(self.client.delete(f"{API}/products/{product['id']}").status_code, 403)
        self.assertEqual(
            self.client.post(f"{API}/products/{product['id']}/stock", json={"mode": "add", "delta": 1}).status_code,
            403,
        )
        self.assertEqual(
            self.client.post(f"{API}/products/{product['id']}/status", json={"status": "maintenance"}).status_code,
            403,
        )

        patched = self.client.patch(f"{API}/products/{product['id']}", json={"location": "ห้องโสต"})
        self.assertEqual(patched.status_code, 200)
