from tests.helpers import ADMIN, MODERATOR, OTHER_TEACHER, TEACHER, ApiTestCase, DatabaseTestCase, at

import uuid
from unittest import mock

from app.models.notification import Notification
from app.models.photography_job import PhotographyJobStatus
from app.schemas.booking import BookingCreate
from app.schemas.photography import (
    Assignee,
    PhotographyJobCreate,
    PhotographyJobSubmit,
    PhotographyJobUpdate,
)
from app.services import booking_service, notification_service, photography_service
from app.services.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError

API = "/api/v1"

PHOTOGRAPHER = Assignee(id=TEACHER.id, name=TEACHER.name)
SECOND_PHOTOGRAPHER = Assignee(id=OTHER_TEACHER.id, name=OTHER_TEACHER.name)


def job_payload(**overrides):
    values = {
        "title": "ถ่ายภาพกีฬาสี",
        "location": "สนามฟุตบอล",
        "start_time": at(8),
        "end_time": at(12),
        "assignees": [PHOTOGRAPHER],
    }
    values.update(overrides)
    return PhotographyJobCreate(**values)


class CreateJobTests(DatabaseTestCase):
    def test_staff_assigns_photographers(self):
        job = photography_service.create_job(
            self.db, job_payload(assignees=[PHOTOGRAPHER, SECOND_PHOTOGRAPHER, PHOTOGRAPHER]), ADMIN
        )

        self.assertEqual(job.status, PhotographyJobStatus.ASSIGNED)
        self.assertEqual(job.assignee_ids, [TEACHER.id, OTHER_TEACHER.id])
        self.assertEqual(job.requester_id, ADMIN.id)
        self.assertFalse(job.is_manual_entry)

    def test_staff_must_pick_someone(self):
        with self.assertRaises(ValidationError):
            photography_service.create_job(self.db, job_payload(assignees=[]), ADMIN)

    def test_photographer_logs_own_job(self):
        job = photography_service.create_job(self.db, job_payload(assignees=[SECOND_PHOTOGRAPHER]), TEACHER)

        self.assertEqual(job.assignee_ids, [TEACHER.id])
        self.assertEqual(job.assignee_names, [TEACHER.name])
        self.assertTrue(job.is_manual_entry)

    def test_inverted_time_range_is_rejected(self):
        with self.assertRaises(ValidationError):
            photography_service.create_job(self.db, job_payload(start_time=at(12), end_time=at(8)), ADMIN)

    def test_a_booking_backs_one_live_job(self):
        booking_service.seed_rooms(self.db)
        booking = booking_service.create_booking(
            self.db,
            BookingCreate(room_id="sh_auditorium", title="ปฐมนิเทศ", start_time=at(9), end_time=at(11)),
            ADMIN,
        )

        first = photography_service.create_job(self.db, job_payload(booking_id=booking.id), ADMIN)
        with self.assertRaises(ConflictError):
            photography_service.create_job(self.db, job_payload(booking_id=booking.id), ADMIN)

        photography_service.update_job(
            self.db, first.id, PhotographyJobUpdate(status=PhotographyJobStatus.CANCELLED), ADMIN
        )
        again = photography_service.create_job(self.db, job_payload(booking_id=booking.id), ADMIN)
        self.assertEqual(again.booking_id, booking.id)

    def test_unknown_booking(self):
        with self.assertRaises(NotFoundError):
            photography_service.create_job(self.db, job_payload(booking_id=uuid.uuid4()), ADMIN)


class JobWorkflowTests(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.job = photography_service.create_job(self.db, job_payload(), ADMIN)

    def test_my_jobs_summary(self):
        photography_service.create_job(self.db, job_payload(title="วันไหว้ครู", start_time=at(8, day=2), end_time=at(9, day=2)), ADMIN)
        photography_service.submit_job(
            self.db, self.job.id, PhotographyJobSubmit(drive_link="https://drive.test/folder"), TEACHER
        )

        jobs, summary = photography_service.my_jobs(self.db, TEACHER)

        self.assertEqual(summary, {"total": 2, "assigned": 1, "completed": 1})
        self.assertEqual(jobs[0].title, "วันไหว้ครู")
        self.assertEqual(photography_service.my_jobs(self.db, OTHER_TEACHER)[1]["total"], 0)

    def test_submit_needs_a_drive_link(self):
        with self.assertRaises(ValidationError):
            photography_service.submit_job(self.db, self.job.id, PhotographyJobSubmit(drive_link="  "), TEACHER)

        self.assertEqual(photography_service.get_job(self.db, self.job.id).status, PhotographyJobStatus.ASSIGNED)

    def test_only_assignees_submit(self):
        with self.assertRaises(PermissionDeniedError):
            photography_service.submit_job(
                self.db, self.job.id, PhotographyJobSubmit(drive_link="https://drive.test/x"), OTHER_TEACHER
            )

    def test_completed_job_cannot_be_submitted_twice(self):
        done = photography_service.submit_job(
            self.db,
            self.job.id,
            PhotographyJobSubmit(drive_link="https://drive.test/folder", cover_image="https://img.test/c.jpg"),
            TEACHER,
        )
        self.assertEqual(done.status, PhotographyJobStatus.COMPLETED)
        self.assertEqual(done.cover_image, "https://img.test/c.jpg")

        with self.assertRaises(ConflictError):
            photography_service.submit_job(
                self.db, self.job.id, PhotographyJobSubmit(drive_link="https://drive.test/again"), TEACHER
            )

    def test_staff_reassign(self):
        updated = photography_service.update_job(
            self.db, self.job.id, PhotographyJobUpdate(assignees=[SECOND_PHOTOGRAPHER], location="หอประชุม"), MODERATOR
        )

        self.assertEqual(updated.assignee_ids, [OTHER_TEACHER.id])
        self.assertEqual(updated.location, "หอประชุม")
        with self.assertRaises(PermissionDeniedError):
            photography_service.update_job(self.db, self.job.id, PhotographyJobUpdate(title="x"), TEACHER)

    def test_delete_is_staff_only(self):
        with self.assertRaises(PermissionDeniedError):
            photography_service.delete_job(self.db, self.job.id, TEACHER)

        photography_service.delete_job(self.db, self.job.id, ADMIN)
        with self.assertRaises(NotFoundError):
            photography_service.get_job(self.db, self.job.id)


class PhotographyApiTests(ApiTestCase):
    def body(self, **overrides):
        values = {
            "title": "ถ่ายภาพกีฬาสี",
            "location": "สนามฟุตบอล",
            "start_time": "2026-11-06T01:00:00Z",
            "end_time": "2026-11-06T05:00:00Z",
            "assignees": [{"id": TEACHER.id, "name": TEACHER.name}, {"id": ADMIN.id, "name": ADMIN.name}],
        }
        values.update(overrides)
        return values

    def test_assignment_notifies_photographers(self):
        with mock.patch.object(notification_service, "send_line_push", return_value=True) as push:
            resp = self.client.post(f"{API}/photography", json=self.body())

        self.assertEqual(resp.status_code, 201, resp.text)
        # the assigning admin is not notified about their own job
        self.assertEqual([c[0][0] for c in push.call_args_list], [TEACHER.id])
        self.assertIn("08:00", push.call_args[0][1][0]["text"])
        with self.SessionTesting() as db:
            self.assertEqual(db.query(Notification).count(), 1)

    def test_photographer_flow(self):
        job = self.client.post(f"{API}/photography", json=self.body()).json()

        self.act_as(TEACHER)
        self.assertEqual(self.client.get(f"{API}/photography").status_code, 403)

        mine = self.client.get(f"{API}/photography/mine").json()
        self.assertEqual(mine["summary"], {"total": 1, "assigned": 1, "completed": 0})

        missing = self.client.post(f"{API}/photography/{job['id']}/submit", json={"drive_link": ""})
        self.assertEqual(missing.status_code, 400)

        with mock.patch.object(notification_service, "send_line_push", return_value=True) as push:
            done = self.client.post(
                f"{API}/photography/{job['id']}/submit", json={"drive_link": "https://drive.test/folder"}
            )

        self.assertEqual(done.status_code, 200, done.text)
        self.assertEqual(done.json()["status"], "completed")
        self.assertEqual(push.call_args[0][0], ADMIN.id)

    def test_reassign_notifies_only_new_photographers(self):
        job = self.client.post(f"{API}/photography", json=self.body(assignees=[{"id": TEACHER.id, "name": TEACHER.name}])).json()

        with mock.patch.object(notification_service, "send_line_push", return_value=True) as push:
            resp = self.client.patch(
                f"{API}/photography/{job['id']}",
                json={
                    "assignees": [
                        {"id": TEACHER.id, "name": TEACHER.name},
                        {"id": OTHER_TEACHER.id, "name": OTHER_TEACHER.name},
                    ]
                },
            )

        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual([c[0][0] for c in push.call_args_list], [OTHER_TEACHER.id])
