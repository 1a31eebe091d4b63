# app/services/notification_service.py
import logging
from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models.booking import Booking, BookingStatus
from app.models.notification import Notification, NotificationChannel, NotificationStatus
from app.models.photography_job import PhotographyJob
from app.models.repair_ticket import RepairTicket
from app.notifications.line.base import send_line_push, text_message
from app.utils.datetime_utils import as_utc

logger = logging.getLogger(__name__)

NO_RECIPIENT = "-"

BOOKING_STATUS_LABELS = {
    BookingStatus.PENDING: "รออนุมัติ",
    BookingStatus.APPROVED: "อนุมัติแล้ว",
    BookingStatus.REJECTED: "ไม่อนุมัติ",
    BookingStatus.CANCELLED: "ยกเลิกแล้ว",
}


def _log_notification(
    db: Session,
    *,
    channel: NotificationChannel,
    recipient: str,
    message: str,
    status: NotificationStatus,
    error_message: str | None = None,
    reason: Optional[str] = None,
) -> Optional[Notification]:
    """
    Record one delivery attempt. Failing to log is reported and ignored.
    """
    log_message = message or ""
    if len(log_message) > 2000:
        log_message = log_message[:1997] + "..."

    try:
        notif = Notification(
            channel=channel,
            recipient=recipient,
            reason=reason,
            message=log_message,
            status=status,
            error_message=(error_message or "")[:1000] or None,
        )
        db.add(notif)
        db.commit()
        return notif
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("[NOTIFICATION LOG ERROR] Failed to log notification: %s", e, exc_info=True)
        return None


def send_notification_line(
    session_factory: Callable[[], Session],
    *,
    to: Optional[str],
    message: str,
    reason: Optional[str] = None,
) -> NotificationStatus:
    """
    Push a text message over LINE and log the attempt.

    Runs as a background task after the response is sent, so it opens its own
    session. `to=None` targets the admin group. Delivery problems are logged,
    never raised: core state does not depend on them.
    """
    recipient = to or get_settings().line_admin_target
    db = session_factory()
    try:
        if not recipient:
            logger.warning("LINE notification [%s] skipped: no recipient configured", reason)
            status, error = NotificationStatus.SKIPPED, "No recipient"
        else:
            try:
                sent = send_line_push(recipient, [text_message(message)], reason=reason)
                status = NotificationStatus.SENT if sent else NotificationStatus.SKIPPED
                error = None if sent else "LINE disabled"
            except Exception as exc:
                logger.error("Failed to send LINE message to %s [%s]: %s", recipient, reason, exc, exc_info=True)
                status, error = NotificationStatus.FAILED, str(exc)

        _log_notification(
            db,
            channel=NotificationChannel.LINE,
            recipient=recipient or NO_RECIPIENT,
            message=message,
            status=status,
            error_message=error,
            reason=reason,
        )
        return status
    finally:
        db.close()


# -------------------------
# Message templates
# -------------------------
def _fmt(dt: datetime) -> str:
    local = as_utc(dt).astimezone(ZoneInfo(get_settings().display_timezone))
    return local.strftime("%d/%m/%Y %H:%M")


def booking_created_message(booking: Booking) -> str:
    return (
        "📅 มีการจองห้องประชุมใหม่\n"
        f"ห้อง: {booking.room_name or booking.room_id}\n"
        f"หัวข้อ: {booking.title}\n"
        f"เวลา: {_fmt(booking.start_time)} - {_fmt(booking.end_time)}\n"
        f"ผู้จอง: {booking.requester_name}\n"
        f"สถานะ: {BOOKING_STATUS_LABELS[booking.status]}"
    )


def booking_status_message(booking: Booking) -> str:
    return (
        f"การจอง \"{booking.title}\" ({booking.room_name or booking.room_id})\n"
        f"เวลา: {_fmt(booking.start_time)} - {_fmt(booking.end_time)}\n"
        f"สถานะ: {BOOKING_STATUS_LABELS[booking.status]}"
    )


def repair_created_message(ticket: RepairTicket) -> str:
    return (
        "🔧 แจ้งซ่อมใหม่\n"
        f"สถานที่: {ticket.room}\n"
        f"อาการ: {ticket.description}\n"
        f"ผู้แจ้ง: {ticket.requester_name}"
        + (f" ({ticket.phone})" if ticket.phone else "")
    )


def repair_completed_message(ticket: RepairTicket) -> str:
    return (
        f"✅ งานซ่อมเสร็จสิ้น: {ticket.description}\n"
        f"สถานที่: {ticket.room}\n"
        f"ช่าง: {ticket.technician_name or '-'}\n"
        f"บันทึก: {ticket.technician_note or '-'}"
    )


def photography_assigned_message(job: PhotographyJob) -> str:
    return (
        "📸 งานถ่ายภาพใหม่\n"
        f"{job.title}\n"
        f"📍 {job.location}\n"
        f"🗓 {_fmt(job.start_time)} - {_fmt(job.end_time)}\n"
        f"{job.description or '-'}"
    )


def photography_completed_message(job: PhotographyJob) -> str:
    return (
        f"✅ ส่งงานถ่ายภาพแล้ว: {job.title}\n"
        f"ผู้ถ่าย: {', '.join(job.assignee_names or []) or '-'}\n"
        f"ลิงก์: {job.drive_link or '-'}"
    )
