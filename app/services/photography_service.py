# app/services/photography_service.py
import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.database import unit_of_work
from app.models.booking import Booking
from app.models.photography_job import PhotographyJob, PhotographyJobStatus
from app.schemas.auth import Actor
from app.schemas.photography import (
    Assignee,
    PhotographyJobCreate,
    PhotographyJobSubmit,
    PhotographyJobUpdate,
)
from app.services.activity_service import log_activity
from app.services.booking_service import validate_time_range
from app.services.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from app.utils.datetime_utils import as_utc

logger = logging.getLogger(__name__)

# Jobs in these states still claim their booking
OPEN_OR_DONE_STATUSES = frozenset({PhotographyJobStatus.ASSIGNED, PhotographyJobStatus.COMPLETED})


def _dedupe(assignees: list[Assignee]) -> list[Assignee]:
    seen: set[str] = set()
    unique = []
    for a in assignees:
        if a.id not in seen:
            seen.add(a.id)
            unique.append(a)
    return unique


def _lock_job(db: Session, job_id: UUID) -> PhotographyJob:
    job = (
        db.query(PhotographyJob)
        .filter(PhotographyJob.id == job_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not job:
        raise NotFoundError("Photography job not found.")
    return job


def get_job(db: Session, job_id: UUID) -> PhotographyJob:
    job = db.query(PhotographyJob).filter(PhotographyJob.id == job_id).first()
    if not job:
        raise NotFoundError("Photography job not found.")
    return job


def list_jobs(
    db: Session,
    *,
    status: PhotographyJobStatus | None = None,
    assignee_id: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[PhotographyJob]:
    """
    Newest first. Assignee membership is checked in Python since JSON
    array containment differs between PostgreSQL and SQLite.
    """
    query = db.query(PhotographyJob)
    if status is not None:
        query = query.filter(PhotographyJob.status == status)
    if start is not None:
        query = query.filter(PhotographyJob.end_time > as_utc(start))
    if end is not None:
        query = query.filter(PhotographyJob.start_time < as_utc(end))
    jobs = query.order_by(PhotographyJob.start_time.desc()).all()
    if assignee_id:
        jobs = [j for j in jobs if assignee_id in (j.assignee_ids or [])]
    return jobs


def my_jobs(db: Session, actor: Actor) -> tuple[list[PhotographyJob], dict[str, int]]:
    jobs = list_jobs(db, assignee_id=actor.id)
    summary = {
        "total": len(jobs),
        "assigned": sum(1 for j in jobs if j.status == PhotographyJobStatus.ASSIGNED),
        "completed": sum(1 for j in jobs if j.status == PhotographyJobStatus.COMPLETED),
    }
    return jobs, summary


def create_job(db: Session, payload: PhotographyJobCreate, actor: Actor) -> PhotographyJob:
    """
    Staff assign a job to photographers; a photographer creating a job logs
    it for themselves. A booking can back at most one live job.
    """
    start, end = validate_time_range(payload.start_time, payload.end_time)

    if actor.is_staff:
        assignees = _dedupe(payload.assignees)
        if not assignees:
            raise ValidationError("Pick at least one photographer.")
        manual = False
    else:
        assignees = [Assignee(id=actor.id, name=actor.name)]
        manual = True

    with unit_of_work(db):
        if payload.booking_id is not None:
            if db.get(Booking, payload.booking_id) is None:
                raise NotFoundError("Booking not found.")
            taken = (
                db.query(PhotographyJob.id)
                .filter(
                    PhotographyJob.booking_id == payload.booking_id,
                    PhotographyJob.status.in_(OPEN_OR_DONE_STATUSES),
                )
                .first()
            )
            if taken:
                raise ConflictError("This booking already has a photography job.")

        job = PhotographyJob(
            title=payload.title,
            description=payload.description,
            location=payload.location,
            start_time=start,
            end_time=end,
            booking_id=payload.booking_id,
            assignee_ids=[a.id for a in assignees],
            assignee_names=[a.name for a in assignees],
            requester_id=actor.id,
            requester_name=actor.name,
            is_manual_entry=manual,
            status=PhotographyJobStatus.ASSIGNED,
        )
        db.add(job)

    log_activity(
        db,
        action="photography",
        user_name=actor.name,
        product_name=job.title,
        details=f"{job.location} -> {', '.join(job.assignee_names)}",
        status=job.status.value,
    )
    return job


def update_job(db: Session, job_id: UUID, payload: PhotographyJobUpdate, actor: Actor) -> PhotographyJob:
    """Staff edit: details, schedule, assignees, status and Drive link."""
    if not actor.is_staff:
        raise PermissionDeniedError("Only staff can edit photography jobs.")

    with unit_of_work(db):
        job = _lock_job(db, job_id)

        if payload.start_time is not None or payload.end_time is not None:
            job.start_time, job.end_time = validate_time_range(
                payload.start_time or job.start_time,
                payload.end_time or job.end_time,
            )
        if payload.assignees is not None:
            assignees = _dedupe(payload.assignees)
            if not assignees:
                raise ValidationError("Pick at least one photographer.")
            job.assignee_ids = [a.id for a in assignees]
            job.assignee_names = [a.name for a in assignees]

        for field in ("title", "location", "description", "drive_link", "status"):
            value = getattr(payload, field)
            if value is not None:
                setattr(job, field, value)

    logger.info("Photography job %s updated by %s", job.id, actor.id)
    return job


def submit_job(db: Session, job_id: UUID, payload: PhotographyJobSubmit, actor: Actor) -> PhotographyJob:
    """
    An assignee hands in the work. A Drive link is required; the job moves
    assigned -> completed.
    """
    drive_link = payload.drive_link.strip()
    if not drive_link:
        raise ValidationError("Attach the Google Drive link before submitting.")

    with unit_of_work(db):
        job = _lock_job(db, job_id)
        if actor.id not in (job.assignee_ids or []) and not actor.is_staff:
            raise PermissionDeniedError("This job is not assigned to you.")
        if job.status != PhotographyJobStatus.ASSIGNED:
            raise ConflictError(f"Job is already {job.status.value}.")

        job.status = PhotographyJobStatus.COMPLETED
        job.drive_link = drive_link
        job.cover_image = payload.cover_image

    log_activity(
        db,
        action="photography",
        user_name=actor.name,
        product_name=job.title,
        details=drive_link,
        status=job.status.value,
        image_url=job.cover_image,
    )
    return job


def delete_job(db: Session, job_id: UUID, actor: Actor) -> None:
    if not actor.is_staff:
        raise PermissionDeniedError("Only staff can delete photography jobs.")

    with unit_of_work(db):
        job = _lock_job(db, job_id)
        title = job.title
        db.delete(job)

    log_activity(db, action="delete", user_name=actor.name, product_name=title, details="Photography job removed")
