# app/api/v1/endpoints/photography.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.v1.endpoints.auth import get_current_user
from app.background.tasks import enqueue_task
from app.core.database import get_db, get_session_factory
from app.dependencies.authz import STAFF_ONLY, require_roles
from app.models.photography_job import PhotographyJob, PhotographyJobStatus
from app.schemas.auth import Actor
from app.schemas.photography import (
    MyJobsResponse,
    MyJobsSummary,
    PhotographyJobCreate,
    PhotographyJobResponse,
    PhotographyJobSubmit,
    PhotographyJobUpdate,
)
from app.services import photography_service
from app.services.errors import InventoryError
from app.services.notification_service import (
    photography_assigned_message,
    photography_completed_message,
    send_notification_line,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _notify_assignees(
    background_tasks: BackgroundTasks,
    session_factory: Callable[[], Session],
    job: PhotographyJob,
    assignee_ids: list[str],
    actor: Actor,
) -> None:
    """Queue a LINE notice for each photographer other than the actor."""
    message = photography_assigned_message(job)
    for assignee_id in assignee_ids:
        if assignee_id == actor.id:
            continue
        try:
            enqueue_task(
                background_tasks,
                send_notification_line,
                session_factory,
                to=assignee_id,
                message=message,
                reason="PHOTOGRAPHY_ASSIGNED",
            )
        except Exception:
            logger.exception("Failed to queue photography notification job=%s to=%s", job.id, assignee_id)


@router.get("", response_model=list[PhotographyJobResponse], tags=["photography"])
def list_jobs(
    status_filter: Optional[PhotographyJobStatus] = Query(None, alias="status"),
    assignee_id: Optional[str] = Query(None),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    current_user: Actor = Depends(require_roles(STAFF_ONLY)),
    db: Session = Depends(get_db),
) -> list[PhotographyJobResponse]:
    jobs = photography_service.list_jobs(
        db,
        status=status_filter,
        assignee_id=assignee_id,
        start=start,
        end=end,
    )
    return [PhotographyJobResponse.model_validate(j) for j in jobs]


@router.get("/mine", response_model=MyJobsResponse, tags=["photography"])
def my_jobs(
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MyJobsResponse:
    """
    Jobs assigned to the current user with assigned/completed counts.
    """
    jobs, summary = photography_service.my_jobs(db, current_user)
    return MyJobsResponse(
        summary=MyJobsSummary(**summary),
        jobs=[PhotographyJobResponse.model_validate(j) for j in jobs],
    )


@router.post(
    "",
    response_model=PhotographyJobResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["photography"],
)
def create_job(
    payload: PhotographyJobCreate,
    background_tasks: BackgroundTasks,
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> PhotographyJobResponse:
    try:
        job = photography_service.create_job(db, payload, current_user)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("SQLAlchemy error creating photography job: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create photography job.")

    response = PhotographyJobResponse.model_validate(job)
    _notify_assignees(background_tasks, session_factory, job, list(job.assignee_ids), current_user)
    return response


@router.get("/{job_id}", response_model=PhotographyJobResponse, tags=["photography"])
def get_job(
    job_id: UUID,
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PhotographyJobResponse:
    try:
        job = photography_service.get_job(db, job_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return PhotographyJobResponse.model_validate(job)


@router.patch("/{job_id}", response_model=PhotographyJobResponse, tags=["photography"])
def update_job(
    job_id: UUID,
    payload: PhotographyJobUpdate,
    background_tasks: BackgroundTasks,
    current_user: Actor = Depends(require_roles(STAFF_ONLY)),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> PhotographyJobResponse:
    try:
        before = set(photography_service.get_job(db, job_id).assignee_ids or [])
        job = photography_service.update_job(db, job_id, payload, current_user)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("SQLAlchemy error updating photography job=%s: %s", job_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update photography job.")

    response = PhotographyJobResponse.model_validate(job)
    added = [i for i in job.assignee_ids if i not in before]
    if added and job.status == PhotographyJobStatus.ASSIGNED:
        _notify_assignees(background_tasks, session_factory, job, added, current_user)
    return response


@router.post("/{job_id}/submit", response_model=PhotographyJobResponse, tags=["photography"])
def submit_job(
    job_id: UUID,
    payload: PhotographyJobSubmit,
    background_tasks: BackgroundTasks,
    current_user: Actor = Depends(get_current_user),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> PhotographyJobResponse:
    """
    Hand in the finished work (Drive folder link, optional cover image).
    """
    try:
        job = photography_service.submit_job(db, job_id, payload, current_user)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("SQLAlchemy error submitting photography job=%s: %s", job_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to submit photography job.")

    response = PhotographyJobResponse.model_validate(job)

    if job.requester_id != current_user.id:
        try:
            enqueue_task(
                background_tasks,
                send_notification_line,
                session_factory,
                to=job.requester_id,
                message=photography_completed_message(job),
                reason="PHOTOGRAPHY_COMPLETED",
            )
        except Exception:
            logger.exception("Failed to queue photography completion notification job=%s", job.id)

    return response


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["photography"])
def delete_job(
    job_id: UUID,
    current_user: Actor = Depends(require_roles(STAFF_ONLY)),
    db: Session = Depends(get_db),
) -> Response:
    try:
        photography_service.delete_job(db, job_id, current_user)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("SQLAlchemy error deleting photography job=%s: %s", job_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete photography job.")

    return Response(status_code=status.HTTP_204_NO_CONTENT)
