from typing import Callable, Any

from fastapi import BackgroundTasks


def enqueue_task(
    background_tasks: BackgroundTasks,
    func: Callable[..., Any],
    *args: Any,
    **kwargs: Any,
) -> None:
    """
    Helper to add a background task in a consistent way.

    Usage in endpoints:
        from app.background.tasks import enqueue_task
        from app.services.notification_service import send_notification_line

        enqueue_task(
            background_tasks,
            send_notification_line,
            session_factory,
            to=None,
            message=repair_created_message(ticket),
            reason="REPAIR_CREATED",
        )

    Tasks run after the response is sent; they must not use the request session.
    """
    background_tasks.add_task(func, *args, **kwargs)
