# app/notifications/line/base.py
import logging
from typing import Any, Optional

import httpx

from app.core.config import get_settings

logger = logging.getLogger(__name__)


def text_message(text: str) -> dict[str, Any]:
    # LINE caps a text message at 5000 characters.
    return {"type": "text", "text": text[:5000]}


def send_line_push(
    to: str,
    messages: list[dict[str, Any]],
    *,
    reason: Optional[str] = None,
) -> bool:
    """
    Push messages to a LINE user or group via the Messaging API.

    - Returns False without calling LINE when pushes are disabled or the
      channel token is missing.
    - Returns True on a 2xx answer.
    - Raises httpx.HTTPError on transport errors and non-2xx answers.
    """
    settings = get_settings()
    debug_reason = f" [{reason}]" if reason else ""

    if not settings.line_enabled or not settings.line_channel_access_token:
        logger.info("[LINE DISABLED%s] To: %s, %d message(s)", debug_reason, to, len(messages))
        return False

    if not to or not messages:
        raise ValueError('Missing "to" or "messages"')

    headers = {
        "Authorization": f"Bearer {settings.line_channel_access_token}",
        "Content-Type": "application/json",
    }
    payload = {"to": to, "messages": messages}

    try:
        response = httpx.post(
            settings.line_push_url,
            json=payload,
            headers=headers,
            timeout=settings.line_timeout_seconds,
        )
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.error("[LINE ERROR%s] Push to %s failed: %s", debug_reason, to, exc)
        raise

    logger.info("[LINE SENT%s] To: %s", debug_reason, to)
    return True
