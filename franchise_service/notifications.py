import logging
import os

import httpx

logger = logging.getLogger(__name__)

NOTIFICATION_SERVICE_URL = os.getenv("NOTIFICATION_SERVICE_URL", "").rstrip("/")


async def notify_franchise(franchise_id, message, base_url=None, transport=None):
    """Push a message to the franchise's dashboard. Best effort: failures are only logged."""
    base_url = NOTIFICATION_SERVICE_URL if base_url is None else base_url
    if not base_url:
        return False
    try:
        async with httpx.AsyncClient(transport=transport, timeout=5.0) as client:
            resp = await client.post(f"{base_url}/notify", json={
                "franchise_id": franchise_id,
                "message": message,
            })
            resp.raise_for_status()
        return True
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("Notification for franchise %s failed: %s", franchise_id, e)
        return False
