# providers/push.py
# push delivery: webhook POST when configured, otherwise just log

import logging
from typing import Any, Dict, Optional

import httpx

log = logging.getLogger("mealspot.push")

HEADERS = {
    "User-Agent": "MealSpot/0.1",
    "Accept": "application/json",
}


class LogNotificationDelivery:
    """Records the notification in the log and reports success."""

    async def push(self, user_id: str, title: str, body: str, payload: Dict[str, Any]) -> bool:
        log.info("push to %s: %s | %s | %s", user_id, title, body, payload)
        return True


class WebhookNotificationDelivery:
    def __init__(self, url: str, timeout_s: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout_s = timeout_s
        self._transport = transport

    async def push(self, user_id: str, title: str, body: str, payload: Dict[str, Any]) -> bool:
        message = {"userId": user_id, "title": title, "body": body, "data": payload}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, headers=HEADERS, transport=self._transport) as client:
                r = await client.post(self.url, json=message)
        except httpx.HTTPError as e:
            log.warning("push webhook failed for %s: %s", user_id, e)
            return False
        if r.status_code >= 300:
            log.warning("push webhook status %s for %s", r.status_code, user_id)
            return False
        return True
