"""
Pushy push-notification integration.
Delivers chat actions (e.g. "newRoom") to member devices.
"""
import asyncio
from typing import Any, Iterable, Optional

import httpx

from app.core.config import settings
from app.core.logging import push_logger


def build_chat_action_payload(token: str, action: str, chat_id: int, chat_name: str) -> dict[str, Any]:
    return {
        "to": token,
        "data": {
            "type": "chatAction",
            "action": action,
            "chatid": chat_id,
            "chatname": chat_name,
        },
    }


class PushyClient:
    """
    Best-effort sender for the Pushy REST API.

    Sends never raise: failures are logged and reported as False so a bad
    token cannot affect the request that triggered it.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.PUSHY_API_KEY
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.PUSHY_API_URL,
            timeout=timeout or settings.PUSH_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def send_chat_action(self, token: str, action: str, chat_id: int, chat_name: str) -> bool:
        if not self.api_key:
            push_logger.debug("PUSHY_API_KEY not configured, skipping push", action=action, chat_id=chat_id)
            return False

        payload = build_chat_action_payload(token, action, chat_id, chat_name)
        try:
            response = await self._client.post("/push", params={"api_key": self.api_key}, json=payload)
        except httpx.TimeoutException:
            push_logger.warning("Timeout sending push", action=action, chat_id=chat_id)
            return False
        except httpx.RequestError as e:
            push_logger.warning("Request error sending push", error=e, action=action, chat_id=chat_id)
            return False
        except Exception as e:
            push_logger.error("Unexpected error sending push", error=e, action=action, chat_id=chat_id)
            return False

        if 200 <= response.status_code < 300:
            push_logger.info("Push sent", action=action, chat_id=chat_id)
            return True

        push_logger.warning(
            f"Push rejected: HTTP {response.status_code} - {response.text[:200]}",
            action=action,
            chat_id=chat_id,
        )
        return False

    async def notify_chat_action(
        self,
        tokens: Iterable[str],
        action: str,
        chat_id: int,
        chat_name: str,
    ) -> int:
        """Fan out one push per device token. Returns how many were delivered."""
        tokens = list(tokens)
        if not tokens:
            return 0
        results = await asyncio.gather(
            *(self.send_chat_action(token, action, chat_id, chat_name) for token in tokens),
            return_exceptions=True,
        )
        delivered = sum(1 for ok in results if ok is True)
        if delivered < len(tokens):
            push_logger.warning(
                "Partial push fan-out",
                action=action,
                chat_id=chat_id,
                delivered=delivered,
                total=len(tokens),
            )
        return delivered
