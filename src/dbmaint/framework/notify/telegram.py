"""Telegram bot notifier.

Sends run status messages to a chat through the Bot API and edits them
in place when the run finishes.

Manifesto:
    Operators should see one message per run that turns from
    "started" into the final report, not a trail of separate pings.
    ``sendMessage`` returns the message id, which the caller keeps and
    hands back to ``editMessageText``.

Tags:
    db-maintenance, notify, telegram, HTTP-POST
"""

from __future__ import annotations

from typing import Any

import httpx

from dbmaint.core.errors import NotifierError
from dbmaint.core.logging import get_logger
from dbmaint.framework.notify.protocol import MessageHandle

logger = get_logger(__name__)


class TelegramNotifier:
    """
    Telegram Bot API channel.

    Example:
        >>> notifier = TelegramNotifier(bot_token="123:ABC", chat_id=-1001234)
        >>> handle = notifier.send("🧹 <b>Starting cleanup</b>")
        >>> notifier.edit(handle, "🧹 <b>Cleanup Completed</b>")
    """

    def __init__(
        self,
        bot_token: str,
        chat_id: int | str,
        *,
        disable_notification: bool = True,
        api_base: str = "https://api.telegram.org",
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ):
        if not bot_token:
            raise NotifierError("Telegram bot token is empty")
        self._chat_id = chat_id
        self._disable_notification = disable_notification
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)
        self._base_url = f"{api_base.rstrip('/')}/bot{bot_token}"

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def send(self, text: str) -> MessageHandle:
        """Send a new HTML message and return its handle."""
        result = self._call(
            "sendMessage",
            {
                "chat_id": self._chat_id,
                "text": text,
                "parse_mode": "HTML",
                "disable_notification": self._disable_notification,
            },
        )
        try:
            message_id = int(result["message_id"])
        except (KeyError, TypeError, ValueError) as e:
            raise NotifierError("Telegram sendMessage response has no message_id", cause=e) from e
        logger.info("notify.sent", chat_id=self._chat_id, message_id=message_id)
        return MessageHandle(chat_id=self._chat_id, message_id=message_id)

    def edit(self, handle: MessageHandle, text: str) -> None:
        """Replace the text of a previously sent message."""
        self._call(
            "editMessageText",
            {
                "chat_id": handle.chat_id,
                "message_id": handle.message_id,
                "text": text,
                "parse_mode": "HTML",
            },
        )
        logger.info("notify.edited", chat_id=handle.chat_id, message_id=handle.message_id)

    def _call(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self._client.post(f"{self._base_url}/{method}", json=payload)
        except httpx.HTTPError as e:
            logger.error("notify.transport_error", method=method, error=str(e))
            raise NotifierError(f"Telegram {method} failed: {e}", cause=e) from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_error or not body.get("ok", False):
            description = body.get("description") or response.text
            logger.error(
                "notify.rejected",
                method=method,
                status_code=response.status_code,
                description=description,
            )
            raise NotifierError(
                f"Telegram {method} rejected ({response.status_code}): {description}"
            ).with_context(operation=method, status_code=response.status_code)

        return body.get("result") or {}


__all__ = ["TelegramNotifier"]
