"""
Notifier protocol and message handle.

A run sends one status message when it starts and edits that same
message when it finishes. The :class:`MessageHandle` returned by
``send`` is a plain value threaded through the run; notifiers never
remember "the last message", so concurrent runs cannot clobber each
other's messages.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class MessageHandle:
    """Identifies a delivered message for later edits."""

    chat_id: int | str
    message_id: int


@runtime_checkable
class Notifier(Protocol):
    """
    Protocol for operator notification channels.

    Implementations must provide:
    - send(): deliver a new message and return its handle
    - edit(): replace the text of a previously sent message
    """

    def send(self, text: str) -> MessageHandle:
        """Send *text* (Telegram-flavoured HTML)."""
        ...

    def edit(self, handle: MessageHandle, text: str) -> None:
        """Replace the text of the message identified by *handle*."""
        ...


__all__ = [
    "MessageHandle",
    "Notifier",
]
