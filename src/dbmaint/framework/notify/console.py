"""Console notifier for development and dry runs."""

from __future__ import annotations

import html
import itertools
import re
import sys
import threading
from typing import TextIO

from dbmaint.framework.notify.protocol import MessageHandle

_TAG_RE = re.compile(r"</?(?:b|i|code|pre)>")


class ConsoleNotifier:
    """
    Console output channel.

    Prints messages to *stream* with the HTML markup stripped. Edits are
    printed as a new block tagged with the original message id.
    """

    def __init__(self, stream: TextIO | None = None, chat_id: str = "console"):
        self._stream = stream or sys.stdout
        self._chat_id = chat_id
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def send(self, text: str) -> MessageHandle:
        with self._lock:
            message_id = next(self._ids)
            self._write(f"[#{message_id}]", text)
        return MessageHandle(chat_id=self._chat_id, message_id=message_id)

    def edit(self, handle: MessageHandle, text: str) -> None:
        with self._lock:
            self._write(f"[#{handle.message_id} edited]", text)

    def _write(self, prefix: str, text: str) -> None:
        plain = html.unescape(_TAG_RE.sub("", text))
        print(prefix, file=self._stream)
        print(plain.rstrip(), file=self._stream)
        print(file=self._stream)


__all__ = ["ConsoleNotifier"]
