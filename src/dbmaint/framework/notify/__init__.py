"""
Operator notification package.

Provides the notifier protocol, the message handle value type and the
Telegram and console implementations.
"""

from dbmaint.framework.notify.console import ConsoleNotifier
from dbmaint.framework.notify.protocol import MessageHandle, Notifier
from dbmaint.framework.notify.telegram import TelegramNotifier

__all__ = [
    "MessageHandle",
    "Notifier",
    "ConsoleNotifier",
    "TelegramNotifier",
]
