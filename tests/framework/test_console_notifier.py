"""Tests for the console notifier."""

from __future__ import annotations

import io

from dbmaint.framework.notify import ConsoleNotifier, MessageHandle


class TestConsoleNotifier:
    def test_ids_are_sequential(self):
        notifier = ConsoleNotifier(io.StringIO())
        first = notifier.send("a")
        second = notifier.send("b")
        assert first == MessageHandle(chat_id="console", message_id=1)
        assert second.message_id == 2

    def test_markup_stripped(self):
        stream = io.StringIO()
        ConsoleNotifier(stream).send("🧹 <b>Cleanup Completed</b>\n<pre>a &lt;b&gt; &amp; &quot;c&quot;</pre>")
        assert stream.getvalue() == '[#1]\n🧹 Cleanup Completed\na <b> & "c"\n\n'

    def test_edit_tagged_with_original_id(self):
        stream = io.StringIO()
        notifier = ConsoleNotifier(stream)
        handle = notifier.send("started")
        notifier.edit(handle, "<b>done</b>")
        assert stream.getvalue().endswith("[#1 edited]\ndone\n\n")
