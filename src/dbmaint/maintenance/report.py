"""Operator-facing report rendering (Telegram HTML subset).

Rendering is a pure read of a :class:`~dbmaint.core.models.MaintenanceRun`:
the same run always renders to the same text.

Example report for a compaction run::

    📊 <b>Maintenance Report</b>

    📈 <b>Summary</b>
    • Tables: <code>1</code>
    • Time: <code>3.20</code> sec
    • Space freed: <code>512.00KB</code>

    📋 <b>Table Details</b>

    <pre>
    Table        Before     After      Freed
    --------------------------------------------
    orders         1.00MB 512.00KB   512.00KB
    </pre>

    #dbmaintenance

Tags:
    db-maintenance, report, telegram, html
"""

from __future__ import annotations

import html
from typing import Any

from dbmaint.core.models import (
    CleanupStat,
    JobKind,
    MaintenanceRun,
    ReindexStat,
    StopReason,
    VacuumStat,
)

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")

HASHTAGS = {
    JobKind.VACUUM: "#dbmaintenance",
    JobKind.REINDEX: "#reindex",
    JobKind.CLEANUP: "#cleanup",
}

_ERROR_TITLES = {
    JobKind.VACUUM: "Maintenance Error:",
    JobKind.REINDEX: "REINDEX Error:",
    JobKind.CLEANUP: "Cleanup Error:",
}

_EMPTY_TEXT = {
    JobKind.VACUUM: "No tables require maintenance",
    JobKind.REINDEX: "No tables require reindexing",
}


def format_size(size_bytes: int) -> str:
    """Human-readable size with two decimals (``524288 -> "512.00KB"``).

    Negative values (a table that grew) keep their sign.
    """
    size = float(size_bytes)
    unit = 0
    while abs(size) >= 1024 and unit < len(SIZE_UNITS) - 1:
        size /= 1024
        unit += 1
    return f"{size:.2f}{SIZE_UNITS[unit]}"


def format_number(value: int) -> str:
    """Integer with thousands separators (``237541 -> "237,541"``)."""
    return f"{value:,}"


def _seconds(run: MaintenanceRun) -> str:
    return f"{run.total_elapsed.total_seconds():.2f}"


class RunReporter:
    """Builds started, completed and error messages for each job kind."""

    def started_message(self, job: Any) -> str:
        """Message sent when a run begins.

        ``job`` is a job body; cleanup jobs contribute their retention period.
        """
        kind = JobKind(job.kind)
        if kind is JobKind.VACUUM:
            title = "⚒️ <b>Starting database maintenance</b>"
        elif kind is JobKind.REINDEX:
            title = "🛠️ <b>Starting REINDEX of database tables</b>"
        else:
            months = getattr(job, "retention_months", None)
            suffix = f" (older than {months} months)" if months else ""
            title = f"🧹 <b>Starting cleanup{suffix}</b>"
        return f"{title}\n{HASHTAGS[kind]}"

    def error_message(self, kind: JobKind | str, error: BaseException) -> str:
        kind = JobKind(kind)
        text = html.escape(str(error) or type(error).__name__)
        return f"❌ <b>{_ERROR_TITLES[kind]}</b>\n<code>{text}</code>\n{HASHTAGS[kind]}"

    def render(self, run: MaintenanceRun) -> str:
        """Render the completed-run report for any kind."""
        if run.kind is JobKind.CLEANUP:
            return self._render_cleanup(run)
        if run.tables_processed == 0:
            return f"🟢 <b>{_EMPTY_TEXT[run.kind]}</b>\n{HASHTAGS[run.kind]}"
        if run.kind is JobKind.VACUUM:
            return self._render_vacuum(run)
        return self._render_reindex(run)

    # ------------------------------------------------------------------

    def _render_vacuum(self, run: MaintenanceRun) -> str:
        lines = [
            "📊 <b>Maintenance Report</b>",
            "",
            "📈 <b>Summary</b>",
            f"• Tables: <code>{run.tables_processed}</code>",
            f"• Time: <code>{_seconds(run)}</code> sec",
            f"• Space freed: <code>{format_size(run.total_freed)}</code>",
            "",
            "📋 <b>Table Details</b>",
            "",
            "<pre>",
            "Table        Before     After      Freed",
            "-" * 44,
        ]
        for stat in run.table_stats:
            if not isinstance(stat, VacuumStat):
                continue
            lines.append(
                f"{html.escape(stat.table):<12} {format_size(stat.size_before):>8} "
                f"{format_size(stat.size_after):>8} {format_size(stat.freed):>10}"
            )
        lines += ["</pre>", "", HASHTAGS[JobKind.VACUUM]]
        return "\n".join(lines)

    def _render_reindex(self, run: MaintenanceRun) -> str:
        lines = [
            "📊 <b>REINDEX Completed</b>",
            "",
            "📈 <b>Summary</b>",
            f"• Tables: <code>{run.tables_processed}</code>",
            f"• Time: <code>{_seconds(run)}</code> sec",
            "",
            "📋 <b>Table Details</b>",
            "",
            "<pre>",
            "Table        Time",
            "-" * 18,
        ]
        for stat in run.table_stats:
            if not isinstance(stat, ReindexStat):
                continue
            lines.append(f"{html.escape(stat.table):<12} {stat.duration.total_seconds():.2f} sec")
        lines += ["</pre>", "", HASHTAGS[JobKind.REINDEX]]
        return "\n".join(lines)

    def _render_cleanup(self, run: MaintenanceRun) -> str:
        stat = run.cleanup or CleanupStat(rows_before=0, rows_after=0, total_deleted=0)
        lines = [
            "🧹 <b>Cleanup Completed</b>",
            "",
            "📈 <b>Summary</b>",
            f"• Tables: <code>{run.tables_processed}</code>",
            f"• Time: <code>{_seconds(run)}</code> sec",
            f"• Batches: <code>{stat.batches}</code>",
        ]
        if stat.stop_reason is StopReason.WINDOW_CLOSED:
            lines.append("• Stopped: <code>maintenance window closed</code>")
        lines += [
            "",
            "<pre>",
            "Rows        Before     After      Deleted",
            "-" * 44,
            f"{format_number(stat.rows_before):>12} {format_number(stat.rows_after):>10} "
            f"{format_number(stat.total_deleted):>10}",
            "</pre>",
            "",
            HASHTAGS[JobKind.CLEANUP],
        ]
        return "\n".join(lines)


__all__ = [
    "RunReporter",
    "format_size",
    "format_number",
    "HASHTAGS",
]
