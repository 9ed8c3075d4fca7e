"""Cron expression parsing.

Two formats are accepted:

* standard 5-field crontab: ``min hour dom mon dow``
* Quartz-style 6 or 7 fields: ``sec min hour dom mon dow [year]``,
  where ``?`` means "no specific value" (``0 0 1 * * ?`` is 01:00 daily)

Day-of-week values are expanded to weekday names because APScheduler
numbers weekdays from Monday (``0=mon``) while crontab counts from Sunday
(``0=sun``) and Quartz from Sunday as ``1``.
"""

from __future__ import annotations

from datetime import datetime

from apscheduler.triggers.cron import CronTrigger

from dbmaint.core.errors import ScheduleError

_WEEKDAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


def _weekday_names(field: str, *, first: int) -> str:
    """Expand a day-of-week field into a comma-separated list of names.

    *first* is the number that stands for Sunday (0 for crontab, 1 for Quartz).
    Ranges and steps are expanded here because APScheduler counts weekdays
    from Monday, so ``sun-fri`` or ``1-5/2`` would mean something else there.
    """
    if "#" in field or "L" in field.upper():
        raise ScheduleError(f"Unsupported day-of-week syntax: {field!r}")

    def to_index(value: str) -> int:
        if value.lower() in _WEEKDAYS:
            return _WEEKDAYS.index(value.lower())
        if not value.isdigit():
            raise ScheduleError(f"Invalid day-of-week: {value!r}")
        index = int(value) - first
        # crontab allows 7 for Sunday as well as 0
        if first == 0 and index == 7:
            index = 0
        if not 0 <= index < len(_WEEKDAYS):
            raise ScheduleError(f"Day-of-week out of range: {value!r}")
        return index

    names: list[str] = []
    for part in field.split(","):
        values, _, step = part.partition("/")
        if values == "*":
            if not step:
                return "*"
            low, high = 0, len(_WEEKDAYS) - 1
        else:
            bounds = values.split("-")
            if len(bounds) > 2:
                raise ScheduleError(f"Invalid day-of-week range: {part!r}")
            low = to_index(bounds[0])
            if len(bounds) == 2:
                high = to_index(bounds[1])
            else:
                high = len(_WEEKDAYS) - 1 if step else low
        if (step and (not step.isdigit() or int(step) == 0)) or high < low:
            raise ScheduleError(f"Invalid day-of-week range: {part!r}")
        names.extend(_WEEKDAYS[i] for i in range(low, high + 1, int(step or 1)))
    return ",".join(dict.fromkeys(names))


def _day_of_month(field: str) -> str:
    return "last" if field.upper() == "L" else field


def parse_cron(
    expression: str,
    *,
    timezone: str = "UTC",
    start_date: datetime | None = None,
) -> CronTrigger:
    """Build an APScheduler :class:`CronTrigger` from a cron expression.

    Raises:
        ScheduleError: If the expression is malformed.
    """
    fields = expression.split()
    try:
        if len(fields) == 5:
            minute, hour, day, month, dow = fields
            return CronTrigger(
                minute=minute,
                hour=hour,
                day=_day_of_month(day),
                month=month,
                day_of_week=_weekday_names(dow, first=0),
                timezone=timezone,
                start_date=start_date,
            )
        if len(fields) in (6, 7):
            second, minute, hour, day, month, dow = fields[:6]
            year = fields[6] if len(fields) == 7 else None
            day = "*" if day == "?" else _day_of_month(day)
            dow = "*" if dow == "?" else _weekday_names(dow, first=1)
            return CronTrigger(
                year=year,
                month=month,
                day=day,
                day_of_week=dow,
                hour=hour,
                minute=minute,
                second=second,
                timezone=timezone,
                start_date=start_date,
            )
    except ScheduleError as e:
        e.with_context(expression=expression)
        raise
    except (ValueError, TypeError) as e:
        raise ScheduleError(f"Invalid cron expression {expression!r}: {e}", cause=e) from e

    raise ScheduleError(
        f"Invalid cron expression {expression!r}: expected 5, 6 or 7 fields, got {len(fields)}"
    )


__all__ = ["parse_cron"]
