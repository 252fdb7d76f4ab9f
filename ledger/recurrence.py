"""Catching up recurring entries.

Every frequency is described by a :class:`Period`, which knows how to step a
date forward by one period and how to number the period a date falls in.
Daily, monthly and yearly recurrence all run through :func:`due_dates`.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Callable

from dateutil.relativedelta import relativedelta

from ledger.models import Entry, Frequency


@dataclass(frozen=True)
class Period:
    name: str
    step: relativedelta
    numbering: Callable[[date], int]

    def add(self, d: date, count: int = 1) -> date:
        return d + self.step * count

    def index(self, d: date) -> int:
        return self.numbering(d)


DAILY = Period("daily", relativedelta(days=1), lambda d: d.toordinal())
MONTHLY = Period("monthly", relativedelta(months=1), lambda d: d.year * 12 + d.month)
YEARLY = Period("yearly", relativedelta(years=1), lambda d: d.year)

PERIODS = {
    Frequency.DAILY: DAILY,
    Frequency.MONTHLY: MONTHLY,
    Frequency.YEARLY: YEARLY,
}


def period_for(entry: Entry) -> Period | None:
    if not entry.is_recurring:
        return None
    return PERIODS.get(entry.frequency)


def due_dates(template: Entry, today: date) -> list[date]:
    """Dates of the periods after ``template.last_recurrence`` up to ``today``."""
    period = period_for(template)
    if period is None:
        return []

    last = template.last_recurrence
    if period.index(today) <= period.index(last):
        return []

    dates = []
    check_date = period.add(last)
    while check_date <= today:
        dates.append(check_date)
        check_date = period.add(check_date)
    return dates


@dataclass
class RecurrencePlan:
    """Instances to create and the marker each template moves to."""
    instances: list[Entry]
    markers: list[tuple[Entry, date]]


def plan_recurrence(entries: list[Entry], today: date) -> RecurrencePlan:
    plan = RecurrencePlan([], [])
    for template in entries:
        dates = due_dates(template, today)
        if not dates:
            continue
        plan.instances.extend(template.materialize(d) for d in dates)
        plan.markers.append((template, dates[-1]))
    return plan
