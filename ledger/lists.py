from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Callable, Iterator, Optional

from ledger import config
from ledger.errors import IndexNotInteger, IndexOutOfBounds, InvalidCategory, InvalidField, MaxTotalExceeded
from ledger.models import Entry, Income, Spending, parse_amount, to_cents
from ledger.recurrence import plan_recurrence


logger = logging.getLogger(__name__)

Clock = Callable[[], date]

AMOUNT_FIELD = "amount"
DESCRIPTION_FIELD = "description"
DATE_FIELD = "date"
TAG_FIELD = "tag"


class Scope(str, Enum):
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, raw: str) -> Scope:
        try:
            return cls(raw.strip().lower())
        except ValueError:
            raise InvalidCategory("Invalid period! Choose from: daily, monthly, yearly") from None

    def contains(self, d: date, reference: date) -> bool:
        if self is Scope.DAILY:
            return d == reference
        if self is Scope.MONTHLY:
            return d.year == reference.year and d.month == reference.month
        return d.year == reference.year


@dataclass(frozen=True)
class Overspend:
    scope: Scope
    amount: Decimal


class EntryList:
    """Ordered entries of one kind with an incrementally kept total.

    ``total`` always equals the sum of member amounts. Every mutation moves
    it by the changed amount and checks it against ``max_total`` before any
    state is touched.
    """
    entry_type: type[Entry] = Entry
    name = "entries"

    def __init__(self, entries=(), clock: Clock = date.today, max_total=None):
        self.clock = clock
        self.max_total = parse_amount(config.MAX_TOTAL if max_total is None else max_total)
        self._entries: list[Entry] = list(entries)
        self._total = Decimal("0.00")
        self.reconcile()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    def __getitem__(self, position: int) -> Entry:
        return self._entries[position]

    @property
    def total(self) -> Decimal:
        return self._total

    @total.setter
    def total(self, value):
        self._total = to_cents(value)

    def reconcile(self) -> Decimal:
        """Recompute ``total`` from the members. Only for freshly loaded lists."""
        self._total = sum((e.amount for e in self._entries), Decimal("0.00"))
        return self._total

    def check_total(self, new_total: Decimal):
        if new_total > self.max_total:
            logger.info("Rejected change to %s: total %s above %s", self.name, new_total, self.max_total)
            raise MaxTotalExceeded()

    def resolve(self, raw_index) -> Entry:
        return self._entries[self.position(raw_index)]

    def position(self, raw_index) -> int:
        """Zero-based position of a 1-based index typed by the user."""
        try:
            index = int(str(raw_index).strip())
        except ValueError:
            raise IndexNotInteger() from None
        if not 1 <= index <= len(self._entries):
            raise IndexOutOfBounds()
        return index - 1

    def add(self, entry: Entry):
        new_total = self._total + entry.amount
        self.check_total(new_total)
        self._entries.append(entry)
        self.total = new_total
        logger.debug("Added %s to %s", entry, self.name)

    def remove_at(self, raw_index) -> Entry:
        position = self.position(raw_index)
        entry = self._entries.pop(position)
        self.total = self._total - entry.amount
        logger.debug("Removed %s from %s", entry, self.name)
        return entry

    def edit_field(self, index, field: str, raw_value: str) -> Entry:
        """Change one field of the entry at a 1-based ``index``.

        Amount edits move ``total`` by the difference and are rejected,
        leaving everything untouched, when the new total would pass the ceiling.
        """
        entry = self.resolve(index)
        field = field.strip().lower()

        if field == AMOUNT_FIELD:
            new_amount = parse_amount(raw_value)
            new_total = self._total + new_amount - entry.amount
            self.check_total(new_total)
            self.total = new_total
            entry.amount = new_amount
        elif field == DESCRIPTION_FIELD:
            entry.edit_description(raw_value)
        elif field == DATE_FIELD:
            entry.edit_date(raw_value)
        elif field == TAG_FIELD:
            entry.edit_tag(raw_value)
        else:
            raise InvalidField()
        return entry

    def today(self) -> date:
        return self.clock()

    def update_recurrence(self) -> list[Entry]:
        """Create the entries every recurring template has missed up to today.

        Either all missed entries are added or, when they would push the total
        past ``max_total``, none are.
        """
        today = self.today()
        plan = plan_recurrence(self._entries, today)
        if plan.instances:
            new_total = self._total + sum((e.amount for e in plan.instances), Decimal("0.00"))
            self.check_total(new_total)
            self._entries.extend(plan.instances)
            self.total = new_total
            for template, marker in plan.markers:
                template.last_recurrence = marker
            logger.info("Created %d recurring %s up to %s", len(plan.instances), self.name, today)
        self._entries.sort(key=lambda e: e.date)
        return plan.instances

    def total_for(self, scope: Scope, reference: Optional[date] = None) -> Decimal:
        reference = reference or self.today()
        return sum(
            (e.amount for e in self._entries if scope.contains(e.date, reference)),
            Decimal("0.00"),
        )

    def daily_total(self, reference: Optional[date] = None) -> Decimal:
        return self.total_for(Scope.DAILY, reference)

    def monthly_total(self, reference: Optional[date] = None) -> Decimal:
        return self.total_for(Scope.MONTHLY, reference)

    def yearly_total(self, reference: Optional[date] = None) -> Decimal:
        return self.total_for(Scope.YEARLY, reference)


class IncomeList(EntryList):
    entry_type = Income
    name = "income"


class SpendingList(EntryList):
    """Spendings plus the daily, monthly and yearly budgets. A budget of 0 is unset."""
    entry_type = Spending
    name = "spending"

    def __init__(self, entries=(), clock: Clock = date.today, max_total=None):
        super().__init__(entries, clock, max_total)
        self.budgets = {scope: Decimal("0.00") for scope in Scope}

    @property
    def daily_budget(self) -> Decimal:
        return self.budgets[Scope.DAILY]

    @property
    def monthly_budget(self) -> Decimal:
        return self.budgets[Scope.MONTHLY]

    @property
    def yearly_budget(self) -> Decimal:
        return self.budgets[Scope.YEARLY]

    def set_budget(self, scope: Scope, value):
        self.budgets[scope] = parse_amount(value)

    def set_daily_budget(self, value):
        self.set_budget(Scope.DAILY, value)

    def set_monthly_budget(self, value):
        self.set_budget(Scope.MONTHLY, value)

    def set_yearly_budget(self, value):
        self.set_budget(Scope.YEARLY, value)

    def daily_spending(self, reference: Optional[date] = None) -> Decimal:
        return self.daily_total(reference)

    def monthly_spending(self, reference: Optional[date] = None) -> Decimal:
        return self.monthly_total(reference)

    def yearly_spending(self, reference: Optional[date] = None) -> Decimal:
        return self.yearly_total(reference)

    def check_overspend(self, reference: Optional[date] = None) -> list[Overspend]:
        """Every scope whose budget is set and already exceeded, with the overage."""
        reference = reference or self.today()
        overspends = []
        for scope, budget in self.budgets.items():
            if budget <= 0:
                continue
            left = budget - self.total_for(scope, reference)
            if left < 0:
                overspends.append(Overspend(scope, -left))
        return overspends
