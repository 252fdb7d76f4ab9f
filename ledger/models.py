from __future__ import annotations
import re
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Optional, Sequence

from ledger.errors import (
    EmptyDescription, EmptyField, IncorrectParamCount, InvalidAmount, InvalidDate, InvalidInput
)


CENTS = Decimal("0.01")

DATE_MARKER = re.compile(r"/([^/]*)/")
TAG_MARKER = re.compile(r"\*([^*]*)\*")
FREQUENCY_MARKER = re.compile(r"~([^~]*)~")


class Frequency(str, Enum):
    NONE = "none"
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"


def to_cents(value) -> Decimal:
    """Round to two decimal places, half-up."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_amount(raw) -> Decimal:
    try:
        amount = Decimal(str(raw).strip())
        if not amount.is_finite() or amount < 0:
            raise InvalidAmount()
        # abs() turns "-0" into 0.00
        return to_cents(abs(amount))
    except InvalidOperation:
        raise InvalidAmount() from None


def parse_date(raw) -> date:
    try:
        return date.fromisoformat(str(raw).strip())
    except ValueError:
        raise InvalidDate() from None


def parse_frequency(raw: str) -> Frequency:
    try:
        return Frequency(raw.strip().lower())
    except ValueError:
        raise InvalidInput("Invalid frequency! Choose from: daily, monthly, yearly") from None


def require_text(raw: str) -> str:
    text = raw.strip() if raw is not None else ""
    if not text:
        raise EmptyField()
    return text


@dataclass
class Entry:
    """One income or spending record.

    An entry with a frequency other than NONE is a recurrence template and
    carries ``last_recurrence``, the date of the newest period that already
    has an entry. The instances the recurrence engine creates from a template
    never recur themselves.
    """
    amount: Decimal
    description: str
    date: date
    tag: str = ""
    frequency: Frequency = Frequency.NONE
    last_recurrence: Optional[date] = None

    def __post_init__(self):
        self.amount = to_cents(self.amount)
        self.frequency = Frequency(self.frequency)
        if self.frequency is Frequency.NONE:
            self.last_recurrence = None
        elif self.last_recurrence is None:
            self.last_recurrence = self.date

    @property
    def is_recurring(self) -> bool:
        return self.last_recurrence is not None

    @classmethod
    def from_tokens(cls, tokens: Sequence[str], today: date) -> Entry:
        """Build an entry from the words of an add command.

        Syntax: ``<amount> <description...> [/YYYY-MM-DD/] [*tag*] [~frequency~]``

        Markers only count as whole words, so ``a/b/c`` stays in the description.
        A recurring entry cannot start after ``today``.
        """
        entry_date = today
        tag = ""
        frequency = Frequency.NONE
        words = []
        for token in tokens:
            date_match = DATE_MARKER.fullmatch(token)
            tag_match = TAG_MARKER.fullmatch(token)
            frequency_match = FREQUENCY_MARKER.fullmatch(token)
            if date_match:
                entry_date = parse_date(date_match.group(1))
            elif tag_match:
                tag = tag_match.group(1).strip()
                if not tag:
                    raise InvalidInput("Tag cannot be empty")
            elif frequency_match:
                frequency = parse_frequency(frequency_match.group(1))
            else:
                words.append(token)

        if not words:
            raise IncorrectParamCount("Missing amount and description")
        amount = parse_amount(words[0])
        description = " ".join(words[1:])
        if not description:
            raise EmptyDescription()
        if frequency is not Frequency.NONE and entry_date > today:
            raise InvalidDate("Recurring entries cannot start in the future")

        return cls(
            amount=amount,
            description=description,
            date=entry_date,
            tag=tag,
            frequency=frequency,
        )

    def materialize(self, on: date) -> Entry:
        """A non-recurring copy of this entry dated ``on``."""
        return replace(self, date=on, frequency=Frequency.NONE, last_recurrence=None)

    def edit_amount(self, raw: str):
        self.amount = parse_amount(raw)

    def edit_description(self, raw: str):
        self.description = require_text(raw)

    def edit_date(self, raw: str):
        self.date = parse_date(raw)

    def edit_tag(self, raw: str):
        self.tag = require_text(raw)


class Income(Entry):
    pass


class Spending(Entry):
    pass
