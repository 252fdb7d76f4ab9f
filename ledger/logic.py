import logging
from typing import Sequence

from ledger.errors import IncorrectParamCount, InvalidCategory, MaxTotalExceeded
from ledger.lists import EntryList, IncomeList, Scope, SpendingList
from ledger.models import Entry


logger = logging.getLogger(__name__)

INCOME = "income"
SPENDING = "spending"


def select_list(category: str, incomes: IncomeList, spendings: SpendingList) -> EntryList:
    category = category.strip().lower()
    if category == INCOME:
        return incomes
    if category == SPENDING:
        return spendings
    raise InvalidCategory("Invalid category! Choose from: income, spending")


def add_entry(entries: EntryList, tokens: Sequence[str]) -> Entry:
    """Parse the words of an add command into a new entry of the list's kind.

    A recurring entry that is already behind is caught up at once. When the
    catch-up would pass the ceiling the new entry is taken out again.
    """
    entry = entries.entry_type.from_tokens(tokens, entries.today())
    entries.add(entry)
    if entry.is_recurring:
        try:
            entries.update_recurrence()
        except MaxTotalExceeded:
            # update_recurrence raised before touching the list, so the entry is still last
            entries.remove_at(len(entries))
            raise
    logger.info("Added %s entry of %s", entries.name, entry.amount)
    return entry


def delete_entry(entries: EntryList, index) -> Entry:
    entry = entries.remove_at(index)
    logger.info("Deleted %s entry %s", entries.name, index)
    return entry


def edit_field(entries: EntryList, index, field: str, raw_value: str) -> Entry:
    entry = entries.edit_field(index, field, raw_value)
    logger.info("Edited %s of %s entry %s", field, entries.name, index)
    return entry


def edit_entry(incomes: IncomeList, spendings: SpendingList, args: Sequence[str]) -> Entry:
    """``args`` is ``[<income|spending>, <index>, <field>, <value...>]``."""
    if len(args) < 4:
        raise IncorrectParamCount(
            "Please enter in the form: edit <income|spending> <index> <field> <value>"
        )
    entries = select_list(args[0], incomes, spendings)
    return edit_field(entries, args[1], args[2], " ".join(args[3:]))


def set_budget(spendings: SpendingList, args: Sequence[str]) -> Scope:
    """``args`` is ``[<daily|monthly|yearly>, <amount>]``."""
    if len(args) != 2:
        raise IncorrectParamCount("Please enter in the form: budget <daily|monthly|yearly> <amount>")
    scope = Scope.parse(args[0])
    spendings.set_budget(scope, args[1])
    logger.info("Set %s budget to %s", scope.value, spendings.budgets[scope])
    return scope


def refresh(incomes: IncomeList, spendings: SpendingList) -> int:
    """Catch up recurring entries in both lists; returns how many were created.

    Each list is refreshed even when the other one fails; the first failure
    is raised afterwards.
    """
    created = 0
    failure = None
    for entries in (incomes, spendings):
        try:
            created += len(entries.update_recurrence())
        except MaxTotalExceeded as e:
            logger.warning("Recurring %s not caught up: %s", entries.name, e)
            failure = failure or e
    if created:
        logger.info("Recurrence refresh created %d entries", created)
    if failure is not None:
        raise failure
    return created
