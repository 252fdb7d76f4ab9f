import io
import unittest
from dataclasses import replace
from datetime import date
from decimal import Decimal
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

from ledger.cli import LedgerCLI
from ledger.config import Settings, load_settings
from ledger.errors import (
    EmptyDescription, EmptyField, IncorrectParamCount, IndexNotInteger, IndexOutOfBounds,
    InvalidAmount, InvalidCategory, InvalidDate, InvalidField, InvalidInput, LedgerError,
    MaxTotalExceeded, StorageError
)
from ledger.lists import IncomeList, Overspend, Scope, SpendingList
from ledger.logic import add_entry, delete_entry, edit_entry, edit_field, refresh, select_list, set_budget
from ledger.main import load_or_start, login, save_on_exit
from ledger.models import Frequency, Income, Spending, parse_amount
from ledger.recurrence import DAILY, MONTHLY, YEARLY, due_dates
from ledger.storage import (
    check_password, create_password, list_save_files, load_data, load_password_hash, save_data
)


def fixed(day: date):
    return lambda: day


class TestEntry(unittest.TestCase):
    def test_entry_creation(self):
        """Test Entry dataclass normalisation"""
        entry = Spending(Decimal("12.5"), "Lunch", date(2023, 1, 15))
        self.assertEqual(entry.amount, Decimal("12.50"))
        self.assertEqual(entry.tag, "")
        self.assertEqual(entry.frequency, Frequency.NONE)
        self.assertIsNone(entry.last_recurrence)
        self.assertFalse(entry.is_recurring)

    def test_recurring_entry_starts_at_its_date(self):
        entry = Income(Decimal("100"), "Salary", date(2023, 1, 15), frequency="monthly")
        self.assertEqual(entry.frequency, Frequency.MONTHLY)
        self.assertEqual(entry.last_recurrence, date(2023, 1, 15))
        self.assertTrue(entry.is_recurring)

    def test_from_tokens_full_syntax(self):
        """Test parsing every optional marker of an add command"""
        tokens = "10 lunch with bob /2023-05-01/ *food* ~monthly~".split()
        entry = Spending.from_tokens(tokens, date(2023, 6, 1))
        self.assertIsInstance(entry, Spending)
        self.assertEqual(entry.amount, Decimal("10.00"))
        self.assertEqual(entry.description, "lunch with bob")
        self.assertEqual(entry.date, date(2023, 5, 1))
        self.assertEqual(entry.tag, "food")
        self.assertEqual(entry.frequency, Frequency.MONTHLY)
        self.assertEqual(entry.last_recurrence, date(2023, 5, 1))

    def test_from_tokens_defaults_to_today(self):
        entry = Income.from_tokens(["25.555", "refund"], date(2023, 6, 1))
        self.assertEqual(entry.date, date(2023, 6, 1))
        self.assertEqual(entry.amount, Decimal("25.56"))
        self.assertFalse(entry.is_recurring)

    def test_from_tokens_rejects_bad_input(self):
        today = date(2023, 6, 1)
        with self.assertRaises(EmptyDescription):
            Spending.from_tokens(["10"], today)
        with self.assertRaises(EmptyDescription):
            Spending.from_tokens(["10", "*food*"], today)
        with self.assertRaises(InvalidAmount):
            Spending.from_tokens(["abc", "lunch"], today)
        with self.assertRaises(InvalidAmount):
            Spending.from_tokens(["-5", "lunch"], today)
        with self.assertRaises(InvalidDate):
            Spending.from_tokens(["5", "lunch", "/2023-13-01/"], today)
        with self.assertRaises(InvalidInput):
            Spending.from_tokens(["5", "lunch", "~weekly~"], today)
        with self.assertRaises(IncorrectParamCount):
            Spending.from_tokens([], today)

    def test_markers_must_be_whole_words(self):
        """Slashes inside a description are not a date marker"""
        today = date(2023, 6, 1)
        entry = Spending.from_tokens(["10", "a/b/c"], today)
        self.assertEqual(entry.description, "a/b/c")
        self.assertEqual(entry.date, today)

        entry = Spending.from_tokens("12 50/50 split *shared* /2023-05-02/".split(), today)
        self.assertEqual(entry.description, "50/50 split")
        self.assertEqual(entry.tag, "shared")
        self.assertEqual(entry.date, date(2023, 5, 2))

    def test_recurring_entry_cannot_start_in_future(self):
        today = date(2023, 6, 1)
        with self.assertRaises(InvalidDate):
            Income.from_tokens(["100", "Salary", "/2023-07-01/", "~monthly~"], today)
        entry = Income.from_tokens(["100", "Salary", "/2023-07-01/"], today)
        self.assertEqual(entry.date, date(2023, 7, 1))
        entry = Income.from_tokens(["100", "Salary", "/2023-06-01/", "~monthly~"], today)
        self.assertEqual(entry.last_recurrence, today)

    def test_negative_zero_amount(self):
        self.assertEqual(str(parse_amount("-0")), "0.00")
        self.assertEqual(str(Spending.from_tokens(["-0.00", "Free"], date(2023, 6, 1)).amount), "0.00")

    def test_mutators(self):
        entry = Spending(Decimal("5"), "Coffee", date(2023, 1, 1))
        entry.edit_amount("7.499")
        self.assertEqual(entry.amount, Decimal("7.50"))
        entry.edit_date("2023-02-03")
        self.assertEqual(entry.date, date(2023, 2, 3))
        entry.edit_description("  Tea ")
        self.assertEqual(entry.description, "Tea")
        entry.edit_tag("drinks")
        self.assertEqual(entry.tag, "drinks")

        with self.assertRaises(InvalidAmount):
            entry.edit_amount("nan")
        with self.assertRaises(InvalidAmount):
            entry.edit_amount("-1")
        with self.assertRaises(InvalidDate):
            entry.edit_date("03/02/2023")
        with self.assertRaises(EmptyField):
            entry.edit_description("   ")
        with self.assertRaises(EmptyField):
            entry.edit_tag("")
        self.assertEqual(entry.amount, Decimal("7.50"))

    def test_materialized_copy_does_not_recur(self):
        template = Spending(Decimal("9"), "Gym", date(2023, 1, 1), tag="health", frequency=Frequency.MONTHLY)
        copy = template.materialize(date(2023, 2, 1))
        self.assertIsInstance(copy, Spending)
        self.assertEqual(copy.amount, template.amount)
        self.assertEqual(copy.tag, "health")
        self.assertEqual(copy.date, date(2023, 2, 1))
        self.assertFalse(copy.is_recurring)
        self.assertEqual(template.date, date(2023, 1, 1))


class TestRecurrence(unittest.TestCase):
    def test_periods(self):
        self.assertEqual(MONTHLY.add(date(2023, 1, 31)), date(2023, 2, 28))
        self.assertEqual(YEARLY.add(date(2020, 2, 29)), date(2021, 2, 28))
        self.assertEqual(DAILY.add(date(2023, 12, 31)), date(2024, 1, 1))
        self.assertEqual(MONTHLY.index(date(2023, 4, 20)), 2023 * 12 + 4)
        self.assertEqual(YEARLY.index(date(2023, 4, 20)), 2023)

    def test_monthly_catch_up(self):
        """Three missed months are created and the marker moves to the last one"""
        spendings = SpendingList(clock=fixed(date(2023, 4, 20)))
        template = Spending(Decimal("10"), "Rent", date(2023, 1, 15), frequency=Frequency.MONTHLY)
        spendings.add(template)

        created = spendings.update_recurrence()

        self.assertEqual([e.date for e in created],
                         [date(2023, 2, 15), date(2023, 3, 15), date(2023, 4, 15)])
        self.assertEqual(len(spendings), 4)
        self.assertEqual(template.last_recurrence, date(2023, 4, 15))
        self.assertTrue(all(not e.is_recurring for e in created))
        self.assertEqual(spendings.total, Decimal("40.00"))

    def test_recurrence_is_idempotent(self):
        spendings = SpendingList(clock=fixed(date(2023, 4, 20)))
        spendings.add(Spending(Decimal("10"), "Rent", date(2023, 1, 15), frequency=Frequency.MONTHLY))
        spendings.update_recurrence()

        self.assertEqual(spendings.update_recurrence(), [])
        self.assertEqual(len(spendings), 4)
        self.assertEqual(spendings.total, Decimal("40.00"))

    def test_month_end_follows_calendar_addition(self):
        template = Spending(Decimal("1"), "Phone", date(2023, 1, 31), frequency=Frequency.MONTHLY)
        self.assertEqual(due_dates(template, date(2023, 4, 30)),
                         [date(2023, 2, 28), date(2023, 3, 28), date(2023, 4, 28)])

    def test_yearly_from_leap_day(self):
        incomes = IncomeList(clock=fixed(date(2023, 3, 1)))
        template = Income(Decimal("100"), "Bonus", date(2020, 2, 29), frequency=Frequency.YEARLY)
        incomes.add(template)

        created = incomes.update_recurrence()

        self.assertEqual([e.date for e in created],
                         [date(2021, 2, 28), date(2022, 2, 28), date(2023, 2, 28)])
        self.assertEqual(template.last_recurrence, date(2023, 2, 28))

    def test_daily(self):
        template = Spending(Decimal("3"), "Coffee", date(2023, 1, 1), frequency=Frequency.DAILY)
        self.assertEqual(due_dates(template, date(2023, 1, 4)),
                         [date(2023, 1, 2), date(2023, 1, 3), date(2023, 1, 4)])

    def test_new_month_before_due_day(self):
        """A new period that has not reached the due day creates nothing"""
        spendings = SpendingList(clock=fixed(date(2023, 2, 10)))
        template = Spending(Decimal("10"), "Rent", date(2023, 1, 20), frequency=Frequency.MONTHLY)
        spendings.add(template)

        self.assertEqual(spendings.update_recurrence(), [])
        self.assertEqual(template.last_recurrence, date(2023, 1, 20))

    def test_non_recurring_and_future_entries_skipped(self):
        today = date(2023, 4, 20)
        self.assertEqual(due_dates(Spending(Decimal("1"), "Once", date(2022, 1, 1)), today), [])
        future = Spending(Decimal("1"), "Later", date(2023, 6, 1), frequency=Frequency.MONTHLY)
        self.assertEqual(due_dates(future, today), [])

    def test_many_periods_behind(self):
        template = Spending(Decimal("1"), "Stream", date(2020, 1, 5), frequency=Frequency.MONTHLY)
        dates = due_dates(template, date(2023, 1, 5))
        self.assertEqual(len(dates), 36)
        self.assertEqual(dates[-1], date(2023, 1, 5))

    def test_list_sorted_by_date_after_refresh(self):
        incomes = IncomeList(clock=fixed(date(2023, 4, 20)))
        incomes.add(Income(Decimal("5"), "Gift", date(2023, 3, 1)))
        incomes.add(Income(Decimal("100"), "Salary", date(2023, 1, 15), frequency=Frequency.MONTHLY))

        incomes.update_recurrence()

        dates = [e.date for e in incomes]
        self.assertEqual(dates, sorted(dates))
        self.assertEqual(dates[0], date(2023, 1, 15))
        self.assertEqual(len(incomes), 5)

    def test_recurrence_over_ceiling_changes_nothing(self):
        spendings = SpendingList(clock=fixed(date(2023, 4, 20)), max_total=25)
        template = Spending(Decimal("10"), "Rent", date(2023, 1, 15), frequency=Frequency.MONTHLY)
        spendings.add(template)

        with self.assertRaises(MaxTotalExceeded):
            spendings.update_recurrence()
        self.assertEqual(len(spendings), 1)
        self.assertEqual(spendings.total, Decimal("10.00"))
        self.assertEqual(template.last_recurrence, date(2023, 1, 15))


class TestEntryList(unittest.TestCase):
    def setUp(self):
        self.spendings = SpendingList(clock=fixed(date(2023, 4, 20)), max_total=10000)
        self.spendings.add(Spending(Decimal("9985"), "Car", date(2023, 4, 1)))
        self.spendings.add(Spending(Decimal("5"), "Snack", date(2023, 4, 20)))

    def test_edit_over_ceiling_rejected(self):
        """Raising an amount past the ceiling leaves entry and total alone"""
        self.assertEqual(self.spendings.total, Decimal("9990"))
        with self.assertRaises(MaxTotalExceeded):
            self.spendings.edit_field("2", "amount", "20")
        self.assertEqual(self.spendings.total, Decimal("9990"))
        self.assertEqual(self.spendings[1].amount, Decimal("5"))

    def test_edit_up_to_ceiling_accepted(self):
        self.spendings.edit_field("2", "amount", "15")
        self.assertEqual(self.spendings.total, Decimal("10000"))
        self.assertEqual(self.spendings[1].amount, Decimal("15"))

    def test_edit_other_fields(self):
        self.spendings.edit_field("1", "description", "New car")
        self.spendings.edit_field("1", "date", "2023-03-31")
        self.spendings.edit_field("1", "tag", "transport")
        entry = self.spendings[0]
        self.assertEqual((entry.description, entry.date, entry.tag),
                         ("New car", date(2023, 3, 31), "transport"))
        with self.assertRaises(EmptyField):
            self.spendings.edit_field("1", "tag", " ")
        with self.assertRaises(InvalidDate):
            self.spendings.edit_field("1", "date", "yesterday")
        with self.assertRaises(InvalidAmount):
            self.spendings.edit_field("1", "amount", "lots")
        self.assertEqual(self.spendings.total, Decimal("9990"))

    def test_bad_index_and_field(self):
        with self.assertRaises(IndexOutOfBounds):
            self.spendings.edit_field("0", "amount", "1")
        with self.assertRaises(IndexOutOfBounds):
            self.spendings.edit_field(str(len(self.spendings) + 1), "amount", "1")
        with self.assertRaises(IndexNotInteger):
            self.spendings.edit_field("one", "amount", "1")
        with self.assertRaises(InvalidField):
            self.spendings.edit_field("1", "colour", "red")
        with self.assertRaises(IndexOutOfBounds):
            self.spendings.remove_at("3")

    def test_add_over_ceiling_rejected(self):
        with self.assertRaises(MaxTotalExceeded):
            self.spendings.add(Spending(Decimal("10.01"), "Too much", date(2023, 4, 20)))
        self.assertEqual(len(self.spendings), 2)
        self.assertEqual(self.spendings.total, Decimal("9990"))

    def test_total_follows_every_mutation(self):
        incomes = IncomeList(clock=fixed(date(2023, 4, 20)))
        add_entry(incomes, ["100.10", "Salary"])
        add_entry(incomes, ["20.05", "Gift"])
        add_entry(incomes, ["3.333", "Interest"])
        edit_field(incomes, "2", "amount", "25")
        delete_entry(incomes, "1")
        add_entry(incomes, ["0", "Nothing"])
        edit_field(incomes, "1", "amount", "30.5")

        self.assertEqual(incomes.total, sum(e.amount for e in incomes))
        self.assertEqual(incomes.total, Decimal("33.83"))

    def test_period_totals(self):
        spendings = SpendingList(clock=fixed(date(2024, 2, 29)))
        spendings.add(Spending(Decimal("10"), "Leap", date(2024, 2, 29)))
        spendings.add(Spending(Decimal("20"), "Early", date(2024, 2, 1)))
        spendings.add(Spending(Decimal("40"), "March", date(2024, 3, 1)))
        spendings.add(Spending(Decimal("80"), "Last year", date(2023, 2, 28)))

        self.assertEqual(spendings.daily_spending(), Decimal("10"))
        self.assertEqual(spendings.monthly_spending(), Decimal("30"))
        self.assertEqual(spendings.yearly_spending(), Decimal("70"))
        self.assertEqual(spendings.monthly_total(date(2023, 2, 1)), Decimal("80"))
        self.assertEqual(spendings.total_for(Scope.DAILY, date(2024, 3, 1)), Decimal("40"))

    def test_budgets_rounded(self):
        spendings = SpendingList()
        spendings.set_daily_budget("12.345")
        spendings.set_monthly_budget(12.344)
        spendings.set_yearly_budget(Decimal("1321"))
        self.assertEqual(spendings.daily_budget, Decimal("12.35"))
        self.assertEqual(spendings.monthly_budget, Decimal("12.34"))
        self.assertEqual(spendings.yearly_budget, Decimal("1321.00"))
        with self.assertRaises(InvalidAmount):
            spendings.set_daily_budget("-1")

    def test_overspend(self):
        """Daily overage reported until the daily budget is cleared"""
        spendings = SpendingList(clock=fixed(date(2023, 4, 20)))
        spendings.add(Spending(Decimal("25"), "Lunch", date(2023, 4, 20)))
        spendings.add(Spending(Decimal("35"), "Dinner", date(2023, 4, 20)))
        spendings.set_daily_budget(50)
        spendings.set_monthly_budget(1000)

        self.assertEqual(spendings.check_overspend(), [Overspend(Scope.DAILY, Decimal("10"))])

        spendings.set_daily_budget(0)
        self.assertEqual(spendings.check_overspend(), [])

    def test_overspend_several_scopes(self):
        spendings = SpendingList(clock=fixed(date(2023, 4, 20)))
        spendings.add(Spending(Decimal("60"), "Shoes", date(2023, 4, 20)))
        spendings.add(Spending(Decimal("100"), "Jacket", date(2023, 1, 2)))
        spendings.set_daily_budget(50)
        spendings.set_yearly_budget(150)

        self.assertEqual(spendings.check_overspend(), [
            Overspend(Scope.DAILY, Decimal("10")),
            Overspend(Scope.YEARLY, Decimal("10")),
        ])


class TestLogic(unittest.TestCase):
    def setUp(self):
        clock = fixed(date(2023, 4, 20))
        self.incomes = IncomeList(clock=clock)
        self.spendings = SpendingList(clock=clock)

    def test_select_list(self):
        self.assertIs(select_list("Income", self.incomes, self.spendings), self.incomes)
        self.assertIs(select_list("spending", self.incomes, self.spendings), self.spendings)
        with self.assertRaises(InvalidCategory):
            select_list("savings", self.incomes, self.spendings)

    def test_add_entry_uses_list_kind(self):
        entry = add_entry(self.spendings, ["4.20", "Bus", "*transport*"])
        self.assertIsInstance(entry, Spending)
        self.assertEqual(entry.date, date(2023, 4, 20))
        self.assertEqual(self.spendings.total, Decimal("4.20"))

    def test_edit_entry(self):
        add_entry(self.incomes, ["10", "Gift"])
        edit_entry(self.incomes, self.spendings, ["income", "1", "description", "Birthday", "gift"])
        self.assertEqual(self.incomes[0].description, "Birthday gift")
        with self.assertRaises(IncorrectParamCount):
            edit_entry(self.incomes, self.spendings, ["income", "1", "amount"])
        with self.assertRaises(InvalidCategory):
            edit_entry(self.incomes, self.spendings, ["savings", "1", "amount", "5"])

    def test_set_budget(self):
        self.assertEqual(set_budget(self.spendings, ["monthly", "1321"]), Scope.MONTHLY)
        self.assertEqual(self.spendings.monthly_budget, Decimal("1321"))
        with self.assertRaises(IncorrectParamCount):
            set_budget(self.spendings, ["daily"])
        with self.assertRaises(InvalidCategory):
            set_budget(self.spendings, ["weekly", "1"])
        with self.assertRaises(InvalidAmount):
            set_budget(self.spendings, ["yearly", "abc"])

    def test_refresh_both_lists(self):
        self.incomes.add(Income(Decimal("100"), "Salary", date(2023, 2, 1), frequency=Frequency.MONTHLY))
        self.spendings.add(Spending(Decimal("50"), "Insurance", date(2022, 4, 20), frequency=Frequency.YEARLY))
        self.assertEqual(refresh(self.incomes, self.spendings), 3)
        self.assertEqual(refresh(self.incomes, self.spendings), 0)

    def test_refresh_continues_after_one_list_fails(self):
        """Spendings still catch up when incomes are over their ceiling"""
        clock = fixed(date(2023, 4, 20))
        incomes = IncomeList(clock=clock, max_total=15)
        spendings = SpendingList(clock=clock)
        incomes.add(Income(Decimal("10"), "Allowance", date(2023, 1, 15), frequency=Frequency.MONTHLY))
        spendings.add(Spending(Decimal("10"), "Rent", date(2023, 1, 15), frequency=Frequency.MONTHLY))

        with self.assertRaises(MaxTotalExceeded):
            refresh(incomes, spendings)
        self.assertEqual(len(incomes), 1)
        self.assertEqual(incomes.total, Decimal("10"))
        self.assertEqual(len(spendings), 4)
        self.assertEqual(spendings[0].last_recurrence, date(2023, 4, 15))

    def test_add_recurring_entry_catches_up(self):
        entry = add_entry(self.incomes, ["100", "Salary", "/2023-02-01/", "~monthly~"])
        self.assertEqual(len(self.incomes), 3)
        self.assertEqual(entry.last_recurrence, date(2023, 4, 1))
        self.assertEqual(self.incomes.total, Decimal("300"))

    def test_add_recurring_entry_over_ceiling_leaves_nothing(self):
        """A recurring add whose catch-up passes the ceiling is undone entirely"""
        incomes = IncomeList(clock=fixed(date(2023, 5, 1)), max_total=250)
        with self.assertRaises(MaxTotalExceeded):
            add_entry(incomes, ["100", "salary", "/2023-02-01/", "~monthly~"])
        self.assertEqual(len(incomes), 0)
        self.assertEqual(incomes.total, Decimal("0"))

    def test_errors_share_a_base(self):
        for error in (InvalidAmount, IndexOutOfBounds, MaxTotalExceeded, StorageError):
            self.assertTrue(issubclass(error, LedgerError))
        self.assertEqual(str(IndexNotInteger()), "Index must be an integer")


class TestStorage(unittest.TestCase):
    def setUp(self):
        self.tmp = TemporaryDirectory()
        self.saves_dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_save_and_load_data(self):
        """Test saving and loading both lists with budgets"""
        incomes = IncomeList()
        incomes.add(Income(Decimal("1000"), "Salary", date(2023, 1, 1), frequency=Frequency.MONTHLY,
                           last_recurrence=date(2023, 3, 1)))
        spendings = SpendingList()
        spendings.add(Spending(Decimal("12.34"), "Lunch", date(2023, 1, 2), tag="food"))
        spendings.set_daily_budget(50)

        save_data(incomes, spendings, "test_save", saves_dir=self.saves_dir)
        loaded_incomes, loaded_spendings = load_data("test_save", saves_dir=self.saves_dir)

        self.assertEqual(list(loaded_incomes), list(incomes))
        self.assertEqual(list(loaded_spendings), list(spendings))
        self.assertIsInstance(loaded_spendings[0], Spending)
        self.assertEqual(loaded_incomes[0].last_recurrence, date(2023, 3, 1))
        self.assertEqual(loaded_incomes.total, Decimal("1000"))
        self.assertEqual(loaded_spendings.total, Decimal("12.34"))
        self.assertEqual(loaded_spendings.daily_budget, Decimal("50"))

    def test_list_save_files(self):
        save_data(IncomeList(), SpendingList(), "test_save1", saves_dir=self.saves_dir)
        save_data(IncomeList(), SpendingList(), "test_save2", saves_dir=self.saves_dir)
        self.assertEqual(list_save_files(self.saves_dir), ["test_save1", "test_save2"])
        self.assertEqual(list_save_files(self.saves_dir / "missing"), [])

    def test_missing_and_corrupt_files(self):
        with self.assertRaises(StorageError):
            load_data("nothing", saves_dir=self.saves_dir)
        (self.saves_dir / "broken.json").write_text('{"incomes": [{"amount": "ten"}]}')
        with self.assertRaises(StorageError):
            load_data("broken", saves_dir=self.saves_dir)
        (self.saves_dir / "garbage.json").write_text("not json")
        with self.assertRaises(StorageError):
            load_data("garbage", saves_dir=self.saves_dir)

    def test_password_file(self):
        path = self.saves_dir / "password.txt"
        self.assertIsNone(load_password_hash(path))

        stored = create_password("password", path)
        self.assertEqual(load_password_hash(path), stored)
        self.assertTrue(check_password(stored, "password"))
        self.assertFalse(check_password(stored, "Password"))

        path.write_text("")
        self.assertIsNone(load_password_hash(path))
        self.assertFalse(path.exists())

    def test_settings_file(self):
        ini = self.saves_dir / "ledger.ini"
        ini.write_text("[ledger]\nmax_total = 500\nsaves_dir = mysaves\nlog_level = debug\n")
        settings = load_settings(ini)
        self.assertEqual(settings.max_total, "500")
        self.assertEqual(settings.saves_dir, Path("mysaves"))
        self.assertEqual(settings.log_level, "DEBUG")
        self.assertEqual(settings.password_file, Path("password.txt"))

        defaults = load_settings(self.saves_dir / "missing.ini")
        self.assertEqual(defaults.max_total, "1000000000")


class TestCLI(unittest.TestCase):
    def setUp(self):
        self.tmp = TemporaryDirectory()
        clock = fixed(date(2023, 5, 1))
        self.out = io.StringIO()
        self.shell = LedgerCLI(IncomeList(clock=clock), SpendingList(clock=clock),
                               saves_dir=Path(self.tmp.name), stdout=self.out)

    def tearDown(self):
        self.tmp.cleanup()

    def run_command(self, line: str) -> str:
        self.out.seek(0)
        self.out.truncate()
        self.shell.onecmd(line)
        return self.out.getvalue()

    def test_budget_and_overspend(self):
        self.assertIn("Successfully set daily budget of: 50.00", self.run_command("budget daily 50"))
        output = self.run_command("add spending 60 dinner out")
        self.assertIn("Entry successfully added", output)
        self.assertIn("overspent your daily budget by: $10.00", output)

    def test_errors_are_printed(self):
        self.assertIn("Index is out of bounds", self.run_command("edit spending 5 amount 3"))
        self.assertIn("Invalid category", self.run_command("delete savings 1"))
        self.assertIn("budget <daily|monthly|yearly> <amount>", self.run_command("budget daily"))
        self.assertIn("Invalid amount", self.run_command("add income abc salary"))

    def test_add_recurring_catches_up(self):
        self.run_command("add income 100 salary /2023-02-01/ ~monthly~")
        self.assertEqual(len(self.shell.incomes), 4)
        output = self.run_command("list income")
        self.assertIn("Recurring: monthly", output)
        self.assertIn("Total income: $400.00", output)

    def test_save_and_load(self):
        self.run_command("add spending 5 coffee *drinks*")
        self.run_command("save test")
        self.run_command("delete spending 1")
        self.assertEqual(len(self.shell.spendings), 0)
        self.assertIn("Loaded 'test'", self.run_command("load test"))
        self.assertEqual(self.shell.spendings[0].tag, "drinks")
        self.assertIn("test", self.run_command("load"))

    def test_recurring_add_over_ceiling(self):
        self.shell.incomes = IncomeList(clock=fixed(date(2023, 5, 1)), max_total=250)
        output = self.run_command("add income 100 salary /2023-02-01/ ~monthly~")
        self.assertIn("allowed maximum", output)
        self.assertNotIn("successfully added", output)
        self.assertEqual(len(self.shell.incomes), 0)
        self.assertEqual(self.shell.incomes.total, Decimal("0"))

    def test_exit(self):
        self.assertTrue(self.shell.onecmd("exit"))


class TestMain(unittest.TestCase):
    def setUp(self):
        self.tmp = TemporaryDirectory()
        root = Path(self.tmp.name)
        self.settings = Settings(
            max_total="1000000000",
            saves_dir=root / "saves",
            password_file=root / "password.txt",
            log_file=root / "ledger.log",
            log_level="INFO",
        )

    def tearDown(self):
        self.tmp.cleanup()

    @patch("builtins.print")
    def test_login_creates_then_checks_password(self, mock_print):
        with patch("ledger.main.getpass.getpass", return_value="secret"):
            self.assertTrue(login(self.settings))
        self.assertTrue(self.settings.password_file.exists())

        with patch("ledger.main.getpass.getpass", return_value="secret"):
            self.assertTrue(login(self.settings))
        with patch("ledger.main.getpass.getpass", return_value="guess"):
            self.assertFalse(login(self.settings))
        mock_print.assert_any_call("Incorrect password.")

    def test_load_or_start(self):
        incomes, spendings = load_or_start(self.settings)
        self.assertEqual((len(incomes), len(spendings)), (0, 0))

        spendings.add(Spending(Decimal("5"), "Coffee", date(2023, 1, 1)))
        save_data(incomes, spendings, "default", saves_dir=self.settings.saves_dir)
        incomes, spendings = load_or_start(self.settings)
        self.assertEqual(len(spendings), 1)
        self.assertEqual(spendings.total, Decimal("5"))

    @patch("builtins.print")
    def test_save_on_exit(self, mock_print):
        shell = LedgerCLI(IncomeList(), SpendingList(), stdout=io.StringIO())
        self.assertTrue(save_on_exit(shell, self.settings))
        self.assertTrue((self.settings.saves_dir / "default.json").exists())

        # a plain file where the saves directory should be
        self.settings.password_file.write_text("x")
        blocked = replace(self.settings, saves_dir=self.settings.password_file)
        self.assertFalse(save_on_exit(shell, blocked))
        mock_print.assert_called_once()


if __name__ == "__main__":
    unittest.main()
