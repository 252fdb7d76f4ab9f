import cmd
from decimal import Decimal

from ledger.errors import IncorrectParamCount, LedgerError
from ledger.lists import EntryList, IncomeList, SpendingList
from ledger.logic import add_entry, delete_entry, edit_entry, refresh, select_list, set_budget
from ledger.models import Entry
from ledger.storage import list_save_files, load_data, save_data

TAB = "    "


def format_amount(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def format_entry(position: int, entry: Entry) -> str:
    line = f"{position}. {entry.description} - {format_amount(entry.amount)} - {entry.date.isoformat()}"
    if entry.tag:
        line += f" - Tag: {entry.tag}"
    if entry.is_recurring:
        line += f" - Recurring: {entry.frequency.value}"
    return line


class LedgerCLI(cmd.Cmd):
    prompt = "(ledger) "

    def __init__(self, incomes: IncomeList, spendings: SpendingList, saves_dir=None, stdout=None):
        super().__init__(stdout=stdout)
        self.incomes = incomes
        self.spendings = spendings
        self.saves_dir = saves_dir
        self.intro = "Welcome to your ledger. Type 'help' for commands."

    def say(self, text=""):
        self.stdout.write(f"{TAB}{text}\n")

    def onecmd(self, line):
        try:
            return super().onecmd(line)
        except LedgerError as e:
            self.say(str(e))
            return False

    def emptyline(self):
        pass

    # ===== CORE COMMANDS =====
    def do_add(self, arg):
        """Add an entry: add <income|spending> <amount> <description> [/YYYY-MM-DD/] [*tag*] [~daily|monthly|yearly~]"""
        args = arg.split()
        if len(args) < 3:
            raise IncorrectParamCount(
                "Please enter in the form: add <income|spending> <amount> <description>"
            )
        entries = select_list(args[0], self.incomes, self.spendings)
        entry = add_entry(entries, args[1:])
        self.say(f"Entry successfully added: {entry.description} {format_amount(entry.amount)}")
        self._report_overspend(entries)

    def do_delete(self, arg):
        """Delete an entry: delete <income|spending> <index>"""
        args = arg.split()
        if len(args) != 2:
            raise IncorrectParamCount("Please enter in the form: delete <income|spending> <index>")
        entry = delete_entry(select_list(args[0], self.incomes, self.spendings), args[1])
        self.say(f"Successfully deleted: {entry.description}")

    def do_edit(self, arg):
        """Edit an entry: edit <income|spending> <index> <amount|description|date|tag> <value>"""
        args = arg.split()
        edit_entry(self.incomes, self.spendings, args)
        self.say("Edit Successful!")
        self._report_overspend(select_list(args[0], self.incomes, self.spendings))

    def do_list(self, arg):
        """List entries: list [income|spending|all]"""
        choice = arg.strip().lower() or "all"
        if choice == "all":
            self._print_list("Incomes", self.incomes)
            self._print_list("Spendings", self.spendings)
        else:
            entries = select_list(choice, self.incomes, self.spendings)
            self._print_list(entries.name.capitalize(), entries)

    def do_stats(self, arg):
        """Show income and spending for today, this month and this year"""
        self.say(f"Today's income: {format_amount(self.incomes.daily_total())}"
                 f"  spending: {format_amount(self.spendings.daily_spending())}")
        self.say(f"This month's income: {format_amount(self.incomes.monthly_total())}"
                 f"  spending: {format_amount(self.spendings.monthly_spending())}")
        self.say(f"This year's income: {format_amount(self.incomes.yearly_total())}"
                 f"  spending: {format_amount(self.spendings.yearly_spending())}")
        for scope, budget in self.spendings.budgets.items():
            self.say(f"{scope.value.capitalize()} budget: {format_amount(budget) if budget else 'not set'}")

    def do_budget(self, arg):
        """Set a budget: budget <daily|monthly|yearly> <amount> (0 clears it)"""
        scope = set_budget(self.spendings, arg.split())
        self.say(f"Successfully set {scope.value} budget of: {self.spendings.budgets[scope]}")
        self._report_overspend(self.spendings)

    # ===== DATA MANAGEMENT =====
    def do_save(self, arg):
        """Save current data: save [name=default]"""
        name = arg.strip() or "default"
        save_data(self.incomes, self.spendings, name, saves_dir=self.saves_dir)
        self.say(f"Saved as '{name}'")

    def do_load(self, arg):
        """Load saved data: load [name]"""
        name = arg.strip()
        if not name:
            saves = list_save_files(self.saves_dir)
            if not saves:
                self.say("No save files available")
                return
            self.say("Available saves: " + ", ".join(saves))
            return
        self.incomes, self.spendings = load_data(
            name,
            saves_dir=self.saves_dir,
            clock=self.incomes.clock,
            max_total=self.incomes.max_total,
        )
        created = refresh(self.incomes, self.spendings)
        self.say(f"Loaded '{name}' ({created} recurring entries caught up)")

    # ===== UTILITIES =====
    def do_exit(self, arg):
        """Exit the program"""
        self.say("Bye!")
        return True

    # ===== HELPERS =====
    def _print_list(self, title: str, entries: EntryList):
        self.say(f"{title}:")
        for position, entry in enumerate(entries, 1):
            self.say(format_entry(position, entry))
        self.say(f"Total {title.lower()}: {format_amount(entries.total)}")

    def _report_overspend(self, entries: EntryList):
        if entries is not self.spendings:
            return
        for overspend in self.spendings.check_overspend():
            self.say(f"You have overspent your {overspend.scope.value} budget by: "
                     f"{format_amount(overspend.amount)}")
