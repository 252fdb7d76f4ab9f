import getpass
import logging
import sys

from ledger import config
from ledger.cli import LedgerCLI
from ledger.errors import MaxTotalExceeded, StorageError
from ledger.lists import IncomeList, SpendingList
from ledger.logic import refresh
from ledger.storage import check_password, create_password, load_data, load_password_hash, save_data

logger = logging.getLogger(__name__)

DEFAULT_SAVE = "default"


def setup_logging(settings: config.Settings):
    logging.basicConfig(
        filename=settings.log_file,
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def login(settings: config.Settings) -> bool:
    stored = load_password_hash(settings.password_file)
    if stored is None:
        print("Hi! You seem to be new, are you ready?!")
        create_password(getpass.getpass("Please enter your new account password: "), settings.password_file)
        return True
    if check_password(stored, getpass.getpass("Please enter your password: ")):
        return True
    logger.warning("Failed login attempt")
    print("Incorrect password.")
    return False


def load_or_start(settings: config.Settings):
    try:
        return load_data(DEFAULT_SAVE, saves_dir=settings.saves_dir)
    except StorageError as e:
        logger.info("Starting with empty lists: %s", e)
        return IncomeList(), SpendingList()


def save_on_exit(shell: LedgerCLI, settings: config.Settings) -> bool:
    try:
        save_data(shell.incomes, shell.spendings, DEFAULT_SAVE, saves_dir=settings.saves_dir)
    except StorageError as e:
        logger.error("Could not save on exit: %s", e)
        print(e)
        return False
    return True


def main() -> int:
    settings = config.SETTINGS
    setup_logging(settings)
    logger.info("Starting ledger with config %s", config.CONFIG_FILE)

    if not login(settings):
        return 1

    incomes, spendings = load_or_start(settings)
    try:
        refresh(incomes, spendings)
    except MaxTotalExceeded as e:
        print(e)

    shell = LedgerCLI(incomes, spendings, saves_dir=settings.saves_dir)
    shell.cmdloop()
    saved = save_on_exit(shell, settings)
    logger.info("Session ended")
    return 0 if saved else 1


if __name__ == "__main__":
    sys.exit(main())
