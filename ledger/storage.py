import hashlib
import hmac
import json
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional

from ledger import config
from ledger.errors import StorageError
from ledger.lists import Clock, EntryList, IncomeList, Scope, SpendingList
from ledger.models import Entry, Frequency


logger = logging.getLogger(__name__)

SAVE_VERSION = "2.0"


class EnhancedJSONEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, date):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, Frequency):
            return obj.value
        return super().default(obj)


def _saves_dir(saves_dir: Optional[Path]) -> Path:
    return Path(saves_dir) if saves_dir is not None else config.SETTINGS.saves_dir


def entry_to_dict(entry: Entry) -> dict:
    return {
        "amount": entry.amount,
        "description": entry.description,
        "date": entry.date,
        "tag": entry.tag,
        "frequency": entry.frequency,
        "last_recurrence": entry.last_recurrence,
    }


def entry_from_dict(entry_type: type[Entry], data: dict) -> Entry:
    last = data.get("last_recurrence")
    return entry_type(
        amount=Decimal(data["amount"]),
        description=data["description"],
        date=date.fromisoformat(data["date"]),
        tag=data.get("tag") or "",
        frequency=Frequency(data.get("frequency") or Frequency.NONE),
        last_recurrence=date.fromisoformat(last) if last else None,
    )


def list_save_files(saves_dir: Optional[Path] = None) -> list[str]:
    directory = _saves_dir(saves_dir)
    if not directory.exists():
        return []
    return sorted(f.stem for f in directory.glob("*.json"))


def save_data(incomes: IncomeList, spendings: SpendingList, save_name="default",
              saves_dir: Optional[Path] = None) -> Path:
    data = {
        "metadata": {
            "version": SAVE_VERSION,
            "created": date.today().isoformat(),
        },
        "budgets": {scope.value: spendings.budgets[scope] for scope in Scope},
        "incomes": [entry_to_dict(e) for e in incomes],
        "spendings": [entry_to_dict(e) for e in spendings],
    }

    directory = _saves_dir(saves_dir)
    save_path = directory / f"{save_name}.json"
    try:
        directory.mkdir(parents=True, exist_ok=True)
        save_path.write_text(json.dumps(data, cls=EnhancedJSONEncoder, indent=2), encoding="utf-8")
    except OSError as e:
        raise StorageError(f"Unable to save '{save_name}': {e}") from e
    logger.info("Saved %d incomes and %d spendings to %s", len(incomes), len(spendings), save_path)
    return save_path


def _load_entries(entry_list_type: type[EntryList], items: list, clock: Clock, max_total) -> EntryList:
    entries = [entry_from_dict(entry_list_type.entry_type, item) for item in items]
    # the constructor reconciles the total from the loaded amounts
    return entry_list_type(entries, clock=clock, max_total=max_total)


def load_data(save_name="default", saves_dir: Optional[Path] = None, clock: Clock = date.today,
              max_total=None) -> tuple[IncomeList, SpendingList]:
    """Read a save file back into fresh lists. Nothing is returned from a bad file."""
    filepath = _saves_dir(saves_dir) / f"{save_name}.json"
    if not filepath.exists():
        raise StorageError(f"Save file '{save_name}' not found")

    try:
        data = json.loads(filepath.read_text(encoding="utf-8"))
        incomes = _load_entries(IncomeList, data.get("incomes", []), clock, max_total)
        spendings = _load_entries(SpendingList, data.get("spendings", []), clock, max_total)
        for scope, value in data.get("budgets", {}).items():
            spendings.set_budget(Scope(scope), value)
    except (OSError, ValueError, KeyError, TypeError, ArithmeticError) as e:
        logger.warning("Could not load %s: %s", filepath, e)
        raise StorageError(f"Save file '{save_name}' is corrupted: {e}") from e

    logger.info("Loaded %d incomes and %d spendings from %s", len(incomes), len(spendings), filepath)
    return incomes, spendings


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def load_password_hash(path: Optional[Path] = None) -> Optional[str]:
    """The stored password hash, or None when there is no usable password file."""
    path = Path(path) if path is not None else config.SETTINGS.password_file
    if not path.exists():
        return None
    try:
        stored = path.read_text(encoding="utf-8").strip()
    except OSError as e:
        raise StorageError(f"Unable to open password file: {e}") from e
    if not stored:
        logger.warning("Password file %s was empty", path)
        path.unlink()
        return None
    return stored


def create_password(password: str, path: Optional[Path] = None) -> str:
    path = Path(path) if path is not None else config.SETTINGS.password_file
    password_hash = hash_password(password)
    try:
        path.write_text(password_hash, encoding="utf-8")
    except OSError as e:
        raise StorageError(f"Unable to write password file: {e}") from e
    logger.info("Created new user password file %s", path)
    return password_hash


def check_password(stored_hash: str, password: str) -> bool:
    return hmac.compare_digest(stored_hash, hash_password(password))
