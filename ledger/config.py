from __future__ import annotations
import configparser
import os
from dataclasses import dataclass
from pathlib import Path


SECTION = "ledger"

DEFAULTS = {
    "max_total": "1000000000",
    "saves_dir": "saves",
    "password_file": "password.txt",
    "log_file": "ledger.log",
    "log_level": "INFO",
}


def _resolve_config_file() -> Path:
    override = os.environ.get("LEDGER_CONFIG")
    if override:
        return Path(override).expanduser()
    candidate = Path.cwd() / "ledger.ini"
    if candidate.exists():
        return candidate
    return Path(__file__).resolve().parent.with_name("ledger.ini")


CONFIG_FILE = _resolve_config_file()


@dataclass(frozen=True)
class Settings:
    max_total: str
    saves_dir: Path
    password_file: Path
    log_file: Path
    log_level: str


def _load_cfg(path: Path) -> configparser.ConfigParser:
    cfg = configparser.ConfigParser()
    cfg.read_dict({SECTION: DEFAULTS})
    if path.exists():
        cfg.read(path, encoding="utf-8")
    return cfg


def load_settings(path: Path | None = None) -> Settings:
    section = _load_cfg(path or CONFIG_FILE)[SECTION]
    return Settings(
        max_total=section["max_total"].strip(),
        saves_dir=Path(section["saves_dir"]).expanduser(),
        password_file=Path(section["password_file"]).expanduser(),
        log_file=Path(section["log_file"]).expanduser(),
        log_level=section["log_level"].strip().upper(),
    )


SETTINGS = load_settings()

# Ceiling for any list total; lists take their own when given one
MAX_TOTAL = SETTINGS.max_total
