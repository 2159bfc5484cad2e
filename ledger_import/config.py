from dataclasses import dataclass
import os

from dotenv import load_dotenv

from ledger_import.errors import ConfigurationInvalid, ConfigurationMissing


load_dotenv()

REQUIRED_VARIABLES = (
    "DATABASE_URL",
    "DATABASE_PASSWORD",
    "GOOGLE_API_KEY",
    "GOOGLE_SHEET_RECEBIMENTOS_ID",
)
REPLACE_MODES = ("batched", "transactional")


@dataclass(frozen=True)
class Settings:
    app_name: str
    database_url: str
    database_password: str
    google_api_key: str
    sheet_id: str
    sheet_range: str
    sheets_base_url: str
    sheets_timeout_seconds: float
    batch_size: int
    replace_mode: str
    log_level: str

    @property
    def atomic_replace(self) -> bool:
        return self.replace_mode == "transactional"


def _number_env(name: str, default: str, convert):
    raw = os.getenv(name, default)
    try:
        return convert(raw)
    except ValueError as exc:
        raise ConfigurationInvalid(name, f"not a number: {raw!r}") from exc


def get_settings() -> Settings:
    missing = [name for name in REQUIRED_VARIABLES if not os.getenv(name)]
    if missing:
        raise ConfigurationMissing(missing)

    replace_mode = os.getenv("REPLACE_MODE", "batched").strip().lower()
    if replace_mode not in REPLACE_MODES:
        raise ConfigurationInvalid("REPLACE_MODE", f"must be one of {', '.join(REPLACE_MODES)}, got {replace_mode!r}")

    batch_size = _number_env("IMPORT_BATCH_SIZE", "500", int)
    if batch_size < 1:
        raise ConfigurationInvalid("IMPORT_BATCH_SIZE", "must be a positive integer")

    timeout = _number_env("SHEETS_TIMEOUT_SECONDS", "30", float)
    if timeout <= 0:
        raise ConfigurationInvalid("SHEETS_TIMEOUT_SECONDS", "must be positive")

    return Settings(
        app_name=os.getenv("APP_NAME", "ledger-import"),
        database_url=os.environ["DATABASE_URL"],
        database_password=os.environ["DATABASE_PASSWORD"],
        google_api_key=os.environ["GOOGLE_API_KEY"],
        sheet_id=os.environ["GOOGLE_SHEET_RECEBIMENTOS_ID"],
        sheet_range=os.getenv("GOOGLE_SHEET_RECEBIMENTOS_RANGE") or "A:V",
        sheets_base_url=os.getenv("GOOGLE_SHEETS_BASE_URL", "https://sheets.googleapis.com"),
        sheets_timeout_seconds=timeout,
        batch_size=batch_size,
        replace_mode=replace_mode,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
