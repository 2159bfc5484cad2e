from pathlib import Path

import pytest
from sqlalchemy.orm import Session, sessionmaker

from ledger_import.config import Settings
from ledger_import.database import build_session_factory
from ledger_import.pipeline import ImportRunner

from tests.helpers import HEADER, FakeSource, sheet_row


@pytest.fixture()
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        app_name="ledger-import",
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        database_password="unused",
        google_api_key="test-key",
        sheet_id="sheet-123",
        sheet_range="A:V",
        sheets_base_url="https://sheets.test",
        sheets_timeout_seconds=5,
        batch_size=500,
        replace_mode="batched",
        log_level="INFO",
    )


@pytest.fixture()
def session_factory(test_settings: Settings) -> sessionmaker[Session]:
    return build_session_factory(test_settings.database_url)


@pytest.fixture()
def fake_source() -> FakeSource:
    return FakeSource([HEADER, sheet_row(), sheet_row(amount="0"), ["short"] * 10])


@pytest.fixture()
def runner(test_settings: Settings, session_factory: sessionmaker[Session], fake_source: FakeSource) -> ImportRunner:
    return ImportRunner(test_settings, session_factory, fake_source)
