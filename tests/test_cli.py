import os
from pathlib import Path
import subprocess
import sys

import pytest

from ledger_import import main as cli
from ledger_import.config import REQUIRED_VARIABLES, get_settings
from ledger_import.errors import ConfigurationInvalid, ConfigurationMissing, SourceUnavailable

from tests.helpers import HEADER, FakeSource, sheet_row


def _base_env(tmp_path: Path) -> dict[str, str]:
    env = os.environ.copy()
    for name in REQUIRED_VARIABLES:
        env.pop(name, None)
    env["DATABASE_URL"] = f"sqlite:///{tmp_path / 'cli.db'}"
    return env


def test_cli_fails_fast_when_configuration_is_missing(tmp_path: Path) -> None:
    proc = subprocess.run(
        [sys.executable, "-m", "ledger_import.main", "run"],
        cwd=tmp_path,
        env={**_base_env(tmp_path), "PYTHONPATH": str(Path(__file__).resolve().parents[1])},
        check=False,
        capture_output=True,
        text=True,
    )

    assert proc.returncode == 1
    assert "GOOGLE_API_KEY" in proc.stderr
    assert "DATABASE_PASSWORD" in proc.stderr
    assert not (tmp_path / "cli.db").exists()


def test_get_settings_lists_every_missing_variable(monkeypatch) -> None:
    for name in REQUIRED_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DATABASE_URL", "sqlite://")

    with pytest.raises(ConfigurationMissing) as excinfo:
        get_settings()

    assert excinfo.value.names == ["DATABASE_PASSWORD", "GOOGLE_API_KEY", "GOOGLE_SHEET_RECEBIMENTOS_ID"]


def test_get_settings_defaults(monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("DATABASE_PASSWORD", "pw")
    monkeypatch.setenv("GOOGLE_API_KEY", "key")
    monkeypatch.setenv("GOOGLE_SHEET_RECEBIMENTOS_ID", "sheet")
    for name in ("GOOGLE_SHEET_RECEBIMENTOS_RANGE", "IMPORT_BATCH_SIZE", "REPLACE_MODE"):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.sheet_range == "A:V"
    assert settings.batch_size == 500
    assert settings.atomic_replace is False


def test_cli_run_and_status(monkeypatch, capsys, test_settings, session_factory) -> None:
    source = FakeSource([HEADER, sheet_row()])
    monkeypatch.setattr(cli, "get_settings", lambda: test_settings)
    monkeypatch.setattr(
        cli,
        "build_runner",
        lambda settings: cli.ImportRunner(settings, session_factory, source),
    )

    cli.main(["run"])
    run_output = capsys.readouterr().out
    cli.main(["status"])
    status_output = capsys.readouterr().out

    assert "status=succeeded" in run_output
    assert "imported=1" in run_output
    assert "status=succeeded" in status_output


def test_cli_run_exits_nonzero_on_failure(monkeypatch, test_settings, session_factory) -> None:
    source = FakeSource(error=SourceUnavailable("Google Sheets request failed: 404"))
    monkeypatch.setattr(cli, "get_settings", lambda: test_settings)
    monkeypatch.setattr(
        cli,
        "build_runner",
        lambda settings: cli.ImportRunner(settings, session_factory, source),
    )

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["run"])

    assert excinfo.value.code == 1


@pytest.mark.parametrize(
    ("name", "value"),
    [("REPLACE_MODE", "sometimes"), ("IMPORT_BATCH_SIZE", "lots"), ("IMPORT_BATCH_SIZE", "0"), ("SHEETS_TIMEOUT_SECONDS", "soon")],
)
def test_invalid_values_are_configuration_errors(monkeypatch, capsys, name: str, value: str) -> None:
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("DATABASE_PASSWORD", "pw")
    monkeypatch.setenv("GOOGLE_API_KEY", "key")
    monkeypatch.setenv("GOOGLE_SHEET_RECEBIMENTOS_ID", "sheet")
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationInvalid) as excinfo:
        get_settings()
    assert excinfo.value.name == name

    with pytest.raises(SystemExit) as exit_info:
        cli.main(["run"])
    assert exit_info.value.code == 1
    assert name in capsys.readouterr().err
