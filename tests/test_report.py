import pytest

from eventsettle import report
from eventsettle.config import get_settings
from eventsettle.services.errors import CollaboratorFailure


@pytest.fixture(autouse=True)
def settings_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/eventsettle")
    monkeypatch.setenv("SETTLE_TOLERANCE_CENTS", "2")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_settings_from_env():
    settings = get_settings()
    assert settings.database_url == "postgresql://localhost/eventsettle"
    assert settings.settle_tolerance_cents == 2
    assert settings.currency == "EUR"


def test_main_prints_report(monkeypatch, capsys):
    async def fake_run(group_id, member_id=None):
        return f"report for {group_id}"

    monkeypatch.setattr(report, "run", fake_run)

    assert report.main(["g1"]) == 0
    assert capsys.readouterr().out.strip() == "report for g1"


def test_main_reports_failure(monkeypatch, capsys):
    async def failing_run(group_id, member_id=None):
        raise CollaboratorFailure("database read failed")

    monkeypatch.setattr(report, "run", failing_run)

    assert report.main(["g1", "--member", "alice"]) == 1
    assert "failed to load/compute balances" in capsys.readouterr().err


def test_main_reports_missing_configuration(monkeypatch, capsys, tmp_path):
    monkeypatch.delenv("DATABASE_URL")
    monkeypatch.chdir(tmp_path)

    assert report.main(["g1"]) == 1
    assert "failed to load/compute balances" in capsys.readouterr().err
