"""
Command-line entry point against the demo backend.
"""

from datetime import date

import pytest

from billow.app import main


@pytest.fixture(autouse=True)
def isolated(clean_env):
    return clean_env


def test_dashboard(capsys):
    assert main(["--service", "demo", "dashboard"]) == 0
    out = capsys.readouterr().out
    assert "Total Invoiced  USD 113,065.00" in out
    assert "Innovation Labs" in out


def test_invoices_with_export(capsys, tmp_path):
    code = main(
        ["--service", "demo", "invoices", "--status", "paid", "--export", str(tmp_path)]
    )
    out = capsys.readouterr().out
    exported = tmp_path / f"USR-DEMO-0001_{date.today().isoformat()}.csv"

    assert code == 0
    assert "8 invoices found" in out
    assert len(exported.read_text(encoding="utf-8").splitlines()) == 9


def test_search_without_results(capsys):
    assert main(["--service", "demo", "invoices", "--search", "nobody"]) == 0
    out = capsys.readouterr().out
    assert '0 invoices found for "nobody"' in out
    assert "No invoices match your filters" in out


def test_missing_user_is_usage_error(capsys):
    assert main(["invoices"]) == 2
    assert "no user given" in capsys.readouterr().err


def test_invalid_config_is_usage_error(capsys, monkeypatch):
    monkeypatch.setenv("BILLOW_API_TIMEOUT", "never")
    assert main(["--service", "demo", "dashboard"]) == 2
    assert "BILLOW_API_TIMEOUT" in capsys.readouterr().err
