import datetime as dt
import os

import pytest

import booking.__main__ as cli


@pytest.fixture
def captured(monkeypatch):
    calls = {}

    def fake_create_app(settings):
        calls["settings"] = settings
        return "app"

    def fake_run(app, **kwargs):
        calls["app"] = app
        calls["run"] = kwargs

    monkeypatch.setattr(cli, "create_app", fake_create_app)
    monkeypatch.setattr(cli.uvicorn, "run", fake_run)
    # setenv (not delenv) so anything the CLI writes is restored afterwards
    monkeypatch.setenv("APPOINTMENTS_YEAR", "2075")
    monkeypatch.setenv("APPOINTMENTS_TODAY", "")
    return calls


def test_year_argument_overrides_settings(captured):
    assert cli.main(["2080", "--port", "9001"]) == 0

    assert captured["settings"].year == 2080
    assert captured["app"] == "app"
    assert captured["run"]["port"] == 9001


def test_year_defaults_to_environment(captured, monkeypatch):
    monkeypatch.setenv("APPOINTMENTS_YEAR", "2077")

    cli.main([])

    assert captured["settings"].year == 2077


def test_pinned_today_from_another_year_is_dropped(captured, monkeypatch):
    monkeypatch.setenv("APPOINTMENTS_TODAY", "2075-06-01")

    cli.main(["2080"])

    assert captured["settings"].today is None


def test_pinned_today_kept_for_its_year(captured, monkeypatch):
    monkeypatch.setenv("APPOINTMENTS_TODAY", "2075-06-01")

    cli.main(["2075"])

    assert captured["settings"].today == dt.date(2075, 6, 1)


@pytest.mark.parametrize("argv", [["twenty"], ["0"]])
def test_bad_year_exits(captured, argv):
    with pytest.raises(SystemExit) as info:
        cli.main(argv)
    assert info.value.code == 2


def test_reload_serves_the_app_factory(captured):
    cli.main(["2080", "--reload", "--port", "9002"])

    assert captured["app"] == "booking.main:create_app"
    assert captured["run"]["factory"] is True
    assert captured["run"]["reload"] is True
    assert captured["run"]["port"] == 9002
    assert "settings" not in captured


def test_reload_passes_year_through_environment(captured, monkeypatch):
    monkeypatch.setenv("APPOINTMENTS_TODAY", "2075-06-01")

    cli.main(["2080", "--reload"])

    assert os.environ["APPOINTMENTS_YEAR"] == "2080"
    assert "APPOINTMENTS_TODAY" not in os.environ
