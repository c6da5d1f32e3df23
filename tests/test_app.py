"""End-to-end tests for the command line, driven through app.main."""

import pytest

import app


@pytest.fixture
def run(db_url, capsys):
    def _run(*argv):
        code = app.main(["--db", db_url, *argv])
        out, err = capsys.readouterr()
        return code, out, err
    return _run


def test_default_command_is_status(run):
    code, out, _ = run()
    assert code == 0
    assert "No active shift." in out
    assert "Balance: 00:00" in out


def test_full_day(run):
    code, out, _ = run("start", "--time", "9:00 3/1/2024")
    assert code == 0 and out.startswith("Shift started at ")

    code, out, _ = run("log", "standup", "--time", "15")
    assert code == 0
    assert "Logged 'standup' (15 min)" in out
    assert "Remaining: " in out

    code, out, _ = run("status")
    assert code == 0
    assert "Shift active since" in out
    assert "Expected out:" in out
    assert "[over]" in out

    code, out, _ = run("stop", "--time", "17:00 3/1/2024")
    assert code == 0
    assert "hours worked: 08:00" in out

    code, out, _ = run("list")
    assert code == 0
    assert "08:00" in out

    code, out, _ = run("stand")
    assert code == 0
    assert "standup" in out


def test_start_twice(run):
    run("start")
    code, _, err = run("start")
    assert code == 1
    assert "shift already active" in err


@pytest.mark.parametrize("argv", [("stop",), ("log", "x"), ("stand",)])
def test_not_found_is_a_clean_error(run, argv):
    code, out, err = run(*argv)
    assert code == 1
    assert out == ""
    assert err.startswith("error: ")


def test_bad_override_time(run):
    code, _, err = run("start", "--time", "yesterday")
    assert code == 2
    assert "invalid time" in err


def test_list_empty(run):
    code, out, _ = run("list", "5")
    assert code == 0
    assert "No completed shifts." in out


def test_import(run, tmp_path):
    path = tmp_path / "legacy.txt"
    path.write_text("03/01/2024 | 0900 - 1700 | 8:00 | standup, coding\n", encoding="utf-8")
    code, out, _ = run("import", str(path))
    assert code == 0
    assert "Imported 1 shifts and 2 logs." in out


def test_import_errors(run, tmp_path):
    code, _, err = run("import", str(tmp_path / "missing.txt"))
    assert code == 2
    assert "cannot read" in err

    path = tmp_path / "bad.txt"
    path.write_text("not a record\n", encoding="utf-8")
    code, _, err = run("import", str(path))
    assert code == 2
    assert "line 1" in err


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        app.main(["--version"])
    assert exc.value.code == 0
    assert app.__version__ in capsys.readouterr().out


def test_import_non_utf8_file(run, tmp_path):
    path = tmp_path / "legacy.txt"
    path.write_bytes("03/01/2024 | 0900 - 1700 | 8:00 | café\n".encode("cp1252"))
    code, out, err = run("import", str(path))
    assert code == 2
    assert out == ""
    assert "cannot read" in err


def test_unusable_data_dir(monkeypatch, tmp_path, capsys):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    monkeypatch.delenv("SHIFTLOG_DATABASE_URL", raising=False)
    monkeypatch.setenv("SHIFTLOG_DATA_DIR", str(blocker / "sub"))
    assert app.main(["status"]) == app.EXIT_STORAGE
    assert capsys.readouterr().out == ""
