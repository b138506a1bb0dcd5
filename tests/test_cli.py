"""Tests for the recpipe command line."""

import pytest

from recpipe.cli import _plain, _read_input, build_parser, main
from recpipe.engine import DebugSession
from recpipe.recpipe_exceptions import RecordFormatError


SALES_PIPE = 'PIPE CONSOLE\n| FILTER 18,10 = "SALES"\n| SELECT 0,8\n| CONSOLE\n?\n'


@pytest.fixture
def workdir(tmp_path, employees_text, monkeypatch):
    for name in ("RECPIPE_EXECUTOR", "RECPIPE_BASE_DIR", "RECPIPE_LOG_LEVEL",
                 "RECPIPE_TRACE_PREVIEW", "RECPIPE_CONSOLE_ENABLED"):
        monkeypatch.delenv(name, raising=False)
    (tmp_path / "employees.txt").write_text(employees_text, encoding="ascii")
    (tmp_path / "sales.pipe").write_text(SALES_PIPE, encoding="utf-8")
    return tmp_path


class TestRun:
    def test_run_to_stdout(self, workdir, capsys):
        code = main(["run", str(workdir / "sales.pipe"), str(workdir / "employees.txt")])
        captured = capsys.readouterr()
        assert code == 0
        assert captured.out == "SMITH\nDOE\n"
        assert "Processed 5 -> 2 records" in captured.err

    def test_run_rat_to_file(self, workdir, capsys):
        out = workdir / "result.txt"
        code = main(["run", str(workdir / "sales.pipe"), str(workdir / "employees.txt"),
                     "--rat", "-o", str(out)])
        assert code == 0
        assert out.read_text(encoding="ascii") == "SMITH\nDOE\n"
        assert capsys.readouterr().out == ""

    def test_file_stages_resolve_against_base_dir(self, workdir, capsys):
        (workdir / "eng.pipe").write_text(
            'PIPE < employees.txt | FILTER 18,10 = "ENGINEER" | > eng.txt\n?\n', encoding="utf-8",
        )
        empty = workdir / "empty.txt"
        empty.write_text("", encoding="ascii")
        code = main(["--base-dir", str(workdir), "run", str(workdir / "eng.pipe"), str(empty)])
        assert code == 0
        assert len((workdir / "eng.txt").read_text(encoding="ascii").splitlines()) == 2

    def test_parse_error_exit_code(self, workdir, capsys):
        (workdir / "bad.pipe").write_text("PIPE CONSOLE | FROB | CONSOLE\n", encoding="utf-8")
        code = main(["run", str(workdir / "bad.pipe"), str(workdir / "employees.txt")])
        assert code == 1
        assert "Unknown command: FROB" in capsys.readouterr().err

    def test_missing_input_file(self, workdir, capsys):
        code = main(["run", str(workdir / "sales.pipe"), str(workdir / "nope.txt")])
        assert code == 1
        assert "Cannot read" in capsys.readouterr().err

    def test_long_input_line(self, workdir, capsys):
        (workdir / "long.txt").write_text("x" * 81 + "\n", encoding="ascii")
        code = main(["run", str(workdir / "sales.pipe"), str(workdir / "long.txt")])
        assert code == 1
        assert "input line 1" in capsys.readouterr().err

    def test_non_ascii_input_line(self, workdir, capsys):
        (workdir / "accents.txt").write_bytes(b"SMITH\nJOS\xc9\n")
        code = main(["run", str(workdir / "sales.pipe"), str(workdir / "accents.txt")])
        assert code == 1
        err = capsys.readouterr().err
        assert "input line 2" in err
        assert "non-ASCII" in err

    def test_non_ascii_input_is_a_record_format_error(self, workdir):
        (workdir / "accents.txt").write_bytes(b"JOS\xc9\n")
        with pytest.raises(RecordFormatError) as exc:
            _read_input(workdir / "accents.txt")
        assert exc.value.line_number == 1

    def test_invalid_executor_env(self, workdir, capsys, monkeypatch):
        monkeypatch.setenv("RECPIPE_EXECUTOR", "parallel")
        code = main(["run", str(workdir / "sales.pipe"), str(workdir / "employees.txt")])
        assert code == 1
        assert "invalid configuration" in capsys.readouterr().err


class TestDebug:
    def test_plain_debug_stops_at_breakpoints(self, workdir, capsys):
        code = main(["debug", str(workdir / "sales.pipe"), str(workdir / "employees.txt"),
                     "--watch", "1", "--break", "1", "--no-console"])
        out = capsys.readouterr()
        assert code == 0
        assert "[record 1, pipe point 1]  paused at breakpoint" in out.out
        assert "w1 @ pipe 1: (filtered out)" in out.out
        assert out.out.count("paused at breakpoint") == 5
        assert "[finished]" in out.out
        assert "Processed 5 -> 2 records" in out.err

    def test_pipeline_out_of_range(self, workdir, capsys):
        code = main(["debug", str(workdir / "sales.pipe"), str(workdir / "employees.txt"),
                     "--pipeline", "2", "--no-console"])
        assert code == 1
        assert "--pipeline must be between 1 and 1" in capsys.readouterr().err

    def test_bad_watch_position(self, workdir, capsys):
        code = main(["debug", str(workdir / "sales.pipe"), str(workdir / "employees.txt"),
                     "--watch", "9", "--no-console"])
        assert code == 1
        assert "out of range" in capsys.readouterr().err

    def test_interactive_session(self, workdir, capsys, monkeypatch):
        answers = iter(["w 0", "s", "b 2", "r", "bogus", "w x", "q"])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
        code = main(["debug", str(workdir / "sales.pipe"), str(workdir / "employees.txt"),
                     "-i", "--no-console"])
        out = capsys.readouterr().out
        assert code == 0
        assert "[record 1, pipe point 2]  paused at breakpoint" in out
        assert "Expected a pipe point number, got 'x'" in out

    def test_interactive_eof_ends_session(self, workdir, capsys, monkeypatch):
        def no_more_input(prompt=""):
            raise EOFError

        monkeypatch.setattr("builtins.input", no_more_input)
        code = main(["debug", str(workdir / "sales.pipe"), str(workdir / "employees.txt"),
                     "-i", "--no-console"])
        assert code == 0
        assert "Processed 5 -> 0 records" in capsys.readouterr().err

    def test_rich_debug_output(self, workdir, capsys):
        code = main(["debug", str(workdir / "sales.pipe"), str(workdir / "employees.txt"),
                     "--break", "2"])
        assert code == 0
        out = capsys.readouterr().out
        assert "recpipe debugger" in out
        assert "Output" in out


class TestHelpers:
    def test_plain_not_reached(self, employees):
        session = DebugSession("UPPER", employees[:1])
        session.add_watch(1)
        text = _plain(session.initialize())
        assert "w1 @ pipe 1: not yet reached" in text
        assert "output: 0 record(s)" in text

    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])
