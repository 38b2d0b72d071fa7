"""Tests for imorch.cli — argument parsing and the main entry point."""

from __future__ import annotations

import json
import logging
import signal
import sys

import pytest

from imorch import cli
from imorch.cli import main, parse_args
from imorch.log import TRACE, level_for


@pytest.fixture(autouse=True)
def reset_cli_logger():
    yield
    log = logging.getLogger('imorch')
    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()
    log.setLevel(logging.NOTSET)
    cli.logger = None


class TestParseArgs:
    """parse_args() returns expected Namespace for various flags."""

    def test_defaults_no_args(self):
        args = parse_args([])
        assert args.headless is False
        assert args.debug is False
        assert args.sync is False
        assert args.input is None
        assert args.config is None
        assert args.trace is False

    def test_flags(self):
        args = parse_args(['--headless', '--debug', '--sync', '--input', '/tmp/fifo', '--config', 'c.json'])
        assert args.headless is True
        assert args.debug is True
        assert args.sync is True
        assert args.input == '/tmp/fifo'
        assert args.config == 'c.json'

    def test_version_flag(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(['--version'])
        assert exc_info.value.code == 0
        assert "1.0.0" in capsys.readouterr().out


class TestSetupLogging:
    def test_creates_log_file_and_is_cached(self, tmp_path):
        log_file = tmp_path / "logs" / "imorch.log"
        log = cli.setup_logging(debug=True, log_file=str(log_file))
        assert log.level == logging.DEBUG
        assert cli.setup_logging() is log
        log.info("hello")
        for handler in log.handlers:
            handler.flush()
        assert "hello" in log_file.read_text()

    def test_trace_lowers_logger_level(self, tmp_path):
        log = cli.setup_logging(log_file=str(tmp_path / "imorch.log"), trace=True)
        assert log.level == TRACE
        assert log.isEnabledFor(TRACE)


class TestLevelFor:
    def test_default_is_info(self):
        assert level_for() == logging.INFO

    def test_debug(self):
        assert level_for(debug=True) == logging.DEBUG

    def test_trace_wins_over_debug(self):
        assert level_for(debug=False, trace=True) == TRACE
        assert level_for(debug=True, trace=True) == TRACE


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX shell commands")
class TestMain:
    def test_runs_commands_from_input_stream(self, tmp_path, monkeypatch):
        monkeypatch.setattr(signal, "signal", lambda *a, **kw: None)
        out = tmp_path / "switches.txt"
        cfg = tmp_path / "config.json"
        section = {
            'insert_enter': f'echo enter >> "{out}"',
            'insert_leave': f'echo leave >> "{out}"',
            'math_enter': '',
            'math_leave': '',
        }
        cfg.write_text(json.dumps({'linux': section, 'macos': section}))
        events = tmp_path / "events.jsonl"
        events.write_text(
            json.dumps({"type": "mode", "mode": "insert"}) + "\n"
            + json.dumps({"type": "mode", "mode": "normal"}) + "\n"
        )

        rc = main([
            '--headless', '--sync',
            '--config', str(cfg),
            '--input', str(events),
            '--logfile', str(tmp_path / "imorch.log"),
        ])

        assert rc == 0
        assert out.read_text().split() == ['enter', 'leave']

    def test_missing_input_file_fails(self, tmp_path, monkeypatch):
        monkeypatch.setattr(signal, "signal", lambda *a, **kw: None)
        rc = main([
            '--headless',
            '--config', str(tmp_path / "none.json"),
            '--input', str(tmp_path / "missing.jsonl"),
            '--logfile', str(tmp_path / "imorch.log"),
        ])
        assert rc == 1
