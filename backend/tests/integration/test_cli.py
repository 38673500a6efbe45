import json
from unittest.mock import MagicMock, patch

import pytest

from loadgen.cli import build_parser, format_report, main
from loadgen.errors import TransportInitError
from loadgen.models.domain import RunReport


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("loadgen.cli.configure_logging"):
        yield


def sample_report(**kw) -> RunReport:
    base = dict(
        endpoint="http://localhost:8080/api/data",
        rate=5,
        duration_s=2.0,
        sent=10,
        failed=0,
        attempted=10,
        elapsed_s=2.004,
        achieved_rate=4.99,
        ticks=2,
        launched=10,
        overruns=0,
        per_shape={"Format 1": 3, "Format 2": 3, "Format 3": 2, "Format 4": 2},
        failure_reasons={},
    )
    base.update(kw)
    return RunReport(**base)


def test_format_report():
    text = format_report(sample_report(failed=2, failure_reasons={"transport": 2}))
    assert "Total Sent: 10 | Failed: 2" in text
    assert "Actual rate: 4.99/sec" in text
    assert "Format 3: 2" in text
    assert "transport=2" in text


def test_parser_run_flags():
    args = build_parser().parse_args(["run", "--rate", "5", "--duration", "2", "--seed", "3"])
    assert args.command == "run"
    assert args.rate == 5
    assert args.duration == 2.0
    assert args.seed == 3
    assert args.endpoint is None


def test_log_level_after_subcommand():
    args = build_parser().parse_args(["run", "--rate", "1", "--duration", "1", "--log-level", "DEBUG"])
    assert args.log_level == "DEBUG"

    args = build_parser().parse_args(["sink", "--log-level", "WARNING"])
    assert args.log_level == "WARNING"


def test_run_prints_json_report(capsys):
    with patch("loadgen.cli.RunDriver") as mock_driver:
        mock_driver.return_value.run.return_value = sample_report()
        code = main(["run", "--rate", "5", "--duration", "2", "--json"])

    assert code == 0
    settings = mock_driver.call_args.args[0]
    assert settings.rate == 5
    assert settings.duration_s == 2.0
    out = json.loads(capsys.readouterr().out)
    assert out["sent"] == 10
    assert out["per_shape"]["Format 1"] == 3


def test_invalid_parameters_exit_2(capsys):
    assert main(["run", "--rate", "0", "--duration", "2"]) == 2
    assert "invalid run parameters" in capsys.readouterr().err


def test_transport_init_failure_exit_1():
    driver = MagicMock()
    driver.run.side_effect = TransportInitError("no transport")
    with patch("loadgen.cli.RunDriver", return_value=driver):
        assert main(["run", "--rate", "1", "--duration", "1"]) == 1


def test_sink_command_runs_uvicorn():
    with patch("uvicorn.run") as mock_run:
        assert main(["sink", "--port", "9099"]) == 0
    mock_run.assert_called_once()
    assert mock_run.call_args.args[0] == "loadgen.main:app"
    assert mock_run.call_args.kwargs["port"] == 9099
